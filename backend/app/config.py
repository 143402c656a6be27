from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="OrgChat API", description="Human readable service name")
    environment: str = Field(default="development", description="Deployment environment name")
    debug: bool = Field(default=True, description="Enable debug mode")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1",
            "http://127.0.0.1:5173",
        ],
        description="List of allowed CORS origins",
    )

    cors_allow_origin_regex: str | None = Field(
        default=r"^https?://(localhost|127\.0\.0\.1|\[::1\])(:\d+)?$",
        description="Optional regular expression that matches allowed CORS origins",
    )

    db_user: str = Field(default="orgchat")
    db_password: str = Field(default="orgchat")
    db_host: str = Field(default="db")
    db_port: int = Field(default=3306)
    db_name: str = Field(default="orgchat")

    jwt_secret_key: str = Field(default="changeme")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60)

    chat_message_max_length: int = Field(
        default=1000, description="Maximum number of characters accepted in a single message"
    )
    chat_typing_timeout_ms: int = Field(
        default=2000,
        description="Client-side debounce after which a typing indicator is considered stale",
    )
    chat_bootstrap_full_history: bool = Field(
        default=True,
        description="Send every room's history on login instead of loading rooms lazily",
    )
    chat_socket_token_required: bool = Field(
        default=False,
        description="Require a bearer token matching the username in the websocket login event",
    )

    websocket_keepalive_timeout_seconds: float = Field(
        default=30,
        description="Idle period after which the server checks the socket with a ping",
    )
    websocket_keepalive_ping_interval_seconds: float = Field(
        default=25,
        description="Minimum delay between two consecutive server pings",
    )

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        return (
            f"mysql+pymysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):  # type: ignore[override]
        if v in (None, "", Ellipsis):
            return v
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, (list, tuple, set)):
            return list(v)
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
