"""Schemas for authentication endpoints."""

from pydantic import ConfigDict, Field, constr
from pydantic.alias_generators import to_camel

from app.schemas.common import CamelModel, UtcDatetime
from app.schemas.directory import OrgUnitRef


class UserRead(CamelModel):
    """Representation of a user returned from the API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    username: str
    full_name: str
    code: str | None = None
    company: OrgUnitRef | None = None
    business_site: OrgUnitRef | None = None
    department: OrgUnitRef | None = None
    position: OrgUnitRef | None = None
    created_at: UtcDatetime


class UserCreate(CamelModel):
    """Payload for creating a new user via signup."""

    username: constr(strip_whitespace=True, min_length=2, max_length=64) = Field(
        ..., description="Unique username used as the chat identity"
    )
    full_name: constr(strip_whitespace=True, min_length=1, max_length=128) = Field(
        ..., description="Display name shown next to messages"
    )
    password: constr(min_length=4, max_length=128) = Field(
        ..., description="Plain text password that will be hashed before storing"
    )
    code: constr(strip_whitespace=True, min_length=1, max_length=32) | None = Field(
        default=None, description="Employee number, unique across the organization"
    )
    company_id: int | None = Field(default=None, ge=1)
    business_site_id: int | None = Field(default=None, ge=1)
    department_id: int | None = Field(default=None, ge=1)
    position_id: int | None = Field(default=None, ge=1)


class LoginRequest(CamelModel):
    """Payload for user login."""

    username: constr(min_length=2, max_length=64) = Field(..., description="Username")
    password: constr(min_length=4, max_length=128) = Field(..., description="User password")


class Token(CamelModel):
    """Access token returned after successful authentication."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type, always 'bearer'")
    expires_in: int | None = Field(
        default=None,
        description="Number of seconds until the access token expires",
    )
    user: UserRead
