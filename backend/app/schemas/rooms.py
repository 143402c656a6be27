"""Schemas describing chat rooms."""

from pydantic import Field

from app.schemas.common import CamelModel, UtcDatetime


class ChatRoomCreate(CamelModel):
    """Payload for finding or creating the room of a participant set."""

    participants: list[str] = Field(default_factory=list, description="Usernames taking part")
    created_by: str = Field(..., min_length=1, max_length=64)
    name: str | None = Field(default=None, max_length=128)


class ChatRoomRead(CamelModel):
    """Serialized chat room."""

    id: int
    name: str | None = None
    participants: list[str]
    is_group: bool
    created_by: str
    created_at: UtcDatetime
    updated_at: UtcDatetime
