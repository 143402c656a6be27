"""Schemas related to chat messages."""

from __future__ import annotations

from pydantic import Field

from app.schemas.common import CamelModel, UtcDatetime


class MessageRead(CamelModel):
    """Canonical stored form of a message as delivered to clients."""

    id: int
    room_id: int
    sequence: int = Field(..., ge=1, description="Server-assigned position inside the room")
    sender: str
    sender_full_name: str
    content: str = Field(..., alias="message")
    timestamp: UtcDatetime = Field(..., description="Send time reported by the sender's client")
    created_at: UtcDatetime | None = Field(default=None, description="Server persistence time")
    is_read: bool = False
    client_message_id: str | None = None
