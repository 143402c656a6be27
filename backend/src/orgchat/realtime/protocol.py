"""Wire protocol of the chat websocket: event names, envelopes and payloads.

Every frame in both directions is a JSON object ``{"event": <name>, "data": <payload>}``.
Inbound payloads accept the camelCase keys sent by the browser client (and the
legacy ``chatRoomId`` key for the room identifier).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi.websockets import WebSocket, WebSocketDisconnect, WebSocketState
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

# Client -> server
LOGIN = "login"
GET_CHAT_HISTORY = "get_chat_history"
SEND_MESSAGE = "send_message"
TYPING_START = "typing_start"
TYPING_STOP = "typing_stop"
MARK_AS_READ = "mark_as_read"
GET_UNREAD_COUNTS = "get_unread_counts"
PING = "ping"

# Server -> client
ONLINE_USERS_UPDATE = "online_users_update"
CHAT_ROOM_LIST = "chat_room_list"
INITIAL_UNREAD_COUNTS = "initial_unread_counts"
ALL_MESSAGES_HISTORY = "all_messages_history"
CHAT_HISTORY = "chat_history"
RECEIVE_MESSAGE = "receive_message"
MESSAGE_SENT = "message_sent"
USER_TYPING = "user_typing"
USER_STOPPED_TYPING = "user_stopped_typing"
MESSAGES_READ = "messages_read"
UNREAD_COUNT_UPDATE = "unread_count_update"
PONG = "pong"
ERROR = "error"


def envelope(event: str, data: Any = None) -> dict[str, Any]:
    return {"event": event, "data": data}


async def safe_send_json(websocket: WebSocket, data: dict[str, Any]) -> bool:
    """Safely send JSON data through websocket, handling disconnections gracefully.

    Returns True if message was sent successfully, False otherwise.
    """
    if websocket.application_state != WebSocketState.CONNECTED:
        return False
    try:
        await websocket.send_json(data)
        return True
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.debug("Failed to send websocket message: %s", e)
        return False


class InboundPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LoginPayload(InboundPayload):
    """``login`` accepts either a bare username or ``{username, token}``."""

    username: str = Field(..., min_length=1, max_length=64)
    token: str | None = None

    @model_validator(mode="before")
    @classmethod
    def accept_bare_username(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"username": value.strip()}
        if isinstance(value, dict) and isinstance(value.get("username"), str):
            return {**value, "username": value["username"].strip()}
        return value


MAX_ROOM_ID = 2**63 - 1


class RoomPayload(InboundPayload):
    room_id: int | None = Field(
        default=None,
        ge=1,
        le=MAX_ROOM_ID,
        validation_alias=AliasChoices("roomId", "chatRoomId", "room_id"),
    )


class SendMessagePayload(RoomPayload):
    sender: str | None = None
    sender_full_name: str | None = Field(
        default=None,
        max_length=128,
        validation_alias=AliasChoices("senderFullName", "sender_full_name"),
    )
    content: str = Field(default="", validation_alias=AliasChoices("message", "content"))
    timestamp: datetime | None = None
    client_message_id: str | None = Field(
        default=None,
        max_length=64,
        validation_alias=AliasChoices("clientMessageId", "client_message_id"),
    )


class TypingPayload(RoomPayload):
    sender: str | None = None


class MarkReadPayload(RoomPayload):
    reader_username: str | None = Field(
        default=None, validation_alias=AliasChoices("readerUsername", "reader_username")
    )
    sender_username: str | None = Field(
        default=None, validation_alias=AliasChoices("senderUsername", "sender_username")
    )
