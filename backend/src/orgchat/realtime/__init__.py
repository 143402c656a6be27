"""Realtime chat core: presence, sessions and the websocket wire protocol."""

from .errors import (
    AuthenticationFailure,
    ChatError,
    EmptyMessage,
    InvalidParticipants,
    NotAuthenticated,
    NotParticipant,
    RoomNotFound,
    StoreUnavailable,
    ValidationError,
)
from .presence import Connection, LocalPresenceRegistry, PresenceRegistry, get_presence_registry
from .protocol import envelope, safe_send_json
from .session import ChatSession, SessionState
from .store import AppendResult, MessageStore, ReadReceipt, RoomDirectory
from .unread import UnreadCounter, reconcile_unread

__all__ = [
    "AppendResult",
    "AuthenticationFailure",
    "ChatError",
    "ChatSession",
    "Connection",
    "EmptyMessage",
    "InvalidParticipants",
    "LocalPresenceRegistry",
    "MessageStore",
    "NotAuthenticated",
    "NotParticipant",
    "PresenceRegistry",
    "ReadReceipt",
    "RoomDirectory",
    "RoomNotFound",
    "SessionState",
    "StoreUnavailable",
    "UnreadCounter",
    "ValidationError",
    "envelope",
    "get_presence_registry",
    "reconcile_unread",
    "safe_send_json",
]
