"""Application service helpers."""

from .rooms import RoomResolver, get_room_resolver, serialize_room
from .store import SqlMessageStore, get_message_store, serialize_message, session_scope

__all__ = [
    "RoomResolver",
    "SqlMessageStore",
    "get_message_store",
    "get_room_resolver",
    "serialize_message",
    "serialize_room",
    "session_scope",
]
