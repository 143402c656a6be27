"""Database models package."""

from .base import Base
from .chat import (
    ChatRoom,
    ChatRoomParticipant,
    Message,
    User,
    canonical_participants,
    participant_key,
)
from .directory import BusinessSite, Company, Department, Position

__all__ = [
    "Base",
    "User",
    "ChatRoom",
    "ChatRoomParticipant",
    "Message",
    "Company",
    "BusinessSite",
    "Department",
    "Position",
    "canonical_participants",
    "participant_key",
]
