"""Contracts of the persistence collaborators consumed by the chat core."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Protocol, Sequence, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from app.schemas import ChatRoomRead, MessageRead


@dataclass(slots=True)
class AppendResult:
    """Outcome of appending a message; ``created`` is False for a retried send."""

    message: "MessageRead"
    created: bool = True


@dataclass(slots=True)
class ReadReceipt:
    """Outcome of marking a room as read by one participant."""

    room_id: int
    reader: str
    count: int
    last_read_sequence: int
    senders: tuple[str, ...] = field(default_factory=tuple)


class MessageStore(Protocol):
    """Append-only message log with per-participant read state."""

    def append(
        self,
        room_id: int,
        *,
        sender: str,
        sender_full_name: str,
        content: str,
        timestamp: datetime,
        client_message_id: str | None = None,
    ) -> AppendResult:
        """Persist a message and assign the next sequence number of its room."""

    def history(self, room_id: int) -> list["MessageRead"]:
        """Return every message of the room in ascending sequence order."""

    def mark_read(self, room_id: int, reader: str) -> ReadReceipt:
        """Mark everything other participants posted in the room as read by ``reader``."""

    def unread_counts_for_user(self, username: str, room_ids: Iterable[int]) -> dict[int, int]:
        """Count unread messages from others per room, omitting rooms without any."""

    def all_messages_for_user(self, username: str) -> dict[int, list["MessageRead"]]:
        """Return the history of every room the user takes part in, keyed by room id."""

    def display_name(self, username: str) -> str | None:
        """Return the registered full name of a user, if known."""


class RoomDirectory(Protocol):
    """Lookup and creation of rooms by participant set."""

    def find_or_create(
        self, participants: Sequence[str], created_by: str, name: str | None = None
    ) -> "ChatRoomRead":
        """Return the room of exactly ``participants``, creating it on first use."""

    def get(self, room_id: int) -> "ChatRoomRead":
        """Return a room or raise :class:`RoomNotFound`."""

    def rooms_for_user(self, username: str) -> list["ChatRoomRead"]:
        """Return every room the user takes part in, most recently active first."""
