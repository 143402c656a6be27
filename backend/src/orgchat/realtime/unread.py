"""Unread message accounting for a connected user."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping

from .store import MessageStore


def reconcile_unread(store: MessageStore, username: str, room_ids: Iterable[int]) -> dict[int, int]:
    """Recompute authoritative unread counts from the store."""

    return store.unread_counts_for_user(username, list(room_ids))


class UnreadCounter:
    """Per-session unread counters keyed by room id.

    The counters are an optimisation over :func:`reconcile_unread`: they start
    from the bulk aggregate and are replaced by it again on every
    reconciliation.
    """

    def __init__(self) -> None:
        self._counts: Dict[int, int] = {}

    def replace(self, counts: Mapping[int, int]) -> None:
        self._counts = {room_id: count for room_id, count in counts.items() if count > 0}

    def get(self, room_id: int) -> int:
        return self._counts.get(room_id, 0)

    def increment(self, room_id: int) -> int:
        self._counts[room_id] = self._counts.get(room_id, 0) + 1
        return self._counts[room_id]

    def set(self, room_id: int, count: int) -> int:
        if count > 0:
            self._counts[room_id] = count
        else:
            self._counts.pop(room_id, None)
        return self.get(room_id)

    def clear(self, room_id: int) -> int:
        return self.set(room_id, 0)

    def snapshot(self) -> dict[str, int]:
        """Counts with string keys, ready to be sent as a JSON object."""

        return {str(room_id): count for room_id, count in sorted(self._counts.items())}
