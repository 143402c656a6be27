"""Process-wide presence table mapping usernames to their live connection."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Protocol, Set

from .protocol import ONLINE_USERS_UPDATE

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything that can receive server events (a chat session in production)."""

    async def send(self, event: str, data: Any = None) -> bool:
        """Deliver an event, returning False when the peer is gone."""

    async def deliver_message(self, message: Any) -> None:
        """Push a chat message posted by someone else."""


class PresenceRegistry(Protocol):
    """Presence operations the chat sessions rely on."""

    async def attach(self, connection: Connection) -> None:
        """Add a connection to the presence broadcast audience."""

    async def detach(self, connection: Connection) -> None:
        """Remove a connection from the presence broadcast audience."""

    async def register(self, username: str, connection: Connection) -> None:
        """Bind ``username`` to ``connection``, replacing any previous binding."""

    async def unregister(self, username: str, connection: Connection) -> bool:
        """Drop the binding only when it still points at ``connection``."""

    async def lookup(self, username: str) -> Connection | None:
        """Return the live connection of ``username``."""

    async def online_users(self) -> list[str]:
        """Return the sorted usernames currently online."""


class LocalPresenceRegistry:
    """In-memory presence registry for a single server process.

    At most one connection is kept per user: the most recent ``register`` wins
    and an ``unregister`` coming from a replaced connection is ignored.
    """

    def __init__(self) -> None:
        self._online: Dict[str, Connection] = {}
        self._audience: Set[Connection] = set()
        self._lock = asyncio.Lock()

    async def attach(self, connection: Connection) -> None:
        async with self._lock:
            self._audience.add(connection)

    async def detach(self, connection: Connection) -> None:
        async with self._lock:
            self._audience.discard(connection)

    async def register(self, username: str, connection: Connection) -> None:
        async with self._lock:
            previous = self._online.get(username)
            self._online[username] = connection
            self._audience.add(connection)
        if previous is not None and previous is not connection:
            logger.info("Presence for %s moved to a new connection", username)
        await self.broadcast_online_users()

    async def unregister(self, username: str, connection: Connection) -> bool:
        async with self._lock:
            current = self._online.get(username)
            if current is not connection:
                return False
            self._online.pop(username, None)
        await self.broadcast_online_users()
        return True

    async def lookup(self, username: str) -> Connection | None:
        async with self._lock:
            return self._online.get(username)

    async def online_users(self) -> list[str]:
        async with self._lock:
            return sorted(self._online)

    async def broadcast_online_users(self) -> None:
        async with self._lock:
            snapshot = sorted(self._online)
            targets = list(self._audience)
        for connection in targets:
            await connection.send(ONLINE_USERS_UPDATE, snapshot)


_registry = LocalPresenceRegistry()


def get_presence_registry() -> PresenceRegistry:
    return _registry
