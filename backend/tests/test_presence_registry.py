from __future__ import annotations

from typing import Any

import pytest

from orgchat.realtime import LocalPresenceRegistry


class DummyConnection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.events: list[tuple[str, Any]] = []

    async def send(self, event: str, data: Any = None) -> bool:
        self.events.append((event, data))
        return True

    def __repr__(self) -> str:
        return f"<DummyConnection {self.name}>"


@pytest.mark.anyio("asyncio")
async def test_register_overwrites_and_stale_unregister_is_ignored():
    registry = LocalPresenceRegistry()
    first = DummyConnection("first")
    second = DummyConnection("second")

    await registry.register("alice", first)
    assert await registry.lookup("alice") is first

    await registry.register("alice", second)
    assert await registry.lookup("alice") is second

    assert await registry.unregister("alice", first) is False
    assert await registry.lookup("alice") is second

    assert await registry.unregister("alice", second) is True
    assert await registry.lookup("alice") is None


@pytest.mark.anyio("asyncio")
async def test_presence_changes_are_broadcast_to_attached_connections():
    registry = LocalPresenceRegistry()
    observer = DummyConnection("observer")
    await registry.attach(observer)

    await registry.register("carol", DummyConnection("carol"))
    bob = DummyConnection("bob")
    await registry.register("bob", bob)

    assert observer.events == [
        ("online_users_update", ["carol"]),
        ("online_users_update", ["bob", "carol"]),
    ]
    assert await registry.online_users() == ["bob", "carol"]

    await registry.unregister("bob", bob)
    assert observer.events[-1] == ("online_users_update", ["carol"])


@pytest.mark.anyio("asyncio")
async def test_stale_unregister_does_not_broadcast():
    registry = LocalPresenceRegistry()
    observer = DummyConnection("observer")
    await registry.attach(observer)
    await registry.register("alice", DummyConnection("new"))
    observer.events.clear()

    await registry.unregister("alice", DummyConnection("old"))

    assert observer.events == []


@pytest.mark.anyio("asyncio")
async def test_detached_connections_stop_receiving_updates():
    registry = LocalPresenceRegistry()
    observer = DummyConnection("observer")
    await registry.attach(observer)
    await registry.detach(observer)

    await registry.register("alice", DummyConnection("alice"))

    assert observer.events == []
