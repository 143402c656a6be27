"""Tests for the SQL message store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.models import User
from app.services import SqlMessageStore
from orgchat.realtime import NotParticipant, RoomNotFound, StoreUnavailable

SENT_AT = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def post(store: SqlMessageStore, room_id: int, sender: str, content: str, **kwargs):
    return store.append(
        room_id,
        sender=sender,
        sender_full_name=sender.title(),
        content=content,
        timestamp=SENT_AT,
        **kwargs,
    )


@pytest.fixture()
def pair(room_resolver):
    return room_resolver.find_or_create(["alice", "bob"], "alice")


@pytest.fixture()
def group(room_resolver):
    return room_resolver.find_or_create(["alice", "bob", "carol"], "alice")


def test_append_assigns_sequences_per_room(message_store, pair, group):
    first = post(message_store, pair.id, "alice", "one")
    second = post(message_store, pair.id, "bob", "two")
    other = post(message_store, group.id, "carol", "elsewhere")

    assert first.created is True
    assert [first.message.sequence, second.message.sequence] == [1, 2]
    assert other.message.sequence == 1


def test_history_is_ordered_and_serialised_for_the_client(message_store, pair):
    for index in range(3):
        post(message_store, pair.id, "alice", f"message {index}")

    history = message_store.history(pair.id)

    assert [message.sequence for message in history] == [1, 2, 3]
    wire = history[0].to_wire()
    assert wire["message"] == "message 0"
    assert wire["roomId"] == pair.id
    assert wire["senderFullName"] == "Alice"
    assert wire["isRead"] is False
    assert "content" not in wire


def test_append_to_unknown_room_raises(message_store):
    with pytest.raises(RoomNotFound):
        post(message_store, 404, "alice", "hello?")

    with pytest.raises(RoomNotFound):
        message_store.history(404)


def test_append_with_repeated_client_id_is_idempotent(message_store, pair):
    first = post(message_store, pair.id, "alice", "hi", client_message_id="c-1")
    retry = post(message_store, pair.id, "alice", "hi", client_message_id="c-1")

    assert retry.created is False
    assert retry.message.id == first.message.id
    assert len(message_store.history(pair.id)) == 1

    other_sender = post(message_store, pair.id, "bob", "hi", client_message_id="c-1")
    assert other_sender.created is True


def test_mark_read_only_touches_unread_messages_from_others(message_store, pair):
    post(message_store, pair.id, "bob", "first")
    post(message_store, pair.id, "alice", "mine")
    post(message_store, pair.id, "bob", "second")

    receipt = message_store.mark_read(pair.id, "alice")

    assert receipt.count == 2
    assert receipt.senders == ("bob",)
    assert receipt.last_read_sequence == 3
    assert [message.is_read for message in message_store.history(pair.id)] == [True, False, True]

    again = message_store.mark_read(pair.id, "alice")
    assert again.count == 0
    assert again.senders == ()


def test_mark_read_requires_participation(message_store, pair):
    with pytest.raises(NotParticipant):
        message_store.mark_read(pair.id, "mallory")


def test_unread_counts_follow_reads_and_new_messages(message_store, pair, group):
    for content in ("a", "b", "c"):
        post(message_store, pair.id, "bob", content)
    post(message_store, group.id, "alice", "own message")

    assert message_store.unread_counts_for_user("alice", [pair.id, group.id]) == {pair.id: 3}

    message_store.mark_read(pair.id, "alice")
    assert message_store.unread_counts_for_user("alice", [pair.id, group.id]) == {}

    post(message_store, pair.id, "bob", "d")
    assert message_store.unread_counts_for_user("alice", [pair.id]) == {pair.id: 1}
    assert message_store.unread_counts_for_user("alice", []) == {}


def test_group_message_is_read_once_every_recipient_read_it(message_store, group):
    post(message_store, group.id, "alice", "standup?")

    receipt = message_store.mark_read(group.id, "bob")
    assert receipt.count == 1
    assert receipt.senders == ("alice",)
    assert message_store.history(group.id)[0].is_read is False
    assert message_store.unread_counts_for_user("carol", [group.id]) == {group.id: 1}

    message_store.mark_read(group.id, "carol")
    assert message_store.history(group.id)[0].is_read is True


def test_all_messages_for_user_groups_by_room(message_store, room_resolver, pair, group):
    outsider = room_resolver.find_or_create(["bob", "carol"], "bob")
    post(message_store, pair.id, "alice", "pair 1")
    post(message_store, group.id, "bob", "group 1")
    post(message_store, pair.id, "bob", "pair 2")
    post(message_store, outsider.id, "carol", "not for alice")

    grouped = message_store.all_messages_for_user("alice")

    assert set(grouped) == {pair.id, group.id}
    assert [message.content for message in grouped[pair.id]] == ["pair 1", "pair 2"]
    assert [message.content for message in grouped[group.id]] == ["group 1"]


def test_display_name_comes_from_the_user_table(message_store, db_session):
    db_session.add(User(username="alice", full_name="Alice Kim", hashed_password="hashed"))
    db_session.commit()

    assert message_store.display_name("alice") == "Alice Kim"
    assert message_store.display_name("ghost") is None


def test_database_failures_surface_as_store_unavailable():
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    store = SqlMessageStore(sessionmaker(bind=engine, future=True))

    with pytest.raises(StoreUnavailable):
        store.history(1)

    with pytest.raises(StoreUnavailable):
        store.unread_counts_for_user("alice", [1])


def test_append_keeps_the_instant_of_offset_timestamps(message_store, pair):
    tokyo = timezone(timedelta(hours=9))
    sent_at = datetime(2026, 10, 19, 19, 0, tzinfo=tokyo)

    appended = message_store.append(
        pair.id,
        sender="alice",
        sender_full_name="Alice",
        content="evening in Tokyo",
        timestamp=sent_at,
    ).message
    stored = message_store.history(pair.id)[0]

    for message in (appended, stored):
        assert message.timestamp == sent_at
        assert message.timestamp.utcoffset() == timedelta(0)
        assert message.created_at is not None
        assert message.created_at.tzinfo is not None

    wire = stored.to_wire()["timestamp"]
    parsed = datetime.fromisoformat(wire.replace("Z", "+00:00"))
    assert parsed.tzinfo is not None
    assert parsed == datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)
