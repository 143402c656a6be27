"""SQLAlchemy implementation of the chat message store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, Iterator

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.database import SessionLocal
from app.models import ChatRoom, ChatRoomParticipant, Message, User
from app.schemas import MessageRead
from app.schemas.common import ensure_utc
from orgchat.realtime import AppendResult, NotParticipant, ReadReceipt, RoomNotFound, StoreUnavailable

logger = logging.getLogger(__name__)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """Open a session, translating database failures into ``StoreUnavailable``."""

    session = session_factory()
    try:
        yield session
    except SQLAlchemyError as exc:
        session.rollback()
        raise StoreUnavailable() from exc
    finally:
        session.close()


def serialize_message(message: Message) -> MessageRead:
    return MessageRead(
        id=message.id,
        room_id=message.room_id,
        sequence=message.sequence,
        sender=message.sender,
        sender_full_name=message.sender_full_name,
        content=message.content,
        timestamp=message.sent_at,
        created_at=message.created_at,
        is_read=message.is_read,
        client_message_id=message.client_message_id,
    )


class SqlMessageStore:
    """Message store backed by the ``messages`` and ``chat_room_participants`` tables."""

    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _find_by_client_id(
        session: Session, room_id: int, sender: str, client_message_id: str
    ) -> Message | None:
        stmt = select(Message).where(
            Message.room_id == room_id,
            Message.sender == sender,
            Message.client_message_id == client_message_id,
        )
        return session.execute(stmt).scalar_one_or_none()

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
        with session_scope(self._session_factory) as session:
            if client_message_id:
                existing = self._find_by_client_id(session, room_id, sender, client_message_id)
                if existing is not None:
                    return AppendResult(serialize_message(existing), created=False)

            now = datetime.now(timezone.utc)
            # The row lock taken by this UPDATE serialises concurrent appends to a room.
            result = session.execute(
                update(ChatRoom)
                .where(ChatRoom.id == room_id)
                .values(last_sequence=ChatRoom.last_sequence + 1, updated_at=now)
            )
            if result.rowcount == 0:
                raise RoomNotFound()
            sequence = session.execute(
                select(ChatRoom.last_sequence).where(ChatRoom.id == room_id)
            ).scalar_one()

            message = Message(
                room_id=room_id,
                sequence=sequence,
                sender=sender,
                sender_full_name=sender_full_name,
                content=content,
                sent_at=ensure_utc(timestamp),
                created_at=now,
                is_read=False,
                client_message_id=client_message_id,
            )
            session.add(message)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                if not client_message_id:
                    raise
                existing = self._find_by_client_id(session, room_id, sender, client_message_id)
                if existing is None:
                    raise
                return AppendResult(serialize_message(existing), created=False)
            session.refresh(message)
            return AppendResult(serialize_message(message))

    def history(self, room_id: int) -> list[MessageRead]:
        with session_scope(self._session_factory) as session:
            if session.get(ChatRoom, room_id) is None:
                raise RoomNotFound()
            stmt = select(Message).where(Message.room_id == room_id).order_by(Message.sequence)
            return [serialize_message(message) for message in session.execute(stmt).scalars()]

    def mark_read(self, room_id: int, reader: str) -> ReadReceipt:
        with session_scope(self._session_factory) as session:
            room = session.get(ChatRoom, room_id)
            if room is None:
                raise RoomNotFound()
            membership = room.membership(reader)
            if membership is None:
                raise NotParticipant()

            stmt = (
                select(Message)
                .where(
                    Message.room_id == room_id,
                    Message.sender != reader,
                    Message.sequence > membership.last_read_sequence,
                )
                .order_by(Message.sequence)
            )
            newly_read = list(session.execute(stmt).scalars())
            membership.last_read_sequence = max(membership.last_read_sequence, room.last_sequence)

            for message in newly_read:
                if all(
                    participant.last_read_sequence >= message.sequence
                    for participant in room.participants
                    if participant.username != message.sender
                ):
                    message.is_read = True

            session.commit()
            return ReadReceipt(
                room_id=room_id,
                reader=reader,
                count=len(newly_read),
                last_read_sequence=membership.last_read_sequence,
                senders=tuple(sorted({message.sender for message in newly_read})),
            )

    def unread_counts_for_user(self, username: str, room_ids: Iterable[int]) -> dict[int, int]:
        room_ids = list(room_ids)
        if not room_ids:
            return {}
        with session_scope(self._session_factory) as session:
            stmt = (
                select(Message.room_id, func.count(Message.id))
                .join(
                    ChatRoomParticipant,
                    and_(
                        ChatRoomParticipant.room_id == Message.room_id,
                        ChatRoomParticipant.username == username,
                    ),
                )
                .where(
                    Message.room_id.in_(room_ids),
                    Message.sender != username,
                    Message.sequence > ChatRoomParticipant.last_read_sequence,
                )
                .group_by(Message.room_id)
            )
            return {room_id: count for room_id, count in session.execute(stmt) if count}

    def all_messages_for_user(self, username: str) -> dict[int, list[MessageRead]]:
        with session_scope(self._session_factory) as session:
            stmt = (
                select(Message)
                .join(
                    ChatRoomParticipant,
                    and_(
                        ChatRoomParticipant.room_id == Message.room_id,
                        ChatRoomParticipant.username == username,
                    ),
                )
                .order_by(Message.room_id, Message.sequence)
            )
            grouped: dict[int, list[MessageRead]] = {}
            for message in session.execute(stmt).scalars():
                grouped.setdefault(message.room_id, []).append(serialize_message(message))
            return grouped

    def display_name(self, username: str) -> str | None:
        with session_scope(self._session_factory) as session:
            return session.execute(
                select(User.full_name).where(User.username == username)
            ).scalar_one_or_none()


def get_message_store() -> SqlMessageStore:
    return SqlMessageStore(SessionLocal)
