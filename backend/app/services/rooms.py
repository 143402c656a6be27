"""Room resolution: one room per exact set of participants."""

from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from app.database import SessionLocal
from app.models import ChatRoom, ChatRoomParticipant, canonical_participants, participant_key
from app.schemas import ChatRoomRead
from app.services.store import session_scope
from orgchat.realtime import InvalidParticipants, RoomNotFound

logger = logging.getLogger(__name__)


def serialize_room(room: ChatRoom) -> ChatRoomRead:
    return ChatRoomRead(
        id=room.id,
        name=room.name,
        participants=room.usernames,
        is_group=room.is_group,
        created_by=room.created_by,
        created_at=room.created_at,
        updated_at=room.updated_at,
    )


class RoomResolver:
    """Finds the room of a participant set, creating it on first use."""

    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _by_key(session: Session, key: str) -> ChatRoom | None:
        stmt = (
            select(ChatRoom)
            .where(ChatRoom.participant_key == key)
            .options(selectinload(ChatRoom.participants))
        )
        return session.execute(stmt).scalar_one_or_none()

    def find_or_create(
        self, participants: Sequence[str], created_by: str, name: str | None = None
    ) -> ChatRoomRead:
        usernames = canonical_participants(participants)
        if len(usernames) < 2:
            raise InvalidParticipants()
        key = participant_key(usernames)

        with session_scope(self._session_factory) as session:
            room = self._by_key(session, key)
            if room is not None:
                return serialize_room(room)

            room = ChatRoom(
                name=name.strip() if name and name.strip() else None,
                participant_key=key,
                is_group=len(usernames) > 2,
                created_by=created_by.strip(),
                last_sequence=0,
            )
            room.participants = [ChatRoomParticipant(username=username) for username in usernames]
            session.add(room)
            try:
                session.commit()
            except IntegrityError:
                # Another request created the same participant set first.
                session.rollback()
                room = self._by_key(session, key)
                if room is None:
                    raise
                return serialize_room(room)

            session.refresh(room)
            logger.info("Created chat room %s for %s", room.id, ", ".join(usernames))
            return serialize_room(room)

    def get(self, room_id: int) -> ChatRoomRead:
        with session_scope(self._session_factory) as session:
            stmt = (
                select(ChatRoom)
                .where(ChatRoom.id == room_id)
                .options(selectinload(ChatRoom.participants))
            )
            room = session.execute(stmt).scalar_one_or_none()
            if room is None:
                raise RoomNotFound()
            return serialize_room(room)

    def rooms_for_user(self, username: str) -> list[ChatRoomRead]:
        with session_scope(self._session_factory) as session:
            stmt = (
                select(ChatRoom)
                .join(ChatRoomParticipant, ChatRoomParticipant.room_id == ChatRoom.id)
                .where(ChatRoomParticipant.username == username)
                .options(selectinload(ChatRoom.participants))
                .order_by(ChatRoom.updated_at.desc(), ChatRoom.id.desc())
            )
            return [serialize_room(room) for room in session.execute(stmt).scalars()]


def get_room_resolver() -> RoomResolver:
    return RoomResolver(SessionLocal)
