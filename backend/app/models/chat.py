from __future__ import annotations

import hashlib
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from app.models.directory import BusinessSite, Company, Department, Position


def canonical_participants(usernames: Iterable[str]) -> list[str]:
    """Return the de-duplicated, lexicographically sorted participant list."""

    return sorted({name.strip() for name in usernames if name and name.strip()})


def participant_key(usernames: Iterable[str]) -> str:
    """Digest identifying an exact participant set regardless of input order."""

    joined = "\n".join(canonical_participants(usernames))
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


class User(Base):
    """Account known to the credentials collaborator."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(128), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(32), unique=True)
    company_id: Mapped[int | None] = mapped_column(
        ForeignKey("companies.id", ondelete="SET NULL")
    )
    business_site_id: Mapped[int | None] = mapped_column(
        ForeignKey("business_sites.id", ondelete="SET NULL")
    )
    department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL")
    )
    position_id: Mapped[int | None] = mapped_column(
        ForeignKey("positions.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    company: Mapped["Company | None"] = relationship()
    business_site: Mapped["BusinessSite | None"] = relationship()
    department: Mapped["Department | None"] = relationship()
    position: Mapped["Position | None"] = relationship()


class ChatRoom(Base):
    """Conversation among a fixed set of two or more participants."""

    __tablename__ = "chat_rooms"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str | None] = mapped_column(String(128))
    participant_key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    is_group: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    last_sequence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    participants: Mapped[list["ChatRoomParticipant"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="ChatRoomParticipant.username",
    )
    messages: Mapped[list["Message"]] = relationship(
        back_populates="room",
        cascade="all, delete-orphan",
        order_by="Message.sequence",
    )

    @property
    def usernames(self) -> list[str]:
        return [participant.username for participant in self.participants]

    def membership(self, username: str) -> "ChatRoomParticipant | None":
        return next(
            (participant for participant in self.participants if participant.username == username),
            None,
        )


class ChatRoomParticipant(Base):
    """Membership of a user in a room together with their read position."""

    __tablename__ = "chat_room_participants"
    __table_args__ = (
        UniqueConstraint("room_id", "username", name="uq_chat_room_participant"),
        Index("ix_chat_room_participants_username", "username"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    room_id: Mapped[int] = mapped_column(
        ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False
    )
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    last_read_sequence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    room: Mapped[ChatRoom] = relationship(back_populates="participants")


class Message(Base):
    """Text message posted to a room."""

    __tablename__ = "messages"
    __table_args__ = (
        UniqueConstraint("room_id", "sequence", name="uq_message_room_sequence"),
        UniqueConstraint(
            "room_id", "sender", "client_message_id", name="uq_message_client_id"
        ),
        Index("ix_messages_room_sequence", "room_id", "sequence"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    room_id: Mapped[int] = mapped_column(
        ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    sender: Mapped[str] = mapped_column(String(64), nullable=False)
    sender_full_name: Mapped[str] = mapped_column(String(128), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    client_message_id: Mapped[str | None] = mapped_column(String(64))

    room: Mapped[ChatRoom] = relationship(back_populates="messages")
