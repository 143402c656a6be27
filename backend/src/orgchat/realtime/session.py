"""Per-connection chat session state machine.

A session starts ``ANONYMOUS``, becomes ``AUTHENTICATED`` after ``login`` and
``SUBSCRIBED`` once a room history has been requested. Each inbound event is
handled to completion before the next frame of the same connection is read;
failures are reported to the initiating client as ``error`` events and never
close the connection.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, TYPE_CHECKING

from fastapi.websockets import WebSocket
from pydantic import ValidationError as PydanticValidationError

from . import protocol
from .errors import (
    AuthenticationFailure,
    ChatError,
    EmptyMessage,
    NotAuthenticated,
    NotParticipant,
    StoreUnavailable,
    ValidationError,
)
from .presence import PresenceRegistry
from .protocol import (
    LoginPayload,
    MarkReadPayload,
    RoomPayload,
    SendMessagePayload,
    TypingPayload,
    envelope,
    safe_send_json,
)
from .store import MessageStore, RoomDirectory
from .unread import UnreadCounter, reconcile_unread

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from app.config import Settings
    from app.schemas import ChatRoomRead, MessageRead


logger = logging.getLogger(__name__)

TokenVerifier = Callable[[str], str]


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    SUBSCRIBED = "subscribed"


def _describe_validation_error(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid payload"


class ChatSession:
    """Chat state of one websocket connection."""

    def __init__(
        self,
        websocket: WebSocket,
        *,
        registry: PresenceRegistry,
        store: MessageStore,
        rooms: RoomDirectory,
        settings: "Settings",
        verify_token: TokenVerifier | None = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.state = SessionState.ANONYMOUS
        self.username: str | None = None
        self.display_name: str | None = None
        self.subscribed_room_id: int | None = None
        self.unread = UnreadCounter()
        self._websocket = websocket
        self._registry = registry
        self._store = store
        self._rooms = rooms
        self._settings = settings
        self._verify_token = verify_token
        self._handlers: dict[str, Callable[[Any], Awaitable[None]]] = {
            protocol.LOGIN: self.login,
            protocol.GET_CHAT_HISTORY: self.select_room,
            protocol.SEND_MESSAGE: self.send_message,
            protocol.MARK_AS_READ: self.mark_read,
            protocol.TYPING_START: self.typing_start,
            protocol.TYPING_STOP: self.typing_stop,
            protocol.GET_UNREAD_COUNTS: self.request_unread_counts,
            protocol.PING: self.ping,
            protocol.PONG: self.pong,
        }

    def __repr__(self) -> str:
        return f"<ChatSession {self.id} user={self.username!r} state={self.state.value}>"

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------
    async def send(self, event: str, data: Any = None) -> bool:
        return await safe_send_json(self._websocket, envelope(event, data))

    async def _send_error(self, event: str | None, code: str, detail: str) -> None:
        await self.send(protocol.ERROR, {"event": event, "code": code, "detail": detail})

    async def _publish_unread(self, room_id: int, count: int) -> None:
        await self.send(protocol.UNREAD_COUNT_UPDATE, {"roomId": room_id, "count": count})

    async def open(self) -> None:
        await self._registry.attach(self)

    async def handle(self, event: str, data: Any) -> None:
        """Run one inbound event as a single unit of work."""

        handler = self._handlers.get(event)
        if handler is None:
            await self._send_error(event, "unsupported_event", f"Unsupported event '{event}'")
            return
        try:
            await handler(data)
        except StoreUnavailable as exc:
            logger.exception(
                "Store failure while handling %s for %s", event, self.username or "anonymous"
            )
            await self._send_error(event, exc.code, exc.detail)
        except ChatError as exc:
            logger.debug("Rejected %s from %s: %s", event, self.username or "anonymous", exc.detail)
            await self._send_error(event, exc.code, exc.detail)
        except PydanticValidationError as exc:
            await self._send_error(event, "validation_error", _describe_validation_error(exc))
        except Exception:
            logger.exception(
                "Unexpected failure while handling %s for %s", event, self.username or "anonymous"
            )
            await self._send_error(event, "internal_error", "Unexpected server error, please retry.")

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------
    def _require_login(self) -> str:
        if self.username is None:
            raise NotAuthenticated()
        return self.username

    def _load_room(self, room_id: int | None, username: str) -> "ChatRoomRead":
        if room_id is None:
            room_id = self.subscribed_room_id
        if room_id is None:
            raise ValidationError("roomId is required")
        room = self._rooms.get(room_id)
        if username not in room.participants:
            raise NotParticipant()
        return room

    @staticmethod
    def _ensure_self(claimed: str | None, username: str, field_name: str) -> None:
        if claimed is not None and claimed != username:
            raise ValidationError(f"{field_name} does not match the logged in user")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    async def login(self, data: Any) -> None:
        payload = LoginPayload.model_validate(data)
        username = payload.username
        if self._settings.chat_socket_token_required:
            if not payload.token or self._verify_token is None:
                raise AuthenticationFailure("A token is required to log in")
            if self._verify_token(payload.token) != username:
                raise AuthenticationFailure()

        if self.username is not None and self.username != username:
            await self._registry.unregister(self.username, self)
            self.subscribed_room_id = None

        self.username = username
        if self.subscribed_room_id is None:
            self.state = SessionState.AUTHENTICATED
        await self._registry.register(username, self)
        logger.info("%s logged in (session %s)", username, self.id)

        self.display_name = self._store.display_name(username) or username
        rooms = self._rooms.rooms_for_user(username)
        await self.send(protocol.CHAT_ROOM_LIST, [room.to_wire() for room in rooms])

        self.unread.replace(reconcile_unread(self._store, username, [room.id for room in rooms]))
        await self.send(protocol.INITIAL_UNREAD_COUNTS, self.unread.snapshot())

        if self._settings.chat_bootstrap_full_history:
            history = self._store.all_messages_for_user(username)
            await self.send(
                protocol.ALL_MESSAGES_HISTORY,
                {
                    str(room_id): [message.to_wire() for message in messages]
                    for room_id, messages in history.items()
                },
            )

    async def select_room(self, data: Any) -> None:
        username = self._require_login()
        payload = RoomPayload.model_validate(data)
        room = self._load_room(payload.room_id, username)
        messages = self._store.history(room.id)
        self.subscribed_room_id = room.id
        self.state = SessionState.SUBSCRIBED
        await self.send(protocol.CHAT_HISTORY, [message.to_wire() for message in messages])
        await self._publish_unread(room.id, self.unread.clear(room.id))

    async def send_message(self, data: Any) -> None:
        username = self._require_login()
        payload = SendMessagePayload.model_validate(data)
        self._ensure_self(payload.sender, username, "sender")

        content = payload.content
        if not content.strip():
            raise EmptyMessage()
        max_length = self._settings.chat_message_max_length
        if len(content) > max_length:
            raise ValidationError(f"Message exceeds maximum length of {max_length} characters")

        room = self._load_room(payload.room_id, username)
        result = self._store.append(
            room.id,
            sender=username,
            sender_full_name=payload.sender_full_name or self.display_name or username,
            content=content,
            timestamp=payload.timestamp or datetime.now(timezone.utc),
            client_message_id=payload.client_message_id,
        )
        message = result.message
        await self.send(
            protocol.MESSAGE_SENT,
            {"clientMessageId": payload.client_message_id, "message": message.to_wire()},
        )
        if not result.created:
            logger.debug("Duplicate send %s from %s acknowledged", payload.client_message_id, username)
            return

        for participant in room.participants:
            if participant == username:
                continue
            recipient = await self._registry.lookup(participant)
            if recipient is not None:
                await recipient.deliver_message(message)

    async def deliver_message(self, message: "MessageRead") -> None:
        """Push a message posted by another participant to this connection."""

        if self.subscribed_room_id != message.room_id:
            await self._publish_unread(message.room_id, self.unread.increment(message.room_id))
        await self.send(protocol.RECEIVE_MESSAGE, message.to_wire())

    async def mark_read(self, data: Any) -> None:
        username = self._require_login()
        payload = MarkReadPayload.model_validate(data)
        self._ensure_self(payload.reader_username, username, "readerUsername")
        room = self._load_room(payload.room_id, username)

        receipt = self._store.mark_read(room.id, username)
        remaining = reconcile_unread(self._store, username, [room.id]).get(room.id, 0)
        await self._publish_unread(room.id, self.unread.set(room.id, remaining))
        if receipt.count == 0:
            return

        notice = {
            "readerUsername": username,
            "roomId": room.id,
            "lastReadSequence": receipt.last_read_sequence,
        }
        for sender in receipt.senders:
            if sender == username:
                continue
            connection = await self._registry.lookup(sender)
            if connection is not None:
                await connection.send(protocol.MESSAGES_READ, notice)

    async def typing_start(self, data: Any) -> None:
        await self._relay_typing(data, protocol.USER_TYPING)

    async def typing_stop(self, data: Any) -> None:
        await self._relay_typing(data, protocol.USER_STOPPED_TYPING)

    async def _relay_typing(self, data: Any, event: str) -> None:
        username = self._require_login()
        payload = TypingPayload.model_validate(data)
        self._ensure_self(payload.sender, username, "sender")
        room = self._load_room(payload.room_id, username)
        notice = {"sender": username, "roomId": room.id}
        for participant in room.participants:
            if participant == username:
                continue
            connection = await self._registry.lookup(participant)
            if connection is not None:
                await connection.send(event, notice)

    async def request_unread_counts(self, data: Any) -> None:
        username = self._require_login()
        rooms = self._rooms.rooms_for_user(username)
        self.unread.replace(reconcile_unread(self._store, username, [room.id for room in rooms]))
        await self.send(protocol.INITIAL_UNREAD_COUNTS, self.unread.snapshot())

    async def ping(self, data: Any) -> None:
        await self.send(protocol.PONG)

    async def pong(self, data: Any) -> None:
        # Answer to a keepalive ping; receiving it is enough.
        return None

    async def disconnect(self) -> None:
        await self._registry.detach(self)
        if self.username is not None:
            if await self._registry.unregister(self.username, self):
                logger.info("%s disconnected (session %s)", self.username, self.id)
        self.username = None
        self.subscribed_room_id = None
        self.state = SessionState.ANONYMOUS
