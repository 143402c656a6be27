"""WebSocket endpoint for real-time chat communication."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Dict, TypeVar

from fastapi import APIRouter, Depends, WebSocket
from fastapi.exceptions import HTTPException
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from app.config import Settings, get_settings
from app.core.security import token_subject
from app.services import RoomResolver, SqlMessageStore, get_message_store, get_room_resolver
from orgchat.realtime import (
    AuthenticationFailure,
    ChatSession,
    PresenceRegistry,
    get_presence_registry,
)
from orgchat.realtime.protocol import ERROR, PING, envelope, safe_send_json

router = APIRouter(prefix="/ws", tags=["ws"])

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def iter_keepalive_messages(
    websocket: WebSocket,
    receiver: Callable[[], Awaitable[T]],
    *,
    timeout_seconds: float | int | None,
    ping_interval_seconds: float | int | None,
    ping_payload: Dict[str, Any] | None = None,
) -> AsyncIterator[T]:
    """Yield messages from *receiver* while sending keepalive pings when idle."""

    ping_payload = ping_payload or envelope(PING)
    timeout = float(timeout_seconds) if timeout_seconds else 0.0
    interval = float(ping_interval_seconds) if ping_interval_seconds else 0.0
    last_activity = time.monotonic()
    last_ping_sent: float | None = None

    while True:
        try:
            if timeout > 0:
                message = await asyncio.wait_for(receiver(), timeout=timeout)
            else:
                message = await receiver()
        except asyncio.TimeoutError:
            if websocket.application_state != WebSocketState.CONNECTED:
                break

            now = time.monotonic()
            should_ping = interval <= 0 or (
                now - last_activity >= interval
                and (last_ping_sent is None or now - last_ping_sent >= interval)
            )
            if should_ping:
                if not await safe_send_json(websocket, ping_payload):
                    break
                last_ping_sent = now
            continue
        except asyncio.CancelledError:  # pragma: no cover - cooperative cancellation
            raise
        except (RuntimeError, WebSocketDisconnect):
            break
        else:
            last_activity = time.monotonic()
            last_ping_sent = None
            yield message


def verify_socket_token(token: str) -> str:
    """Map a JWT to its username for the socket ``login`` event."""

    try:
        return token_subject(token)
    except HTTPException as exc:
        raise AuthenticationFailure(str(exc.detail)) from exc


def parse_frame(raw: str) -> tuple[str, Any]:
    """Split a raw text frame into its event name and payload.

    Raises ``ValueError`` with a client-facing message for malformed frames.
    """

    try:
        frame = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid message format") from exc
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        raise ValueError("Frames must be JSON objects with an 'event' name")
    return frame["event"], frame.get("data")


@router.websocket("/chat")
async def websocket_chat(
    websocket: WebSocket,
    registry: PresenceRegistry = Depends(get_presence_registry),
    store: SqlMessageStore = Depends(get_message_store),
    rooms: RoomResolver = Depends(get_room_resolver),
    settings: Settings = Depends(get_settings),
) -> None:
    await websocket.accept()
    session = ChatSession(
        websocket,
        registry=registry,
        store=store,
        rooms=rooms,
        settings=settings,
        verify_token=verify_socket_token,
    )
    await session.open()
    logger.debug("Chat socket %s opened", session.id)

    try:
        async for raw in iter_keepalive_messages(
            websocket,
            websocket.receive_text,
            timeout_seconds=settings.websocket_keepalive_timeout_seconds,
            ping_interval_seconds=settings.websocket_keepalive_ping_interval_seconds,
        ):
            try:
                event, data = parse_frame(raw)
            except ValueError as exc:
                await session.send(ERROR, {"event": None, "code": "invalid_frame", "detail": str(exc)})
                continue
            await session.handle(event, data)
    finally:
        await session.disconnect()
        logger.debug("Chat socket %s closed", session.id)
