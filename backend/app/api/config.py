"""Configuration endpoints for exposing runtime options to the frontend."""

from __future__ import annotations

from fastapi import APIRouter

from app.config import get_settings

router = APIRouter(prefix="/config", tags=["config"])


@router.get("/chat")
def read_chat_config() -> dict[str, object]:
    """Expose the limits the chat client enforces locally."""

    settings = get_settings()
    return {
        "typingTimeoutMs": settings.chat_typing_timeout_ms,
        "messageMaxLength": settings.chat_message_max_length,
    }
