"""Error taxonomy shared by the realtime chat core."""

from __future__ import annotations


class ChatError(Exception):
    """Base class for failures reported back to the initiating client."""

    code = "chat_error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.__class__.__doc__ or self.code
        super().__init__(self.detail)


class InvalidParticipants(ChatError):
    """A room needs at least two distinct participants."""

    code = "invalid_participants"


class ValidationError(ChatError):
    """Malformed event payload."""

    code = "validation_error"


class EmptyMessage(ValidationError):
    """Message body must not be empty."""

    code = "empty_message"


class NotAuthenticated(ChatError):
    """Login is required before this event."""

    code = "not_authenticated"


class AuthenticationFailure(ChatError):
    """Could not validate credentials."""

    code = "authentication_failed"


class RoomNotFound(ChatError):
    """Chat room not found."""

    code = "room_not_found"


class NotParticipant(ChatError):
    """Not a participant of this chat room."""

    code = "not_participant"


class StoreUnavailable(ChatError):
    """Temporary storage failure, please retry."""

    code = "store_unavailable"
