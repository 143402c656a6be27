"""Chat room endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_current_user
from app.models import User
from app.schemas import ChatRoomCreate, ChatRoomRead
from app.services import RoomResolver, get_room_resolver
from orgchat.realtime import InvalidParticipants, StoreUnavailable

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/room", response_model=ChatRoomRead)
def find_or_create_room(
    payload: ChatRoomCreate,
    rooms: RoomResolver = Depends(get_room_resolver),
) -> ChatRoomRead:
    """Return the room of exactly these participants, creating it on first use."""

    try:
        return rooms.find_or_create(payload.participants, payload.created_by, payload.name)
    except InvalidParticipants as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.detail) from exc
    except StoreUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.detail) from exc


@router.get("/rooms", response_model=list[ChatRoomRead])
def list_my_rooms(
    current_user: User = Depends(get_current_user),
    rooms: RoomResolver = Depends(get_room_resolver),
) -> list[ChatRoomRead]:
    try:
        return rooms.rooms_for_user(current_user.username)
    except StoreUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.detail) from exc
