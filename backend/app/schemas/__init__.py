"""Pydantic schemas for API payloads."""

from .auth import LoginRequest, Token, UserCreate, UserRead
from .directory import BusinessSiteRead, CompanyRead, DepartmentRead, OrgUnitRef, PositionRead
from .messages import MessageRead
from .rooms import ChatRoomCreate, ChatRoomRead

__all__ = [
    "LoginRequest",
    "Token",
    "UserCreate",
    "UserRead",
    "OrgUnitRef",
    "CompanyRead",
    "BusinessSiteRead",
    "DepartmentRead",
    "PositionRead",
    "MessageRead",
    "ChatRoomCreate",
    "ChatRoomRead",
]
