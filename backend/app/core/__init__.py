"""Core utilities for the OrgChat backend."""

from .security import create_access_token, decode_access_token, get_password_hash, token_subject, verify_password

__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_password_hash",
    "token_subject",
    "verify_password",
]
