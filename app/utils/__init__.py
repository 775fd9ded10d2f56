"""Utility helpers for the LangoSpark backend."""

from .security import (
    AuthenticationError,
    create_access_token,
    decode_access_token,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "hash_password",
    "verify_password",
    "needs_rehash",
    "create_access_token",
    "decode_access_token",
    "AuthenticationError",
]
