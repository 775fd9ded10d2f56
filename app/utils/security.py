"""Security helpers for password management and JWT handling.

Password hashes are stored as ``pbkdf2_sha256$<iterations>$<salt>$<digest>``
so the work factor can be raised without invalidating existing accounts.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from app.config.settings import settings
from app.models.user import User

_SCHEME = "pbkdf2_sha256"
_SALT_BYTES = 16
_ITERATIONS = 120_000


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def hash_password(password: str, *, iterations: int = _ITERATIONS) -> str:
    """Return a salted PBKDF2 hash for the supplied password."""

    salt = os.urandom(_SALT_BYTES)
    derived = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{_SCHEME}${iterations}${_b64(salt)}${_b64(derived)}"


def verify_password(password: str, hashed: str) -> bool:
    """Check whether the provided password matches the stored hash."""

    try:
        scheme, iterations, salt_b64, digest_b64 = hashed.split("$")
        if scheme != _SCHEME:
            return False
        salt = base64.b64decode(salt_b64)
        stored = base64.b64decode(digest_b64)
        rounds = int(iterations)
    except (ValueError, TypeError):
        return False

    candidate = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(candidate, stored)


def needs_rehash(hashed: str) -> bool:
    """True when ``hashed`` was produced with fewer rounds than the current default."""

    try:
        scheme, iterations, _, _ = hashed.split("$")
        return scheme != _SCHEME or int(iterations) < _ITERATIONS
    except ValueError:
        return True


class AuthenticationError(Exception):
    """Raised when a JWT cannot be decoded or is otherwise invalid."""


class TokenPayload(BaseModel):
    """Minimal payload structure embedded in JWT access tokens."""

    sub: str
    exp: datetime
    user: dict[str, Any] | None = None
    iat: datetime | None = None

    @property
    def learner_id(self) -> int:
        """Numeric user id carried in ``sub``."""

        try:
            return int(self.sub)
        except ValueError as exc:
            raise AuthenticationError("Token subject is not a learner id") from exc


def create_access_token(
    subject: str,
    user: User | None = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Generate a signed JWT access token for the provided subject."""

    now = datetime.now(timezone.utc)
    expires_delta = expires_delta or timedelta(
        minutes=settings.security.access_token_expires_minutes
    )
    expire_at = now + expires_delta
    to_encode: dict[str, Any] = {"sub": subject, "exp": expire_at, "iat": now}

    if user is not None:
        to_encode["user"] = {
            "id": user.id,
            "name": user.name,
            "email": user.email,
        }

    secret = settings.security.jwt_secret_key.get_secret_value()
    return jwt.encode(
        to_encode,
        secret,
        algorithm=settings.security.jwt_algorithm,
    )


def decode_access_token(token: str) -> TokenPayload:
    """Decode and validate a JWT access token, returning its payload."""

    secret = settings.security.jwt_secret_key.get_secret_value()
    try:
        payload = jwt.decode(
            token, secret, algorithms=[settings.security.jwt_algorithm]
        )
        return TokenPayload.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        raise AuthenticationError("Invalid authentication token") from exc


__all__ = [
    "hash_password",
    "verify_password",
    "needs_rehash",
    "create_access_token",
    "decode_access_token",
    "AuthenticationError",
]
