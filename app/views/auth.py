"""Pydantic schemas related to authentication."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class LoginRequest(BaseModel):
    """Credentials submitted to obtain an access token."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


class RegisterRequest(BaseModel):
    """Payload used to create a learner account."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=1, max_length=100)


class AuthUser(BaseModel):
    id: int
    email: EmailStr
    name: str

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Standard access token response body."""

    success: bool = True
    access_token: str = Field(serialization_alias="token")
    token_type: str = Field(default="bearer", serialization_alias="tokenType")
    expires_in: int = Field(
        default=0,
        serialization_alias="expiresIn",
        description="Seconds until the token expires",
    )
    user: AuthUser


__all__ = [
    "AuthUser",
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
]
