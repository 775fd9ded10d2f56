"""Authentication controller providing register and login endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.config.settings import settings
from app.controllers.dependencies import SessionDep
from app.models.user import User as UserModel
from app.telemetry import increment_login
from app.utils import create_access_token, hash_password, needs_rehash, verify_password
from app.views import AuthUser, LoginRequest, RegisterRequest, TokenResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user: UserModel) -> TokenResponse:
    access_token = create_access_token(subject=str(user.id), user=user)
    expires_in = settings.security.access_token_expires_minutes * 60
    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=AuthUser.model_validate(user),
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    session: SessionDep,
) -> TokenResponse:
    """Create a learner account and return an access token for it."""

    result = await session.execute(
        select(UserModel).where(UserModel.email == payload.email)
    )
    if result.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail="User already exists")

    user = UserModel(
        email=payload.email,
        name=payload.name,
        password_hash=hash_password(payload.password),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(status_code=400, detail="User already exists") from exc

    await session.refresh(user)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    session: SessionDep,
) -> TokenResponse:
    """Validate credentials and issue a JWT access token."""

    result = await session.execute(
        select(UserModel).where(UserModel.email == payload.email)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
        await session.commit()

    increment_login()
    return _token_response(user)
