"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import SessionFactory, get_session
from app.models.user import User as UserModel
from app.pipelines.generation import GenerationOrchestrator
from app.services.llm_client import BedrockLlmClient
from app.utils import AuthenticationError, decode_access_token

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: SessionDep,
) -> UserModel:
    """Resolve and validate the user referenced by the bearer token."""

    try:
        payload = decode_access_token(token)
        user_id = payload.learner_id
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from None

    result = await session.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return user


CurrentUserDep = Annotated[UserModel, Depends(get_current_user)]


@lru_cache(maxsize=1)
def get_orchestrator() -> GenerationOrchestrator:
    """Build the process-wide orchestrator on first use."""

    llm = BedrockLlmClient()
    if not llm.available:
        logger.warning("Bedrock client unavailable; generation requests will fail")
    return GenerationOrchestrator(llm, SessionFactory)


OrchestratorDep = Annotated[GenerationOrchestrator, Depends(get_orchestrator)]


__all__ = [
    "get_current_user",
    "get_orchestrator",
    "oauth2_scheme",
    "SessionDep",
    "CurrentUserDep",
    "OrchestratorDep",
]
