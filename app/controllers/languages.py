"""Language catalogue controller."""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import select

from app.controllers.dependencies import SessionDep
from app.models import Language
from app.views import LanguageListResponse, LanguageView

router = APIRouter(prefix="/api/languages", tags=["languages"])


@router.get("/list", response_model=LanguageListResponse)
async def list_languages(session: SessionDep) -> LanguageListResponse:
    """Return every language learners can pick, ordered by name."""

    result = await session.execute(select(Language).order_by(Language.name))
    languages = result.scalars().all()
    return LanguageListResponse(
        data=[LanguageView.model_validate(language) for language in languages]
    )
