"""Learning progress controller."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from sqlalchemy import select

from app.controllers.dependencies import CurrentUserDep, SessionDep
from app.models import LearningProgress, Lesson
from app.pipelines.generation import progress_payload
from app.views import (
    LanguageProgressResponse,
    LessonProgressItem,
    LessonProgressState,
    LessonSummary,
    ProgressUpdateResponse,
    UpdateProgressRequest,
)

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.post("/lesson", response_model=ProgressUpdateResponse)
async def update_lesson_progress(
    payload: UpdateProgressRequest,
    current_user: CurrentUserDep,
    session: SessionDep,
) -> ProgressUpdateResponse:
    """Create or update the caller's progress for one lesson."""

    lesson = await session.get(Lesson, payload.lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")

    result = await session.execute(
        select(LearningProgress).where(
            LearningProgress.user_id == current_user.id,
            LearningProgress.lesson_id == lesson.id,
        )
    )
    progress = result.scalar_one_or_none()
    if progress is None:
        progress = LearningProgress(user_id=current_user.id, lesson_id=lesson.id)
        session.add(progress)

    progress.score = payload.score
    progress.completed = payload.completed
    await session.commit()

    return ProgressUpdateResponse(data=progress_payload(progress))


@router.get("/language/{language_id}", response_model=LanguageProgressResponse)
async def get_language_progress(
    language_id: str,
    current_user: CurrentUserDep,
    session: SessionDep,
) -> LanguageProgressResponse:
    """List every lesson of a language with the caller's progress on it."""

    lessons = (
        await session.execute(
            select(Lesson)
            .where(Lesson.language_id == language_id)
            .order_by(Lesson.created_at, Lesson.id)
        )
    ).scalars().all()

    rows = (
        await session.execute(
            select(LearningProgress).where(
                LearningProgress.user_id == current_user.id,
                LearningProgress.lesson_id.in_([lesson.id for lesson in lessons]),
            )
        )
    ).scalars().all()
    by_lesson = {row.lesson_id: row for row in rows}

    items = []
    for lesson in lessons:
        row = by_lesson.get(lesson.id)
        state = (
            LessonProgressState(completed=row.completed, score=row.score)
            if row is not None
            else LessonProgressState()
        )
        items.append(
            LessonProgressItem(
                lesson=LessonSummary(
                    id=lesson.id,
                    title=lesson.title,
                    level=lesson.level,
                    description=lesson.description,
                ),
                progress=state,
            )
        )
    return LanguageProgressResponse(data=items)
