"""Row-to-payload helpers for the persistence stage of the generation pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from app.models import LearningProgress, Lesson

DEFAULT_SCENARIO = "General conversation"
LESSON_DESCRIPTION = "AI-generated lesson"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def lesson_title(topic: Optional[str], level: str, language_name: str) -> str:
    return topic or f"{level} {language_name} Lesson"


def lesson_payload(lesson: Lesson) -> dict[str, Any]:
    return {
        "id": lesson.id,
        "title": lesson.title,
        "description": lesson.description,
        "languageId": lesson.language_id,
        "level": lesson.level.value,
        "content": lesson.content,
        "createdAt": _iso(lesson.created_at),
    }


def progress_payload(progress: LearningProgress) -> dict[str, Any]:
    return {
        "id": progress.id,
        "userId": progress.user_id,
        "lessonId": progress.lesson_id,
        "score": progress.score,
        "completed": progress.completed,
    }


__all__ = [
    "DEFAULT_SCENARIO",
    "LESSON_DESCRIPTION",
    "lesson_title",
    "lesson_payload",
    "progress_payload",
]
