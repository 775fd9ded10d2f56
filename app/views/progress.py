"""Pydantic schemas for learning progress endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.lesson import ProficiencyLevel


class UpdateProgressRequest(BaseModel):
    lesson_id: str = Field(alias="lessonId", min_length=1)
    score: float = Field(ge=0.0, le=100.0)
    completed: bool

    model_config = ConfigDict(populate_by_name=True)


class ProgressUpdateResponse(BaseModel):
    success: bool = True
    message: str = "Progress updated successfully"
    data: dict[str, Any]


class LessonSummary(BaseModel):
    id: str
    title: str
    level: ProficiencyLevel
    description: Optional[str] = None


class LessonProgressState(BaseModel):
    completed: bool = False
    score: float = 0.0


class LessonProgressItem(BaseModel):
    lesson: LessonSummary
    progress: LessonProgressState


class LanguageProgressResponse(BaseModel):
    success: bool = True
    data: list[LessonProgressItem]


__all__ = [
    "UpdateProgressRequest",
    "ProgressUpdateResponse",
    "LessonSummary",
    "LessonProgressState",
    "LessonProgressItem",
    "LanguageProgressResponse",
]
