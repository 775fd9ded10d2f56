"""Pydantic schemas for the AI lesson generation endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.lesson import ProficiencyLevel


def strip_data_url(value: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix if the client sent one."""

    data = value.strip()
    if data.startswith("data:") and "," in data:
        return data.split(",", 1)[1]
    return data


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class GenerateLessonRequest(_Request):
    language_id: str = Field(alias="languageId", min_length=1)
    level: ProficiencyLevel
    topic: Optional[str] = Field(default=None, max_length=200)


class GenerateQuizRequest(_Request):
    lesson_id: str = Field(alias="lessonId", min_length=1)
    number_of_questions: Optional[int] = Field(
        default=None,
        alias="numberOfQuestions",
        ge=1,
        le=20,
    )


class ConversationPromptRequest(_Request):
    language_id: str = Field(alias="languageId", min_length=1)
    level: ProficiencyLevel = ProficiencyLevel.BEGINNER
    scenario: Optional[str] = Field(default=None, max_length=200)


class ConversationMessageRequest(_Request):
    language_id: str = Field(alias="languageId", min_length=1)
    message: str = Field(min_length=1, max_length=2000)


class PronunciationFeedbackRequest(_Request):
    language_id: str = Field(alias="languageId", min_length=1)
    audio_data: str = Field(alias="audioData", min_length=1)
    target_text: str = Field(alias="targetText", min_length=1, max_length=500)
    level: ProficiencyLevel = ProficiencyLevel.BEGINNER


class QuizView(BaseModel):
    id: str
    lesson_id: str = Field(serialization_alias="lessonId")
    questions: list[dict[str, Any]]
    created: bool = True


class LessonResponse(BaseModel):
    success: bool = True
    lesson: dict[str, Any]
    progress: dict[str, Any]
    quiz: Optional[QuizView] = None
    degraded: bool = False
    warnings: list[str] = Field(default_factory=list)


class QuizResponse(BaseModel):
    success: bool = True
    quiz: QuizView


class ConversationView(BaseModel):
    id: str
    language_id: str = Field(serialization_alias="languageId")
    level: ProficiencyLevel
    scenario: str
    content: dict[str, Any]
    fallback: bool = False


class ConversationResponse(BaseModel):
    success: bool = True
    conversation: ConversationView


class ConversationReplyData(BaseModel):
    response: str


class ConversationReplyResponse(BaseModel):
    success: bool = True
    data: ConversationReplyData


class PronunciationFeedbackResponse(BaseModel):
    success: bool = True
    feedback: dict[str, Any]
    record_id: str = Field(serialization_alias="recordId")
    fallback: bool = False


class LessonDetailResponse(BaseModel):
    success: bool = True
    lesson: dict[str, Any]
    quiz: Optional[QuizView] = None


__all__ = [
    "strip_data_url",
    "GenerateLessonRequest",
    "GenerateQuizRequest",
    "ConversationPromptRequest",
    "ConversationMessageRequest",
    "PronunciationFeedbackRequest",
    "QuizView",
    "LessonResponse",
    "QuizResponse",
    "ConversationView",
    "ConversationResponse",
    "ConversationReplyData",
    "ConversationReplyResponse",
    "PronunciationFeedbackResponse",
    "LessonDetailResponse",
]
