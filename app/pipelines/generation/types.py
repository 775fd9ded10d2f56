"""Typed containers shared across the generation pipeline.

These live in their own module so the other stages (`prompts`, `parsing`,
`fallback`, `orchestrator`) can import them without circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel

from app.models.lesson import ProficiencyLevel


class GenerationKind(str, Enum):
    LESSON = "LESSON"
    QUIZ = "QUIZ"
    CONVERSATION_PROMPT = "CONVERSATION_PROMPT"
    CONVERSATION_REPLY = "CONVERSATION_REPLY"
    PRONUNCIATION_FEEDBACK = "PRONUNCIATION_FEEDBACK"


class ParseFailureReason(str, Enum):
    NO_VALID_JSON = "NO_VALID_JSON"
    SHAPE_INVALID = "SHAPE_INVALID"


class GenerationErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    PARSE_FAILURE = "PARSE_FAILURE"
    SHAPE_INVALID = "SHAPE_INVALID"
    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"


class GenerationError(RuntimeError):
    """Request-level failure raised by the orchestrator."""

    def __init__(self, code: GenerationErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True)
class GenerationRequest:
    """One learner action asking for generated content.

    ``topic`` doubles as the scenario for conversation prompts.
    """

    kind: GenerationKind
    language_id: Optional[str] = None
    level: ProficiencyLevel = ProficiencyLevel.BEGINNER
    topic: Optional[str] = None
    lesson_id: Optional[str] = None
    target_text: Optional[str] = None
    audio_payload: Optional[bytes] = None
    question_count: Optional[int] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class LanguageInfo:
    id: str
    name: str
    code: str


@dataclass(frozen=True)
class PromptBundle:
    system_prompt: str
    user_prompt: str
    max_tokens: int


@dataclass(frozen=True)
class ParsedContent:
    kind: GenerationKind
    content: BaseModel


@dataclass(frozen=True)
class ParseFailure:
    reason: ParseFailureReason
    detail: str = ""


ParseResult = Union[ParsedContent, ParseFailure]


@dataclass(frozen=True)
class QuizOutcome:
    quiz_id: str
    lesson_id: str
    questions: list[dict[str, Any]]
    created: bool


@dataclass(frozen=True)
class LessonOutcome:
    lesson: dict[str, Any]
    progress: dict[str, Any]
    quiz: Optional[QuizOutcome]
    quiz_error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.quiz is None


@dataclass(frozen=True)
class ConversationOutcome:
    conversation_id: str
    language_id: str
    level: ProficiencyLevel
    scenario: str
    content: dict[str, Any]
    fallback: bool


@dataclass(frozen=True)
class ReplyOutcome:
    response: str


@dataclass(frozen=True)
class FeedbackOutcome:
    record_id: str
    feedback: dict[str, Any]
    fallback: bool


__all__ = [
    "GenerationKind",
    "ParseFailureReason",
    "GenerationErrorCode",
    "GenerationError",
    "GenerationRequest",
    "LanguageInfo",
    "PromptBundle",
    "ParsedContent",
    "ParseFailure",
    "ParseResult",
    "QuizOutcome",
    "LessonOutcome",
    "ConversationOutcome",
    "ReplyOutcome",
    "FeedbackOutcome",
]
