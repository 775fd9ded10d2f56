"""Pydantic models for validating LLM JSON responses.

Every generation kind has a fixed content contract. Parsed model output is
run through these schemas so downstream code (persistence, HTTP views)
only ever sees normalized, type-safe objects. Field types are strict: the
model must send strings where strings are expected, and numbers that are
real numbers (not booleans, not numeric strings).
"""

from __future__ import annotations

import math
from typing import Any, Annotated, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)


def _require_number(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    if not math.isfinite(value):
        raise ValueError("must be a finite number")
    return float(value)


class _Contract(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used on the wire and in storage."""

        return self.model_dump(by_alias=True, exclude_none=True)


class VocabularyEntry(_Contract):
    word: StrictStr
    translation: StrictStr
    example: StrictStr


class LessonContent(_Contract):
    vocabulary: list[VocabularyEntry]
    grammar: StrictStr
    examples: list[StrictStr]
    exercises: list[StrictStr]
    cultural_notes: StrictStr = Field(alias="culturalNotes")


class QuizQuestion(_Contract):
    question: StrictStr
    options: Annotated[list[StrictStr], Field(min_length=2)]
    correct_answer: StrictInt = Field(alias="correctAnswer")
    explanation: Optional[StrictStr] = None

    @field_validator("correct_answer", mode="before")
    @classmethod
    def reject_boolean_index(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be an integer index")
        return value

    @model_validator(mode="after")
    def check_answer_index(self) -> "QuizQuestion":
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError(
                f"correctAnswer {self.correct_answer} is not an index into "
                f"{len(self.options)} options"
            )
        return self


class QuizContent(_Contract):
    questions: Annotated[list[QuizQuestion], Field(min_length=1)]

    def to_payload(self) -> dict[str, Any]:
        return {"questions": [question.to_payload() for question in self.questions]}


class ConversationVocabularyEntry(_Contract):
    word: StrictStr
    translation: StrictStr


class ScriptLine(_Contract):
    target_language_text: StrictStr = Field(alias="targetLanguageText")
    translation: StrictStr


class ConversationContent(_Contract):
    context: StrictStr
    vocabulary: list[ConversationVocabularyEntry]
    script: list[ScriptLine]
    cultural_notes: StrictStr = Field(alias="culturalNotes")


class ConversationReply(_Contract):
    response: Annotated[StrictStr, Field(min_length=1)]


class PhonemeFeedback(_Contract):
    sound: StrictStr
    accuracy: float = Field(ge=0.0, le=1.0)
    feedback: StrictStr

    @field_validator("accuracy", mode="before")
    @classmethod
    def check_accuracy_type(cls, value: Any) -> Any:
        return _require_number(value)


class PronunciationFeedback(_Contract):
    accuracy: float = Field(ge=0.0, le=1.0)
    feedback: StrictStr
    suggestions: list[StrictStr]
    phonemes: list[PhonemeFeedback]

    @field_validator("accuracy", mode="before")
    @classmethod
    def check_accuracy_type(cls, value: Any) -> Any:
        return _require_number(value)


def clamp_unit(value: float) -> float:
    """Clamp a score into [0.0, 1.0]."""

    return max(0.0, min(1.0, float(value)))


def clamp_feedback(feedback: PronunciationFeedback) -> PronunciationFeedback:
    """Return a copy whose overall and per-phoneme accuracies lie in [0, 1]."""

    phonemes = [
        phoneme.model_copy(update={"accuracy": clamp_unit(phoneme.accuracy)})
        for phoneme in feedback.phonemes
    ]
    return feedback.model_copy(
        update={"accuracy": clamp_unit(feedback.accuracy), "phonemes": phonemes}
    )


__all__ = [
    "VocabularyEntry",
    "LessonContent",
    "QuizQuestion",
    "QuizContent",
    "ConversationVocabularyEntry",
    "ScriptLine",
    "ConversationContent",
    "ConversationReply",
    "PhonemeFeedback",
    "PronunciationFeedback",
    "clamp_unit",
    "clamp_feedback",
]
