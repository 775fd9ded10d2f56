"""Stage 02 – turn raw model text into validated content.

Models frequently wrap their JSON in prose ("Here is your lesson: {...}") or
markdown fences. Parsing therefore tries the whole text first and then falls
back to the first balanced ``{...}`` (or ``[...]`` for quizzes) span. The
extracted value is validated against the response contract for its kind.

``parse_response`` never raises: callers branch on the returned result.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from app.services.response_contract import (
    ConversationContent,
    ConversationReply,
    LessonContent,
    PronunciationFeedback,
    QuizContent,
)

from .types import (
    GenerationKind,
    ParsedContent,
    ParseFailure,
    ParseFailureReason,
    ParseResult,
)

_SCHEMAS: dict[GenerationKind, type[BaseModel]] = {
    GenerationKind.LESSON: LessonContent,
    GenerationKind.QUIZ: QuizContent,
    GenerationKind.CONVERSATION_PROMPT: ConversationContent,
    GenerationKind.PRONUNCIATION_FEEDBACK: PronunciationFeedback,
}

_CLOSERS = {"{": "}", "[": "]"}


def _balanced_span(text: str, opener: str) -> Optional[str]:
    """Return the balanced span that starts at the first ``opener``.

    Brackets inside JSON string literals are ignored, as are escaped quotes.
    Truncated output has no closing bracket and yields ``None``.
    """

    closer = _CLOSERS[opener]
    start = text.find(opener)
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def _load_json(text: str, kind: GenerationKind) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except ValueError:
        pass

    openers = ("{", "[") if kind is GenerationKind.QUIZ else ("{",)
    candidates = []
    for opener in openers:
        position = text.find(opener)
        if position != -1:
            candidates.append((position, opener))

    for _, opener in sorted(candidates):
        span = _balanced_span(text, opener)
        if span is None:
            continue
        try:
            return True, json.loads(span)
        except ValueError:
            continue
    return False, None


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors()[:5]:
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location or '<root>'}: {error.get('msg')}")
    return "; ".join(parts)


def parse_response(kind: GenerationKind, raw: Optional[str]) -> ParseResult:
    """Extract and validate the content for ``kind`` from ``raw`` model output."""

    text = (raw or "").strip()

    if kind is GenerationKind.CONVERSATION_REPLY:
        if not text:
            return ParseFailure(ParseFailureReason.NO_VALID_JSON, "empty response")
        return ParsedContent(kind, ConversationReply(response=text))

    if not text:
        return ParseFailure(ParseFailureReason.NO_VALID_JSON, "empty response")

    found, value = _load_json(text, kind)
    if not found:
        return ParseFailure(
            ParseFailureReason.NO_VALID_JSON, "no parseable JSON value in response"
        )

    if kind is GenerationKind.QUIZ and isinstance(value, list):
        value = {"questions": value}

    if not isinstance(value, dict):
        return ParseFailure(
            ParseFailureReason.SHAPE_INVALID,
            f"expected a JSON object, got {type(value).__name__}",
        )

    try:
        content = _SCHEMAS[kind].model_validate(value)
    except ValidationError as exc:
        return ParseFailure(ParseFailureReason.SHAPE_INVALID, _describe(exc))

    return ParsedContent(kind, content)


__all__ = ["parse_response"]
