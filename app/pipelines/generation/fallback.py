"""Deterministic placeholder content used when model output is unusable."""

from __future__ import annotations

from typing import Optional

from app.config.settings import GenerationConfig, settings
from app.services.response_contract import (
    ConversationContent,
    PhonemeFeedback,
    PronunciationFeedback,
    ScriptLine,
)

from .types import GenerationKind, GenerationRequest

FALLBACK_SUGGESTIONS = (
    "Focus on speaking clearly and at a moderate pace",
    "Make sure your microphone is working properly",
    "Try practicing one short phrase at a time",
)

FALLBACK_CONTEXT = "Practice conversation"


def _pronunciation_fallback(
    request: GenerationRequest, config: GenerationConfig
) -> PronunciationFeedback:
    target = (request.target_text or "").strip()
    words = target.split()
    first_word = words[0] if words else target
    return PronunciationFeedback(
        accuracy=config.fallback_accuracy,
        feedback=(
            f'We heard your pronunciation of "{target}". While our AI couldn\'t '
            "provide detailed analysis this time, your attempt was recorded."
        ),
        suggestions=list(FALLBACK_SUGGESTIONS),
        phonemes=[
            PhonemeFeedback(
                sound=first_word,
                accuracy=config.fallback_accuracy,
                feedback="Focus on clear articulation of this word",
            )
        ],
    )


def _conversation_fallback() -> ConversationContent:
    return ConversationContent(
        context=FALLBACK_CONTEXT,
        vocabulary=[],
        script=[
            ScriptLine(target_language_text="Hello", translation="Hello"),
            ScriptLine(target_language_text="How are you?", translation="How are you?"),
        ],
        cultural_notes="",
    )


def synthesize_fallback(
    request: GenerationRequest,
    raw_text: Optional[str] = None,
    *,
    config: GenerationConfig | None = None,
) -> PronunciationFeedback | ConversationContent:
    """Build a contract-valid placeholder for ``request``.

    ``raw_text`` is accepted for symmetry with the parser but never echoed
    into the placeholder. Only pronunciation feedback and conversation
    prompts have a safe placeholder; other kinds raise ``ValueError``.
    """

    cfg = config or settings.generation
    if request.kind is GenerationKind.PRONUNCIATION_FEEDBACK:
        return _pronunciation_fallback(request, cfg)
    if request.kind is GenerationKind.CONVERSATION_PROMPT:
        return _conversation_fallback()
    raise ValueError(f"No fallback content exists for {request.kind.value}")


__all__ = ["synthesize_fallback", "FALLBACK_SUGGESTIONS", "FALLBACK_CONTEXT"]
