"""Deterministic placeholder content."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.config.settings import GenerationConfig
from app.pipelines.generation import GenerationKind, GenerationRequest, synthesize_fallback
from app.services.response_contract import ConversationContent, PronunciationFeedback


def _feedback_request(text: str = "Bonjour tout le monde") -> GenerationRequest:
    return GenerationRequest(
        kind=GenerationKind.PRONUNCIATION_FEEDBACK,
        language_id="fr-id",
        target_text=text,
    )


def test_pronunciation_fallback_quotes_the_phrase():
    feedback = synthesize_fallback(_feedback_request(), "garbage", config=GenerationConfig())

    assert isinstance(feedback, PronunciationFeedback)
    assert feedback.accuracy == pytest.approx(0.7)
    assert '"Bonjour tout le monde"' in feedback.feedback
    assert "garbage" not in feedback.feedback
    assert len(feedback.suggestions) == 3
    assert [p.sound for p in feedback.phonemes] == ["Bonjour"]
    assert feedback.phonemes[0].feedback == "Focus on clear articulation of this word"


def test_pronunciation_fallback_is_deterministic():
    first = synthesize_fallback(_feedback_request(), config=GenerationConfig())
    second = synthesize_fallback(_feedback_request(), config=GenerationConfig())

    assert first == second


def test_fallback_accuracy_is_configurable_inside_band():
    config = GenerationConfig(fallback_accuracy=0.55)

    feedback = synthesize_fallback(_feedback_request(), config=config)

    assert feedback.accuracy == pytest.approx(0.55)
    assert feedback.phonemes[0].accuracy == pytest.approx(0.55)


def test_fallback_accuracy_outside_band_is_rejected():
    with pytest.raises(ValidationError):
        GenerationConfig(fallback_accuracy=0.9)


def test_conversation_fallback_has_greeting_script():
    request = GenerationRequest(kind=GenerationKind.CONVERSATION_PROMPT, language_id="fr-id")

    content = synthesize_fallback(request, "not json", config=GenerationConfig())

    assert isinstance(content, ConversationContent)
    assert content.to_payload() == {
        "context": "Practice conversation",
        "vocabulary": [],
        "script": [
            {"targetLanguageText": "Hello", "translation": "Hello"},
            {"targetLanguageText": "How are you?", "translation": "How are you?"},
        ],
        "culturalNotes": "",
    }


@pytest.mark.parametrize(
    "kind",
    [GenerationKind.LESSON, GenerationKind.QUIZ, GenerationKind.CONVERSATION_REPLY],
)
def test_pedagogical_content_has_no_fallback(kind):
    with pytest.raises(ValueError):
        synthesize_fallback(GenerationRequest(kind=kind), config=GenerationConfig())
