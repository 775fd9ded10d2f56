"""Response parser: JSON extraction and per-kind shape validation."""

from __future__ import annotations

import json

import pytest

from app.pipelines.generation import (
    GenerationKind,
    ParsedContent,
    ParseFailure,
    ParseFailureReason,
    parse_response,
)
from app.services.response_contract import (
    ConversationContent,
    LessonContent,
    PronunciationFeedback,
    QuizContent,
)

from .conftest import CONVERSATION_JSON, FEEDBACK_JSON, LESSON_JSON, QUIZ_JSON, as_text


@pytest.mark.parametrize(
    ("kind", "payload", "model"),
    [
        (GenerationKind.LESSON, LESSON_JSON, LessonContent),
        (GenerationKind.QUIZ, QUIZ_JSON, QuizContent),
        (GenerationKind.CONVERSATION_PROMPT, CONVERSATION_JSON, ConversationContent),
        (GenerationKind.PRONUNCIATION_FEEDBACK, FEEDBACK_JSON, PronunciationFeedback),
    ],
)
def test_well_formed_json_parses_without_losing_fields(kind, payload, model):
    result = parse_response(kind, as_text(payload))

    assert isinstance(result, ParsedContent)
    assert isinstance(result.content, model)
    dumped = result.content.to_payload()
    expected = {"questions": payload} if kind is GenerationKind.QUIZ else payload
    assert dumped == expected


def test_lesson_keeps_every_vocabulary_entry():
    result = parse_response(GenerationKind.LESSON, as_text(LESSON_JSON))

    assert len(result.content.vocabulary) == 6
    assert result.content.cultural_notes.startswith("The French")


def test_prose_wrapped_object_is_extracted():
    raw = "Here is your lesson:\n```json\n" + as_text(LESSON_JSON) + "\n```\nEnjoy!"

    result = parse_response(GenerationKind.LESSON, raw)

    assert isinstance(result, ParsedContent)
    assert result.content.grammar == LESSON_JSON["grammar"]


def test_prose_wrapped_quiz_array_is_extracted():
    raw = "Sure! " + as_text(QUIZ_JSON) + " Good luck."

    result = parse_response(GenerationKind.QUIZ, raw)

    assert isinstance(result, ParsedContent)
    assert len(result.content.questions) == 2


def test_quiz_accepts_object_with_questions_key():
    result = parse_response(GenerationKind.QUIZ, as_text({"questions": QUIZ_JSON}))

    assert isinstance(result, ParsedContent)
    assert result.content.questions[1].correct_answer == 1


def test_braces_inside_strings_do_not_break_extraction():
    payload = dict(FEEDBACK_JSON, feedback="Say it like {this} and \"that}\"")
    raw = "Analysis follows " + as_text(payload) + " trailing } noise"

    result = parse_response(GenerationKind.PRONUNCIATION_FEEDBACK, raw)

    assert isinstance(result, ParsedContent)
    assert result.content.feedback == payload["feedback"]


def test_array_is_not_extracted_for_object_contracts():
    result = parse_response(GenerationKind.LESSON, "Items: [1, 2, 3]")

    assert isinstance(result, ParseFailure)
    assert result.reason is ParseFailureReason.NO_VALID_JSON


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        None,
        "I could not produce a lesson today.",
        '{"vocabulary": [',
        '{"accuracy": 0.5, "feedback": "cut off',
    ],
)
@pytest.mark.parametrize(
    "kind",
    [
        GenerationKind.LESSON,
        GenerationKind.QUIZ,
        GenerationKind.CONVERSATION_PROMPT,
        GenerationKind.PRONUNCIATION_FEEDBACK,
    ],
)
def test_malformed_output_returns_failure_instead_of_raising(kind, raw):
    result = parse_response(kind, raw)

    assert isinstance(result, ParseFailure)
    assert result.reason is ParseFailureReason.NO_VALID_JSON


def test_missing_key_is_shape_invalid():
    payload = {k: v for k, v in LESSON_JSON.items() if k != "grammar"}

    result = parse_response(GenerationKind.LESSON, as_text(payload))

    assert isinstance(result, ParseFailure)
    assert result.reason is ParseFailureReason.SHAPE_INVALID
    assert "grammar" in result.detail


def test_numeric_strings_are_not_coerced():
    payload = dict(FEEDBACK_JSON, accuracy="0.8")

    result = parse_response(GenerationKind.PRONUNCIATION_FEEDBACK, as_text(payload))

    assert isinstance(result, ParseFailure)
    assert result.reason is ParseFailureReason.SHAPE_INVALID


def test_boolean_is_not_a_number():
    payload = dict(FEEDBACK_JSON, accuracy=True)

    result = parse_response(GenerationKind.PRONUNCIATION_FEEDBACK, as_text(payload))

    assert isinstance(result, ParseFailure)


@pytest.mark.parametrize("accuracy", [1.4, -0.1])
def test_out_of_range_accuracy_is_shape_invalid(accuracy):
    payload = {"accuracy": accuracy, "feedback": "ok", "suggestions": [], "phonemes": []}

    result = parse_response(GenerationKind.PRONUNCIATION_FEEDBACK, as_text(payload))

    assert isinstance(result, ParseFailure)
    assert result.reason is ParseFailureReason.SHAPE_INVALID


def test_out_of_range_phoneme_accuracy_is_shape_invalid():
    payload = dict(
        FEEDBACK_JSON,
        phonemes=[{"sound": "r", "accuracy": 2, "feedback": "roll it"}],
    )

    result = parse_response(GenerationKind.PRONUNCIATION_FEEDBACK, as_text(payload))

    assert isinstance(result, ParseFailure)


@pytest.mark.parametrize("answer", [4, -1, "0", True])
def test_correct_answer_must_index_its_own_options(answer):
    question = dict(QUIZ_JSON[0], correctAnswer=answer)

    result = parse_response(GenerationKind.QUIZ, json.dumps([question]))

    assert isinstance(result, ParseFailure)
    assert result.reason is ParseFailureReason.SHAPE_INVALID


def test_quiz_question_needs_two_options():
    question = dict(QUIZ_JSON[0], options=["only"], correctAnswer=0)

    result = parse_response(GenerationKind.QUIZ, json.dumps([question]))

    assert isinstance(result, ParseFailure)


def test_empty_quiz_is_shape_invalid():
    result = parse_response(GenerationKind.QUIZ, "[]")

    assert isinstance(result, ParseFailure)
    assert result.reason is ParseFailureReason.SHAPE_INVALID


def test_scalar_json_is_shape_invalid():
    result = parse_response(GenerationKind.LESSON, "42")

    assert isinstance(result, ParseFailure)
    assert result.reason is ParseFailureReason.SHAPE_INVALID


def test_conversation_reply_is_plain_text():
    result = parse_response(GenerationKind.CONVERSATION_REPLY, "  Très bien ! Say 'je suis'.  ")

    assert isinstance(result, ParsedContent)
    assert result.content.response == "Très bien ! Say 'je suis'."


def test_empty_conversation_reply_fails():
    result = parse_response(GenerationKind.CONVERSATION_REPLY, "   ")

    assert isinstance(result, ParseFailure)


def test_truncated_lesson_is_not_valid_json():
    result = parse_response(GenerationKind.LESSON, as_text(LESSON_JSON)[:-20])

    assert isinstance(result, ParseFailure)
    assert result.reason is ParseFailureReason.NO_VALID_JSON
