"""Practice controller: phrase gating and result rendering."""

from __future__ import annotations

import pytest

from client import RecordingBusyError
from client.capture import (
    AudioCaptureStateMachine,
    RecordingError,
    RecordingErrorCode,
    RecordingSession,
    RecordingState,
)
from client.models import PronunciationResult
from client.practice import PracticeController

from .test_capture_state_machine import FakeBackend, FakeSubmitter


def _controller(*phrases: str) -> PracticeController:
    machine = AudioCaptureStateMachine(
        FakeBackend,
        FakeSubmitter(),
        language_id="fr-id",
        level="BEGINNER",
    )
    return PracticeController(machine, phrases)


async def test_other_phrases_are_disabled_while_recording():
    controller = _controller("Bonjour", "Merci")

    await controller.start("Bonjour")

    assert controller.selected_phrase == "Bonjour"
    assert not controller.can_start("Merci")
    with pytest.raises(RecordingBusyError):
        await controller.start("Merci")

    rendered = await controller.stop()

    assert rendered.startswith("Accuracy: 90%")
    assert controller.can_start("Merci")


async def test_unknown_phrase_cannot_start():
    controller = _controller("Bonjour")

    assert not controller.can_start("Hola")


async def test_teardown_cancels_active_recording():
    controller = _controller("Bonjour")
    session = await controller.start("Bonjour")

    await controller.teardown()

    assert session.error.code is RecordingErrorCode.CANCELLED
    assert session.handle.release_count == 1


def test_render_states():
    assert PracticeController.render(None) == "No recording yet."

    recording = RecordingSession("Bonjour", state=RecordingState.RECORDING)
    assert PracticeController.render(recording) == "Recording is recording..."

    transient = RecordingSession(
        "Bonjour",
        state=RecordingState.FAILED,
        error=RecordingError(RecordingErrorCode.TRANSIENT_NETWORK, "Request timed out."),
    )
    assert PracticeController.render(transient) == "Request timed out. Please try again."

    denied = RecordingSession(
        "Bonjour",
        state=RecordingState.FAILED,
        error=RecordingError(RecordingErrorCode.PERMISSION_DENIED, "Microphone permission was denied"),
    )
    assert PracticeController.render(denied) == "Microphone permission was denied"


def test_feedback_rendering():
    result = PronunciationResult(
        accuracy=0.823,
        feedback="Nice work.",
        suggestions=["Slow down", "Stress the last syllable"],
    )

    assert result.render() == (
        "Accuracy: 82%\n\nNice work.\n\nSuggestions:\n• Slow down\n• Stress the last syllable"
    )
