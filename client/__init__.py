"""Pronunciation practice client for the LangoSpark API."""

from .capture import (
    AudioCaptureStateMachine,
    RecordingBusyError,
    RecordingError,
    RecordingErrorCode,
    RecordingSession,
    RecordingState,
)
from .submission import FeedbackSubmissionClient, SubmissionError

__all__ = [
    "AudioCaptureStateMachine",
    "FeedbackSubmissionClient",
    "RecordingBusyError",
    "RecordingError",
    "RecordingErrorCode",
    "RecordingSession",
    "RecordingState",
    "SubmissionError",
]
