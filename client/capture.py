"""Recording session state machine shared by every capture backend.

A session moves through::

    IDLE -> ACQUIRING -> RECORDING -> STOPPING -> ENCODING -> SUBMITTING -> DONE

and may end in FAILED from any state before DONE. Backend resources are
released exactly once, when the session reaches DONE or FAILED. Recording is
capped by a ceiling timer; the timer and a manual ``stop()`` converge on the
same single stop sequence.
"""

from __future__ import annotations

import asyncio
import base64
import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

from .models import PronunciationResult
from .submission import SubmissionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DURATION_SECONDS = 15.0
DEFAULT_MAX_ENCODED_BYTES = 10 * 1024 * 1024


class RecordingState(str, Enum):
    IDLE = "IDLE"
    ACQUIRING = "ACQUIRING"
    RECORDING = "RECORDING"
    STOPPING = "STOPPING"
    ENCODING = "ENCODING"
    SUBMITTING = "SUBMITTING"
    DONE = "DONE"
    FAILED = "FAILED"


TERMINAL_STATES = frozenset({RecordingState.DONE, RecordingState.FAILED})


class RecordingErrorCode(str, Enum):
    PERMISSION_DENIED = "PERMISSION_DENIED"
    DEVICE_ERROR = "DEVICE_ERROR"
    RECORDING_TOO_LARGE = "RECORDING_TOO_LARGE"
    NO_URI = "NO_URI"
    TRANSIENT_NETWORK = "TRANSIENT_NETWORK"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    CANCELLED = "CANCELLED"


class RecordingError(Exception):
    """Why a recording session ended in FAILED."""

    def __init__(self, code: RecordingErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.code is RecordingErrorCode.TRANSIENT_NETWORK


class RecordingBusyError(RuntimeError):
    """Raised when a session is requested while another one is active."""


class CaptureBackend(Protocol):
    """Capability interface every capture backend implements."""

    async def acquire(self) -> None: ...

    async def start(self, on_error: Callable[[BaseException], None]) -> None: ...

    async def stop(self) -> None: ...

    async def read(self) -> Optional[bytes]: ...

    async def release(self) -> None: ...


class FeedbackSubmitter(Protocol):
    async def submit(
        self,
        target_phrase: str,
        encoded_audio: str,
        language_id: str,
        level: str,
    ) -> PronunciationResult: ...


@dataclass(eq=False)
class RecordingSession:
    target_phrase: str
    state: RecordingState = RecordingState.IDLE
    started_at: Optional[datetime] = None
    handle: Any = None
    error: Optional[RecordingError] = None
    feedback: Optional[PronunciationResult] = None
    released: bool = False
    acquiring: bool = False
    timer: Optional[asyncio.TimerHandle] = None
    finished: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


class AudioCaptureStateMachine:
    """Drive one recording at a time from microphone to feedback."""

    def __init__(
        self,
        backend_factory: Callable[[], CaptureBackend],
        submitter: FeedbackSubmitter,
        *,
        language_id: str,
        level: str,
        max_duration_seconds: float = DEFAULT_MAX_DURATION_SECONDS,
        max_encoded_bytes: int = DEFAULT_MAX_ENCODED_BYTES,
        listener: Optional[Callable[[RecordingSession], None]] = None,
    ) -> None:
        self._backend_factory = backend_factory
        self._submitter = submitter
        self._language_id = language_id
        self._level = level
        self._max_duration_seconds = max_duration_seconds
        self._max_encoded_bytes = max_encoded_bytes
        self._listener = listener
        self._session: Optional[RecordingSession] = None
        self._last_session: Optional[RecordingSession] = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def session(self) -> Optional[RecordingSession]:
        """The active session, or the most recent one once it has ended."""

        return self._session or self._last_session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    def _set_state(self, session: RecordingSession, state: RecordingState) -> None:
        session.state = state
        logger.debug("Recording %r -> %s", session.target_phrase, state.value)
        if self._listener is not None:
            self._listener(session)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def start(self, phrase: str) -> RecordingSession:
        """Acquire the microphone and begin recording ``phrase``."""

        if self._session is not None:
            raise RecordingBusyError("A recording is already in progress")

        session = RecordingSession(target_phrase=phrase)
        self._session = session
        self._last_session = session
        self._set_state(session, RecordingState.ACQUIRING)

        backend = self._backend_factory()
        session.handle = backend
        session.acquiring = True
        try:
            await backend.acquire()
            if not session.is_terminal:
                await backend.start(functools.partial(self._on_backend_error, session))
        except PermissionError as exc:
            await self._fail(
                session,
                RecordingErrorCode.PERMISSION_DENIED,
                "Microphone permission was denied",
                exc,
            )
        except Exception as exc:
            await self._fail(
                session,
                RecordingErrorCode.DEVICE_ERROR,
                f"Could not start recording: {exc}",
                exc,
            )
        finally:
            session.acquiring = False

        if session.is_terminal:
            # Cancelled or failed while the backend was still acquiring.
            await self._release(session)
            return session

        session.started_at = datetime.now(timezone.utc)
        self._set_state(session, RecordingState.RECORDING)
        loop = asyncio.get_running_loop()
        session.timer = loop.call_later(
            self._max_duration_seconds, self._on_ceiling_reached, session
        )
        return session

    async def stop(self) -> Optional[RecordingSession]:
        """Stop recording and wait until feedback (or failure) arrives."""

        session = self.session
        if session is None:
            return None
        if session.state is RecordingState.RECORDING:
            await self._stop_and_submit(session)
        await session.finished.wait()
        return session

    async def wait(self) -> Optional[RecordingSession]:
        """Wait for the current session to reach DONE or FAILED."""

        session = self.session
        if session is None:
            return None
        await session.finished.wait()
        return session

    async def cancel(self) -> None:
        """Abandon the active session, e.g. when the practice screen closes."""

        session = self._session
        if session is None:
            return
        await self._fail(
            session,
            RecordingErrorCode.CANCELLED,
            "Recording was cancelled",
        )

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _spawn(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_ceiling_reached(self, session: RecordingSession) -> None:
        if session is not self._session or session.state is not RecordingState.RECORDING:
            return
        logger.info(
            "Recording reached the %.0fs ceiling; stopping", self._max_duration_seconds
        )
        session.timer = None
        self._spawn(self._stop_and_submit(session))

    def _on_backend_error(self, session: RecordingSession, exc: BaseException) -> None:
        if session is not self._session or session.is_terminal or session.released:
            logger.debug("Ignoring stale backend callback: %r", exc)
            return
        self._spawn(
            self._fail(
                session,
                RecordingErrorCode.DEVICE_ERROR,
                f"Recording device failed: {exc}",
                exc,
            )
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _stop_and_submit(self, session: RecordingSession) -> None:
        if session.state is not RecordingState.RECORDING:
            return
        self._set_state(session, RecordingState.STOPPING)
        self._cancel_timer(session)
        backend = session.handle

        try:
            await backend.stop()
        except Exception as exc:
            await self._fail(
                session, RecordingErrorCode.DEVICE_ERROR, f"Could not stop recording: {exc}", exc
            )
            return
        if session.is_terminal:
            return

        self._set_state(session, RecordingState.ENCODING)
        try:
            audio = await backend.read()
        except Exception as exc:
            await self._fail(
                session, RecordingErrorCode.DEVICE_ERROR, f"Could not read recording: {exc}", exc
            )
            return
        if session.is_terminal:
            return
        if not audio:
            await self._fail(session, RecordingErrorCode.NO_URI, "No audio was recorded")
            return

        encoded = base64.b64encode(audio).decode("ascii")
        if len(encoded) > self._max_encoded_bytes:
            await self._fail(
                session,
                RecordingErrorCode.RECORDING_TOO_LARGE,
                "Audio file too large. Please try a shorter recording",
            )
            return

        self._set_state(session, RecordingState.SUBMITTING)
        try:
            feedback = await self._submitter.submit(
                session.target_phrase,
                encoded,
                self._language_id,
                self._level,
            )
        except SubmissionError as exc:
            code = (
                RecordingErrorCode.TRANSIENT_NETWORK
                if exc.transient
                else RecordingErrorCode.SUBMISSION_FAILED
            )
            await self._fail(session, code, exc.message, exc)
            return
        except Exception as exc:
            logger.exception("Unexpected error while submitting recording")
            await self._fail(
                session,
                RecordingErrorCode.SUBMISSION_FAILED,
                f"Could not submit recording: {exc}",
                exc,
            )
            return

        await self._finish(session, RecordingState.DONE, feedback=feedback)

    async def _fail(
        self,
        session: RecordingSession,
        code: RecordingErrorCode,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        error = RecordingError(code, message)
        error.__cause__ = cause
        if not session.is_terminal:
            logger.warning("Recording %r failed: %s (%s)", session.target_phrase, message, code.value)
        await self._finish(session, RecordingState.FAILED, error=error)

    async def _finish(
        self,
        session: RecordingSession,
        state: RecordingState,
        *,
        error: Optional[RecordingError] = None,
        feedback: Optional[PronunciationResult] = None,
    ) -> None:
        if session.is_terminal:
            return
        self._cancel_timer(session)
        session.error = error
        session.feedback = feedback
        if self._session is session:
            self._session = None
        self._set_state(session, state)
        if not session.acquiring:
            await self._release(session)
        session.finished.set()

    async def _release(self, session: RecordingSession) -> None:
        if session.released:
            return
        session.released = True
        if session.handle is None:
            return
        try:
            await session.handle.release()
        except Exception:
            logger.exception("Failed to release recording resources")

    @staticmethod
    def _cancel_timer(session: RecordingSession) -> None:
        if session.timer is not None:
            session.timer.cancel()
            session.timer = None


__all__ = [
    "AudioCaptureStateMachine",
    "CaptureBackend",
    "FeedbackSubmitter",
    "RecordingBusyError",
    "RecordingError",
    "RecordingErrorCode",
    "RecordingSession",
    "RecordingState",
    "TERMINAL_STATES",
]
