"""Pronunciation practice controller and command-line entry point.

Usage::

    python -m client.practice --language-id fr-id --phrase "Bonjour" --phrase "Merci"

Each phrase is recorded until Enter is pressed (or the recording ceiling is
reached), submitted for feedback, and the result printed.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from .backends import BACKENDS
from .capture import (
    AudioCaptureStateMachine,
    RecordingBusyError,
    RecordingSession,
    RecordingState,
)
from .config import ClientSettings
from .submission import FeedbackSubmissionClient


class PracticeController:
    """Bind phrase selection to recording sessions and render their results."""

    def __init__(
        self,
        machine: AudioCaptureStateMachine,
        phrases: Sequence[str] = (),
    ) -> None:
        self._machine = machine
        self._phrases = list(phrases)
        self._selected: Optional[str] = None

    @property
    def phrases(self) -> list[str]:
        return list(self._phrases)

    @property
    def selected_phrase(self) -> Optional[str]:
        return self._selected

    def can_start(self, phrase: str) -> bool:
        """Phrases stay disabled while any recording session is active."""

        if self._phrases and phrase not in self._phrases:
            return False
        return not self._machine.is_active

    async def start(self, phrase: str) -> RecordingSession:
        if not self.can_start(phrase):
            raise RecordingBusyError(
                f"Finish practising {self._selected!r} before starting another phrase"
            )
        self._selected = phrase
        return await self._machine.start(phrase)

    async def stop(self) -> str:
        session = await self._machine.stop()
        return self.render(session)

    async def teardown(self) -> None:
        await self._machine.cancel()

    @staticmethod
    def render(session: Optional[RecordingSession]) -> str:
        if session is None:
            return "No recording yet."
        if session.state is RecordingState.DONE and session.feedback is not None:
            return session.feedback.render()
        if session.state is RecordingState.FAILED and session.error is not None:
            message = session.error.message
            if session.error.retryable:
                message += " Please try again."
            return message
        return f"Recording is {session.state.value.lower()}..."


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Practise pronunciation from the terminal.")
    parser.add_argument("--language-id", required=True, help="Language id from /api/languages/list")
    parser.add_argument(
        "--level",
        default="BEGINNER",
        choices=("BEGINNER", "INTERMEDIATE", "ADVANCED"),
    )
    parser.add_argument(
        "--phrase",
        action="append",
        required=True,
        help="Phrase to practise; repeat for several phrases",
    )
    parser.add_argument("--backend", default="stream", choices=sorted(BACKENDS))
    parser.add_argument("--api-base-url", default=None)
    parser.add_argument("--token", default=None, help="Bearer token from /api/auth/login")
    return parser


async def _run(args: argparse.Namespace, settings: ClientSettings) -> int:
    loop = asyncio.get_running_loop()
    machine = AudioCaptureStateMachine(
        lambda: BACKENDS[args.backend](settings),
        FeedbackSubmissionClient(settings),
        language_id=args.language_id,
        level=args.level,
        max_duration_seconds=settings.max_recording_seconds,
        max_encoded_bytes=settings.max_encoded_bytes,
    )
    controller = PracticeController(machine, args.phrase)
    failures = 0

    try:
        for phrase in controller.phrases:
            print(f'\nSay: "{phrase}"  (press Enter to stop)')
            session = await controller.start(phrase)
            if session.state is RecordingState.RECORDING:
                enter = loop.run_in_executor(None, sys.stdin.readline)
                finished = asyncio.ensure_future(machine.wait())
                await asyncio.wait({enter, finished}, return_when=asyncio.FIRST_COMPLETED)
                if not finished.done():
                    await controller.stop()
                else:
                    print("Recording ceiling reached, press Enter to continue.")
                    await enter
                await finished
            print(controller.render(machine.session))
            if machine.session is not None and machine.session.state is RecordingState.FAILED:
                failures += 1
    finally:
        await controller.teardown()

    return 1 if failures else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    overrides: dict[str, object] = {}
    if args.api_base_url:
        overrides["api_base_url"] = args.api_base_url
    if args.token:
        overrides["token"] = args.token
    settings = ClientSettings(**overrides)

    return asyncio.run(_run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
