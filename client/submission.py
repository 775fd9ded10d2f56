"""HTTP client that submits recordings for pronunciation feedback."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .config import ClientSettings
from .models import PronunciationResult

logger = logging.getLogger(__name__)

FEEDBACK_PATH = "/api/ai-lessons/pronunciation-feedback"


class SubmissionError(Exception):
    """Raised when feedback could not be obtained for a recording."""

    def __init__(
        self,
        message: str,
        *,
        transient: bool = False,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.transient = transient
        self.status_code = status_code


def strip_data_url(encoded_audio: str) -> str:
    if encoded_audio.startswith("data:") and "," in encoded_audio:
        return encoded_audio.split(",", 1)[1]
    return encoded_audio


def _status_message(response: httpx.Response) -> str:
    if response.status_code == 401:
        return "Please log in to use the pronunciation feature"
    if response.status_code == 413:
        return "Audio file too large. Please try a shorter recording"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"Failed to analyze pronunciation (HTTP {response.status_code})"


class FeedbackSubmissionClient:
    """Send one encoded recording and return validated feedback. Never retries."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.token is not None:
            headers["Authorization"] = f"Bearer {self._settings.token.get_secret_value()}"
        return headers

    async def submit(
        self,
        target_phrase: str,
        encoded_audio: str,
        language_id: str,
        level: str,
    ) -> PronunciationResult:
        audio_data = strip_data_url(encoded_audio)
        if len(audio_data) > self._settings.max_encoded_bytes:
            raise SubmissionError(
                "Audio file too large. Please try a shorter recording",
                status_code=413,
            )

        request_body = {
            "languageId": language_id,
            "audioData": audio_data,
            "targetText": target_phrase,
            "level": level,
        }
        logger.info(
            "Submitting pronunciation audio language=%s phrase=%r chars=%s",
            language_id,
            target_phrase,
            len(audio_data),
        )

        async with httpx.AsyncClient(
            base_url=self._settings.api_base_url,
            timeout=self._settings.request_timeout_seconds,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    FEEDBACK_PATH,
                    json=request_body,
                    headers=self._headers(),
                )
            except httpx.TimeoutException as exc:
                raise SubmissionError(
                    "Request timed out. Please try recording a shorter phrase.",
                    transient=True,
                ) from exc
            except httpx.RequestError as exc:
                raise SubmissionError(
                    f"Unable to reach the pronunciation service: {exc}",
                    transient=True,
                ) from exc

        if response.is_error:
            raise SubmissionError(
                _status_message(response),
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise SubmissionError(
                "Invalid response from the pronunciation service",
                status_code=response.status_code,
            ) from exc

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            raise SubmissionError(
                message or "Failed to get pronunciation feedback",
                status_code=response.status_code,
            )

        try:
            return PronunciationResult.model_validate(body.get("feedback"))
        except ValidationError as exc:
            raise SubmissionError(
                "Invalid feedback data structure received from server",
                status_code=response.status_code,
            ) from exc


__all__ = ["FeedbackSubmissionClient", "SubmissionError", "FEEDBACK_PATH"]
