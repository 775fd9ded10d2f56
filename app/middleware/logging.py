"""Structured logging middleware for FastAPI requests."""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional

from cryptography.fernet import Fernet
from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.config.settings import settings
from app.utils import AuthenticationError, decode_access_token

logger = logging.getLogger("app.middleware.structured")

COLOR_RESET = "\u001b[0m"
COLOR_GREEN = "\u001b[32m"
COLOR_CYAN = "\u001b[36m"
COLOR_YELLOW = "\u001b[33m"
COLOR_RED = "\u001b[31m"


@dataclass(slots=True)
class LearnerSession:
    """Who issued the request, as far as the bearer token tells us."""

    identifier: str
    learner_id: str
    fingerprint: str


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one structured log line per HTTP request."""

    _cipher: ClassVar[Optional[Fernet]] = None

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()
        log_payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else None,
        }

        learner = self._learner_session(request)
        if learner is not None:
            log_payload["session"] = {
                "id": learner.identifier,
                "learner_id": learner.learner_id,
            }

        try:
            response = await call_next(request)
        except Exception as exc:
            log_payload["status_code"] = 500
            log_payload["duration_ms"] = self._elapsed_ms(start_time)
            log_payload["error"] = repr(exc)
            logger.exception(self._format_console_message(log_payload))
            raise

        log_payload["status_code"] = response.status_code
        log_payload["duration_ms"] = self._elapsed_ms(start_time)
        logger.info(self._format_console_message(log_payload))
        await self._persist_log(log_payload, learner)
        return response

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return round((time.perf_counter() - start_time) * 1000, 2)

    async def _persist_log(
        self,
        payload: dict[str, Any],
        learner: LearnerSession | None,
    ) -> None:
        """Store the request in ``request_logs`` when persistence is enabled."""

        if not settings.persist_request_logs:
            return

        from app.database import session_scope
        from app.models.log import RequestLog

        timestamp_value = datetime.fromisoformat(payload["timestamp"])
        timestamp_value = timestamp_value.astimezone(timezone.utc).replace(tzinfo=None)

        async with session_scope() as session:
            session.add(
                RequestLog(
                    timestamp=timestamp_value,
                    method=payload["method"],
                    url=payload["url"][:2048],
                    status_code=payload.get("status_code", 0),
                    client_ip=payload.get("client_ip"),
                    duration_ms=int(payload.get("duration_ms") or 0),
                    session_id=learner.identifier if learner else None,
                    session_fingerprint=learner.fingerprint if learner else None,
                    learner_id=learner.learner_id if learner else None,
                )
            )
            try:
                await session.commit()
            except SQLAlchemyError:
                # The response has already been produced; only log the failure.
                await session.rollback()
                logger.exception("Failed to persist request log entry")

    def _learner_session(self, request: Request) -> LearnerSession | None:
        """Build an encrypted learner descriptor from the bearer token, if any."""

        token = self._extract_bearer_token(request)
        if not token:
            return None

        try:
            token_payload = decode_access_token(token)
        except AuthenticationError:
            return None

        learner_id = token_payload.sub
        issued_at = token_payload.iat or datetime.now(timezone.utc)
        fingerprint = hashlib.sha256(
            f"{learner_id}:{int(issued_at.timestamp())}".encode("utf-8")
        ).hexdigest()

        metadata: dict[str, Any] = {
            "session": fingerprint,
            "learner_id": learner_id,
            "issued_at": issued_at.isoformat(),
            "expires_at": token_payload.exp.isoformat(),
        }
        user_agent = request.headers.get("user-agent")
        if user_agent:
            metadata["user_agent"] = user_agent[:256]

        return LearnerSession(
            identifier=self._encrypt_session_metadata(metadata),
            learner_id=learner_id,
            fingerprint=fingerprint,
        )

    @classmethod
    def _encrypt_session_metadata(cls, metadata: dict[str, Any]) -> str:
        payload_bytes = json.dumps(metadata, default=str, separators=(",", ":")).encode(
            "utf-8"
        )
        return cls._get_cipher().encrypt(payload_bytes).decode("utf-8")

    @classmethod
    def _get_cipher(cls) -> Fernet:
        """Return a cached Fernet cipher initialised from the JWT secret."""

        if cls._cipher is None:
            secret_bytes = (
                settings.security.jwt_secret_key.get_secret_value().encode("utf-8")
            )
            digest = hashlib.sha256(secret_bytes).digest()
            cls._cipher = Fernet(base64.urlsafe_b64encode(digest))
        return cls._cipher

    @staticmethod
    def _extract_bearer_token(request: Request) -> Optional[str]:
        auth_header = request.headers.get("authorization")
        if not auth_header:
            return None

        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None

        return token

    @staticmethod
    def _format_console_message(payload: dict[str, Any]) -> str:
        """Return minimal request metadata wrapped with ANSI color codes."""

        status = payload.get("status_code") or 0
        if 200 <= status < 300:
            color = COLOR_GREEN
        elif 400 <= status < 500:
            color = COLOR_YELLOW
        elif status >= 500:
            color = COLOR_RED
        else:
            color = COLOR_CYAN

        learner_id = None
        session_info = payload.get("session")
        if isinstance(session_info, dict):
            learner_id = session_info.get("learner_id")

        fields = [
            ("timestamp", payload.get("timestamp")),
            ("method", payload.get("method")),
            ("url", payload.get("url")),
            ("status", payload.get("status_code")),
            ("duration_ms", payload.get("duration_ms")),
            ("learner_id", learner_id),
        ]
        message = ", ".join(
            f"{name}={value if value is not None else '-'}" for name, value in fields
        )

        return f"{color}{message}{COLOR_RESET}"
