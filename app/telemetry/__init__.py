"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    GENERATION_ATTEMPTS,
    GENERATION_LATENCY,
    LOGIN_COUNTER,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    increment_login,
    observe_generation_latency,
    observe_request,
    record_generation,
)

__all__ = [
    "ERROR_COUNTER",
    "GENERATION_ATTEMPTS",
    "GENERATION_LATENCY",
    "LOGIN_COUNTER",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "increment_login",
    "observe_generation_latency",
    "observe_request",
    "record_generation",
]
