"""Structured error telemetry helpers."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Canonical error codes for operational telemetry."""

    APPLY_PARSE_FAILED = "APPLY_PARSE_FAILED"
    APPLY_TARGET_NOT_FOUND = "APPLY_TARGET_NOT_FOUND"
    CLIPBOARD_WRITE_DENIED = "CLIPBOARD_WRITE_DENIED"
    SIGNAL_SUBSCRIBER_FAILURE = "SIGNAL_SUBSCRIBER_FAILURE"
    REFRESH_FAILED = "REFRESH_FAILED"
    REPLAY_FAILED = "REPLAY_FAILED"
    BROWSER_CLEANUP_FAILED = "BROWSER_CLEANUP_FAILED"


class ApplyParseError(ValueError):
    """Apply input is not a JSON object."""


class ClipboardAccessDenied(RuntimeError):
    """The clipboard sink rejected a write."""


class BrowserNotStarted(RuntimeError):
    """A browser operation was requested before start()."""


def emit_structured_error(
    logger: logging.Logger,
    *,
    code: ErrorCode,
    message: str,
    suppressed: bool,
    session_id: str | None = None,
    operation: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Emit a structured telemetry event via logging."""
    logger.error(
        "pagelens_error",
        extra={
            "error_code": code,
            "error_message": message,
            "suppressed": suppressed,
            "session_id": session_id,
            "operation": operation,
            "details": details or {},
        },
    )
