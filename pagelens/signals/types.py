"""Signal type definitions for overlay session observability."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SignalType(str, Enum):
    """All signal types emitted by an overlay session."""

    EXTRACTION_COMPLETE = "EXTRACTION_COMPLETE"
    APPLY_COMPLETE = "APPLY_COMPLETE"
    APPLY_FAILED = "APPLY_FAILED"
    REFRESH_TRIGGERED = "REFRESH_TRIGGERED"
    STATUS_CHANGED = "STATUS_CHANGED"
    CLIPBOARD_DENIED = "CLIPBOARD_DENIED"


class Signal(BaseModel):
    """An immutable signal emitted during a session.

    Signals are append-only and cannot be modified after emission.
    """

    sequence: int = Field(description="Monotonic sequence number within the session")
    signal_type: SignalType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str
    payload: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}
