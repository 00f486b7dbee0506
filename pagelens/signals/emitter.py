"""Signal emitter for overlay sessions.

Handles emission, persistence, and fan-out of Signals.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from pagelens.signals.types import Signal, SignalType
from pagelens.telemetry.errors import ErrorCode, emit_structured_error

logger = logging.getLogger(__name__)


class SignalEmitter:
    """Emits, persists, and broadcasts signals for a single session.

    Signals are:
    - Immutable once emitted
    - Assigned monotonic sequence numbers
    - Persisted to a JSONL ledger in append-only mode (optional)
    - Delivered to subscribers as they happen
    """

    def __init__(self, session_id: str, ledger_path: Path | None = None) -> None:
        self._session_id = session_id
        self._sequence = 0
        self._ledger_path = ledger_path
        self._subscribers: list[Callable[[Signal], Any]] = []
        self._signals: list[Signal] = []
        self._lock = asyncio.Lock()

        if self._ledger_path:
            self._ledger_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def signals(self) -> list[Signal]:
        """Return all emitted signals (read-only copy)."""
        return list(self._signals)

    def subscribe(self, callback: Callable[[Signal], Any]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Signal], Any]) -> None:
        self._subscribers = [s for s in self._subscribers if s is not callback]

    async def emit(self, signal_type: SignalType, payload: dict[str, Any] | None = None) -> Signal:
        """Emit a signal. This is the only way to create signals."""
        async with self._lock:
            self._sequence += 1
            signal = Signal(
                sequence=self._sequence,
                signal_type=signal_type,
                timestamp=datetime.now(timezone.utc),
                session_id=self._session_id,
                payload=payload or {},
            )
            self._signals.append(signal)

        if self._ledger_path:
            self._persist(signal)

        await self._broadcast(signal)
        return signal

    def _persist(self, signal: Signal) -> None:
        with open(self._ledger_path, "a", encoding="utf-8") as f:
            f.write(signal.model_dump_json() + "\n")

    async def _broadcast(self, signal: Signal) -> None:
        for subscriber in self._subscribers:
            try:
                result = subscriber(signal)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                # Subscribers must not break the emission pipeline
                emit_structured_error(
                    logger,
                    code=ErrorCode.SIGNAL_SUBSCRIBER_FAILURE,
                    message=str(exc),
                    suppressed=True,
                    session_id=self._session_id,
                    operation="signal_broadcast",
                    details={
                        "signal_type": signal.signal_type.value,
                        "exception_type": type(exc).__name__,
                    },
                )

    async def emit_status(self, status: str) -> Signal:
        """Convenience: emit a STATUS_CHANGED signal."""
        return await self.emit(SignalType.STATUS_CHANGED, {"status": status})

    async def emit_apply_complete(
        self, status: str, applied: list[str], skipped: list[str]
    ) -> Signal:
        """Convenience: emit an APPLY_COMPLETE signal."""
        return await self.emit(
            SignalType.APPLY_COMPLETE,
            {"status": status, "applied": applied, "skipped": skipped},
        )

    @staticmethod
    def load_ledger(ledger_path: Path) -> list[Signal]:
        """Load all signals from a JSONL ledger file."""
        signals = []
        if ledger_path.exists():
            with open(ledger_path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        signals.append(Signal.model_validate_json(line))
        return signals
