"""Overlay session: the host collaborator around extraction and apply.

The session owns the current record and its JSON text, a transient status
line, debounced refresh on page mutations, and the clipboard copy. It
talks to the page only through a DocumentSource, so the same session
drives a live Playwright page or a fixed in-memory document.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Protocol

from pagelens.apply.applier import ApplyResult, ApplyStatus, FormApplier
from pagelens.config.settings import PagelensConfig
from pagelens.document.nodes import ControlMutation, Document
from pagelens.extraction.record import StructuredRecord
from pagelens.pipeline.assembler import build_record
from pagelens.session.debounce import Debouncer
from pagelens.signals.emitter import SignalEmitter
from pagelens.signals.types import SignalType
from pagelens.telemetry.errors import ClipboardAccessDenied, ErrorCode, emit_structured_error

logger = logging.getLogger(__name__)

STATUS_REFRESHED = "Refreshed"
STATUS_COPIED = "Copied"
STATUS_CLIPBOARD_BLOCKED = "Clipboard blocked"


class DocumentSource(Protocol):
    async def capture(self) -> Document: ...

    async def replay(self, mutations: list[ControlMutation]) -> None: ...


class ClipboardSink(Protocol):
    async def write_text(self, text: str) -> None: ...


class StaticDocumentSource:
    """Serves one in-memory document. Writes land on it directly, so replay only logs them."""

    def __init__(self, document: Document) -> None:
        self.document = document
        self.replayed: list[ControlMutation] = []

    async def capture(self) -> Document:
        return self.document

    async def replay(self, mutations: list[ControlMutation]) -> None:
        self.replayed.extend(mutations)


class OverlaySession:
    """Extraction/apply session bound to one document source.

    Mutations reported while an apply is running are ignored, so the
    session never re-extracts because of its own writes.
    """

    def __init__(
        self,
        source: DocumentSource,
        *,
        clipboard: ClipboardSink | None = None,
        config: PagelensConfig | None = None,
        emitter: SignalEmitter | None = None,
        session_id: str | None = None,
    ) -> None:
        self._source = source
        self._clipboard = clipboard
        self._config = config or PagelensConfig()
        self._session_id = session_id or str(uuid.uuid4())
        self._emitter = emitter or SignalEmitter(self._session_id)
        self._applier = FormApplier(self._config.apply, session_id=self._session_id)
        self._debouncer = Debouncer(self._debounced_render, self._config.refresh.debounce_ms)
        self._record: StructuredRecord | None = None
        self._status = ""
        self._status_handle: asyncio.TimerHandle | None = None
        self._applying = False

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def emitter(self) -> SignalEmitter:
        return self._emitter

    @property
    def record(self) -> StructuredRecord | None:
        return self._record

    @property
    def text(self) -> str:
        return self._record.to_json() if self._record is not None else ""

    @property
    def status(self) -> str:
        return self._status

    @property
    def refresh_pending(self) -> bool:
        return self._debouncer.pending

    # --- Extraction ---

    async def render(self) -> StructuredRecord:
        document = await self._source.capture()
        record = build_record(document, config=self._config.extraction)
        self._record = record
        await self._emitter.emit(
            SignalType.EXTRACTION_COMPLETE,
            {
                "url": record.url,
                "labeled_values": len(record.labeled_values),
                "lists": len(record.lists),
                "legs": len(record.legs),
            },
        )
        return record

    async def refresh(self) -> StructuredRecord:
        """Manual refresh."""
        self._debouncer.cancel()
        record = await self.render()
        await self.set_status(STATUS_REFRESHED)
        return record

    def notify_mutation(self) -> bool:
        """Report a page mutation. Returns False when it was ignored."""
        if self._applying:
            return False
        self._debouncer.schedule()
        return True

    async def wait_for_refresh(self) -> None:
        await self._debouncer.wait()

    async def _debounced_render(self) -> None:
        await self._emitter.emit(SignalType.REFRESH_TRIGGERED, {})
        try:
            await self.render()
        except Exception as exc:
            # A failed background refresh keeps the previous record on display
            emit_structured_error(
                logger,
                code=ErrorCode.REFRESH_FAILED,
                message=str(exc),
                suppressed=True,
                session_id=self._session_id,
                operation="debounced_render",
                details={"exception_type": type(exc).__name__},
            )

    # --- Apply ---

    async def apply(self, text: str | None = None) -> ApplyResult:
        """Apply JSON text (the session's own text when omitted) to the page."""
        payload = self.text if text is None else text
        self._applying = True
        try:
            document = await self._source.capture()
            document.clear_mutations()
            result = self._applier.apply(document, payload)
            if result.ok and document.mutations:
                await self._source.replay(document.mutations)
        finally:
            self._applying = False

        if result.status is ApplyStatus.PARSE_ERROR:
            await self._emitter.emit(SignalType.APPLY_FAILED, {"message": result.message})
        else:
            await self._emitter.emit_apply_complete(
                result.status.value, result.applied, result.skipped
            )
        await self.set_status(result.message)
        return result

    # --- Clipboard ---

    async def copy(self) -> bool:
        if self._record is None:
            await self.render()
        try:
            if self._clipboard is None:
                raise ClipboardAccessDenied("No clipboard available")
            await self._clipboard.write_text(self.text)
        except ClipboardAccessDenied as exc:
            emit_structured_error(
                logger,
                code=ErrorCode.CLIPBOARD_WRITE_DENIED,
                message=str(exc),
                suppressed=True,
                session_id=self._session_id,
                operation="copy",
            )
            await self._emitter.emit(SignalType.CLIPBOARD_DENIED, {"message": str(exc)})
            await self.set_status(STATUS_CLIPBOARD_BLOCKED)
            return False
        await self.set_status(STATUS_COPIED)
        return True

    # --- Status ---

    async def set_status(self, message: str) -> None:
        """Show a transient status that clears after the configured TTL."""
        self._status = message
        if self._status_handle is not None:
            self._status_handle.cancel()
        loop = asyncio.get_running_loop()
        self._status_handle = loop.call_later(
            self._config.refresh.status_ttl_ms / 1000, self._clear_status, message
        )
        await self._emitter.emit_status(message)

    def _clear_status(self, message: str) -> None:
        self._status_handle = None
        if self._status == message:
            self._status = ""

    def close(self) -> None:
        self._debouncer.cancel()
        if self._status_handle is not None:
            self._status_handle.cancel()
            self._status_handle = None
