"""Browser Layer: Playwright adapter between a live page and the in-memory document.

The layer has no extraction or apply logic of its own. It serialises the
rendered page into a snapshot, replays recorded control mutations onto
the elements they came from, writes to the page clipboard, and forwards
page mutations to a callback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from pagelens.config.settings import BrowserConfig
from pagelens.document.nodes import ControlMutation, Document
from pagelens.document.snapshot import document_from_snapshot
from pagelens.telemetry.errors import (
    BrowserNotStarted,
    ClipboardAccessDenied,
    ErrorCode,
    emit_structured_error,
)

logger = logging.getLogger(__name__)

_NOTIFY_BINDING = "__pagelensNotify"

# Walks the rendered DOM once; elements are kept in window.__pagelensNodes
# so that node ids in the snapshot can be resolved again on replay.
_CAPTURE_JS = """() => {
    const nodes = [];
    window.__pagelensNodes = nodes;
    const walk = (el) => {
        const id = String(nodes.length);
        nodes.push(el);
        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);
        const attrs = {};
        for (const attr of el.attributes) attrs[attr.name] = attr.value;
        const children = [];
        for (const child of el.childNodes) {
            if (child.nodeType === Node.ELEMENT_NODE) children.push(walk(child));
            else if (child.nodeType === Node.TEXT_NODE) children.push({text: child.textContent});
        }
        const out = {
            id, tag: el.tagName.toLowerCase(), attrs,
            rect: [rect.width, rect.height],
            visibility: style.visibility, display: style.display,
            children,
        };
        if (el instanceof HTMLInputElement || el instanceof HTMLTextAreaElement
                || el instanceof HTMLSelectElement) {
            out.value = el.value;
        }
        if (el instanceof HTMLInputElement) out.checked = el.checked;
        return out;
    };
    return {url: location.href, title: document.title, root: walk(document.documentElement)};
}"""

_REPLAY_JS = """(mutations) => {
    const nodes = window.__pagelensNodes || [];
    let missing = 0;
    for (const m of mutations) {
        const el = nodes[Number(m.node_id)];
        if (!el || !el.isConnected) { missing += 1; continue; }
        if (m.kind === "value") el.value = m.value;
        else if (m.kind === "text") el.textContent = m.value;
        else if (m.kind === "click") el.click();
        else if (m.kind === "event") el.dispatchEvent(new Event(m.value, {bubbles: true}));
    }
    if (window.__pagelensObserver) window.__pagelensObserver.takeRecords();
    return missing;
}"""

_OBSERVE_JS = """(binding) => {
    if (window.__pagelensObserver) return;
    const observer = new MutationObserver(() => window[binding]());
    observer.observe(document.body, {childList: true, subtree: true, characterData: true});
    window.__pagelensObserver = observer;
}"""


class ActionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class ActionResult:
    """Result of a browser action."""

    status: ActionStatus
    detail: str = ""


class BrowserLayer:
    """Playwright-backed DocumentSource and ClipboardSink for one page.

    Contract:
    - capture() returns a fresh Document per call
    - replay() only touches elements captured by the latest capture()
    - never navigates or interacts on its own
    """

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self._config = config or BrowserConfig()
        self._playwright: Any = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._observing = False

    @property
    def page(self) -> Page | None:
        return self._page

    def _require_page(self) -> Page:
        if self._page is None:
            raise BrowserNotStarted("Browser not started")
        return self._page

    async def start(self) -> None:
        """Launch browser and create an isolated context with clipboard access."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._config.headless,
        )
        self._context = await self._browser.new_context(
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
            user_agent=self._config.user_agent,
            locale=self._config.locale,
        )
        await self._context.grant_permissions(["clipboard-read", "clipboard-write"])
        self._page = await self._context.new_page()

    async def stop(self) -> None:
        """Clean up browser resources."""
        try:
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
            if self._playwright:
                await self._playwright.stop()
        except PlaywrightError as exc:
            emit_structured_error(
                logger,
                code=ErrorCode.BROWSER_CLEANUP_FAILED,
                message=str(exc),
                suppressed=True,
                operation="browser_stop",
            )
        finally:
            self._context = None
            self._browser = None
            self._playwright = None
            self._page = None
            self._observing = False

    async def navigate(self, url: str, timeout_ms: int = 30000) -> ActionResult:
        """Navigate to a URL and wait for page load."""
        if not self._page:
            return ActionResult(status=ActionStatus.FAILURE, detail="Browser not started")
        try:
            await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            return ActionResult(status=ActionStatus.SUCCESS, detail=f"Navigated to {url}")
        except PlaywrightError as e:
            return ActionResult(status=ActionStatus.FAILURE, detail=str(e))

    async def capture(self) -> Document:
        """Serialise the rendered page into a Document."""
        page = self._require_page()
        snapshot = await page.evaluate(_CAPTURE_JS)
        return document_from_snapshot(snapshot)

    async def replay(self, mutations: list[ControlMutation]) -> None:
        """Apply recorded control mutations to the live page."""
        page = self._require_page()
        if not mutations:
            return
        try:
            missing = await page.evaluate(_REPLAY_JS, [m.to_dict() for m in mutations])
        except PlaywrightError as exc:
            emit_structured_error(
                logger,
                code=ErrorCode.REPLAY_FAILED,
                message=str(exc),
                suppressed=False,
                operation="replay",
                details={"mutations": len(mutations)},
            )
            raise
        if missing:
            logger.warning(
                "Replay skipped detached nodes",
                extra={"missing": missing, "mutations": len(mutations)},
            )

    async def write_text(self, text: str) -> None:
        """Write text to the page clipboard.

        Raises:
            ClipboardAccessDenied: when the page refuses the write.
        """
        page = self._require_page()
        try:
            await page.evaluate("(text) => navigator.clipboard.writeText(text)", text)
        except PlaywrightError as exc:
            raise ClipboardAccessDenied(str(exc)) from exc

    async def observe_mutations(self, callback: Callable[[], Any]) -> None:
        """Call ``callback`` whenever the page body changes."""
        page = self._require_page()
        if not self._observing:
            await page.expose_function(_NOTIFY_BINDING, callback)
            self._observing = True
        await page.evaluate(_OBSERVE_JS, _NOTIFY_BINDING)
