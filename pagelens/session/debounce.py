"""Trailing-edge debouncer on the running event loop."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable


class Debouncer:
    """Runs ``callback`` once after ``delay_ms`` of quiet.

    Each ``schedule()`` supersedes the pending one, so a burst of calls
    produces a single invocation.
    """

    def __init__(self, callback: Callable[[], Awaitable[Any]], delay_ms: int) -> None:
        self._callback = callback
        self._delay_s = delay_ms / 1000
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[Any] | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay_s, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._task = asyncio.ensure_future(self._callback())

    async def wait(self) -> None:
        """Wait for the pending invocation (if any) to run to completion."""
        while self._handle is not None:
            await asyncio.sleep(self._delay_s / 2 or 0.001)
        if self._task is not None:
            await self._task
