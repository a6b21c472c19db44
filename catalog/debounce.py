"""Debounced search input built on asyncio timer handles."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """Run ``action`` once input has been quiet for ``delay`` seconds.

    Every ``trigger`` cancels the pending timer and re-arms it with the latest
    arguments. Must be used from inside a running event loop.
    """

    def __init__(self, delay: float, action: Callable[..., Awaitable[Any]]) -> None:
        self.delay = delay
        self.action = action
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, args)

    def _fire(self, args: tuple) -> None:
        self._handle = None
        self._task = asyncio.ensure_future(self.action(*args))
        self._task.add_done_callback(_log_failure)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def wait(self) -> None:
        """Wait for the most recently fired action to finish."""
        if self._task is not None:
            await asyncio.shield(self._task)


def _log_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Debounced action failed", exc_info=exc)


class SearchInput:
    """The catalog search box: raw keystrokes in, debounced ``set_search`` out."""

    def __init__(self, on_search: Callable[[str], Awaitable[Any]], delay_ms: int = 400) -> None:
        self.value = ""
        self._debouncer = Debouncer(delay_ms / 1000, on_search)

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def change(self, text: str) -> None:
        self.value = text
        self._debouncer.trigger(text)

    async def settle(self) -> None:
        await self._debouncer.wait()

    def close(self) -> None:
        self._debouncer.cancel()
