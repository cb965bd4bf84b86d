"""Per-document debouncing of analysis triggers."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog

from surge_diagnostics.utils.async_helpers import TaskTracker
from surge_diagnostics.utils.logging import LogEventNames

if TYPE_CHECKING:
    from surge_diagnostics.interfaces.editor import TextDocument

log = structlog.get_logger()

DEFAULT_DELAY = 0.5


class DebounceScheduler:
    """Coalesces bursts of change notifications into one delayed callback.

    Each document URI has at most one pending timer. Triggering again
    restarts the quiet period. When the timer fires the callback receives
    the document object itself, so it reads the content current at expiry,
    not at the first trigger.

    Example:
        scheduler = DebounceScheduler(analyzer.run_analysis, delay=0.5)
        scheduler.trigger(document)
        await scheduler.wait_idle()
    """

    def __init__(
        self,
        callback: Callable[[TextDocument], Awaitable[Any]],
        delay: float = DEFAULT_DELAY,
        is_enabled: Callable[[], bool] | None = None,
        language_id: str | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            callback: Coroutine function run once the quiet period elapses
            delay: Quiet period in seconds
            is_enabled: Checked before starting a timer; False drops the trigger
            language_id: If set, documents of other languages are ignored
        """
        self._callback = callback
        self._delay = delay
        self._is_enabled = is_enabled or (lambda: True)
        self._language_id = language_id
        self._handles: dict[str, asyncio.TimerHandle] = {}
        self._tasks = TaskTracker()

    @property
    def delay(self) -> float:
        return self._delay

    @delay.setter
    def delay(self, value: float) -> None:
        self._delay = value

    @property
    def pending(self) -> int:
        """Number of documents with a timer not yet fired."""
        return len(self._handles)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def is_pending(self, uri: str) -> bool:
        return uri in self._handles

    def trigger(self, document: TextDocument) -> bool:
        """Start (or restart) the quiet period for a document.

        Returns:
            True if a timer was started.
        """
        if self._language_id is not None and document.language_id != self._language_id:
            return False
        if not self._is_enabled():
            log.debug(LogEventNames.ANALYSIS_SKIPPED_UNAVAILABLE, uri=document.uri)
            return False

        uri = document.uri
        self.cancel(uri)
        loop = asyncio.get_running_loop()
        self._handles[uri] = loop.call_later(self._delay, self._fire, document)
        log.debug(LogEventNames.ANALYSIS_SCHEDULED, uri=uri, delay=self._delay)
        return True

    def _fire(self, document: TextDocument) -> None:
        self._handles.pop(document.uri, None)
        self._tasks.spawn(self._callback(document), name=f"analysis:{document.uri}")

    def cancel(self, uri: str) -> None:
        handle = self._handles.pop(uri, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    async def wait_idle(self, poll_interval: float = 0.01) -> None:
        """Wait until no timer is pending and every fired callback is done."""
        while self._handles or self._tasks:
            if self._tasks:
                await self._tasks.join()
            else:
                await asyncio.sleep(poll_interval)
