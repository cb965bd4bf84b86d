"""Timeouts and fire-and-forget task bookkeeping for the asyncio pipeline."""

from __future__ import annotations

import asyncio
import builtins
from collections.abc import Awaitable, Coroutine
from typing import Any, TypeVar

import structlog

from surge_diagnostics.utils.errors import TimeoutError

log = structlog.get_logger()

T = TypeVar("T")


async def with_timeout(
    coro: Awaitable[T],
    timeout: float,
    error_message: str | None = None,
) -> T:
    """Await ``coro`` for at most ``timeout`` seconds.

    Raises:
        TimeoutError: The ``SurgeDiagnosticsError`` subclass, not the builtin.
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except builtins.TimeoutError as e:
        msg = error_message or f"Operation timed out after {timeout}s"
        log.warning("operation_timeout", timeout=timeout)
        raise TimeoutError(msg) from e


class TaskTracker:
    """Keeps strong references to background tasks until they finish.

    Example:
        tracker = TaskTracker()
        tracker.spawn(do_work())
        await tracker.join()
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, T], name: str | None = None) -> asyncio.Task[T]:
        """Schedule a coroutine on the running loop and track it."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error(
                "background_task_failed",
                task=task.get_name(),
                error=str(exc),
                exception_type=type(exc).__name__,
            )

    async def join(self) -> None:
        """Wait until every tracked task (including ones spawned meanwhile) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
