"""Tests for async utility functions."""

import asyncio

import pytest

from surge_diagnostics.utils.async_helpers import TaskTracker, with_timeout
from surge_diagnostics.utils.errors import (
    ConfigurationError,
    DiagnosticsParseError,
    SnapshotError,
    SurgeDiagnosticsError,
    TimeoutError,
)


class TestCustomExceptions:
    """Test custom exception classes."""

    @pytest.mark.parametrize(
        "error_type",
        [ConfigurationError, DiagnosticsParseError, SnapshotError, TimeoutError],
    )
    def test_inherits_from_base(self, error_type: type[Exception]) -> None:
        """Test every package error derives from SurgeDiagnosticsError."""
        error = error_type("failed")
        assert isinstance(error, SurgeDiagnosticsError)
        assert str(error) == "failed"


class TestWithTimeout:
    """Test the with_timeout helper."""

    async def test_returns_result(self) -> None:
        """Test a fast coroutine returns its value."""

        async def fast() -> str:
            return "done"

        assert await with_timeout(fast(), timeout=1.0) == "done"

    async def test_raises_timeout(self) -> None:
        """Test a slow coroutine raises the package TimeoutError."""
        with pytest.raises(TimeoutError, match="timed out after 0.01s"):
            await with_timeout(asyncio.sleep(1), timeout=0.01)

    async def test_custom_message(self) -> None:
        """Test a custom timeout message."""
        with pytest.raises(TimeoutError, match="analysis did not finish"):
            await with_timeout(asyncio.sleep(1), 0.01, "analysis did not finish")


class TestTaskTracker:
    """Test background task tracking."""

    async def test_join_waits_for_tasks(self) -> None:
        """Test join returns once every task is done."""
        tracker = TaskTracker()
        results: list[int] = []

        async def work(n: int) -> None:
            await asyncio.sleep(0.01)
            results.append(n)

        tracker.spawn(work(1))
        tracker.spawn(work(2), name="second")
        assert len(tracker) == 2

        await tracker.join()

        assert sorted(results) == [1, 2]
        assert len(tracker) == 0

    async def test_join_includes_tasks_spawned_meanwhile(self) -> None:
        """Test tasks spawned by tracked tasks are awaited too."""
        tracker = TaskTracker()
        results: list[str] = []

        async def child() -> None:
            results.append("child")

        async def parent() -> None:
            tracker.spawn(child())

        tracker.spawn(parent())
        await tracker.join()

        assert results == ["child"]

    async def test_failed_task_is_logged_not_raised(self) -> None:
        """Test a failing task does not break join."""
        tracker = TaskTracker()

        async def fail() -> None:
            raise RuntimeError("boom")

        tracker.spawn(fail())
        await tracker.join()

        assert len(tracker) == 0

    async def test_cancelled_task_is_discarded(self) -> None:
        """Test cancellation removes the task."""
        tracker = TaskTracker()
        task = tracker.spawn(asyncio.sleep(10))
        task.cancel()
        await tracker.join()
        assert len(tracker) == 0
