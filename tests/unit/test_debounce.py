"""Tests for the debounce scheduler."""

import asyncio

import pytest

from surge_diagnostics.core.debounce import DebounceScheduler
from surge_diagnostics.interfaces.editor import TextDocument
from surge_diagnostics.models.document import Document


class Recorder:
    """Records the text each callback saw."""

    def __init__(self) -> None:
        self.seen: list[tuple[str, str]] = []

    async def __call__(self, document: TextDocument) -> None:
        self.seen.append((document.uri, document.get_text()))


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


class TestDebounceScheduler:
    """Test trigger coalescing."""

    async def test_burst_produces_single_call_with_last_text(
        self, recorder: Recorder
    ) -> None:
        scheduler = DebounceScheduler(recorder, delay=0.2)
        doc = Document(uri="file:///a.sg", text="v1")

        for i in range(5):
            doc.set_text(f"v{i + 2}")
            scheduler.trigger(doc)
            await asyncio.sleep(0.005)

        await scheduler.wait_idle()

        assert recorder.seen == [("file:///a.sg", "v6")]

    async def test_text_read_at_expiry_not_at_trigger(self, recorder: Recorder) -> None:
        scheduler = DebounceScheduler(recorder, delay=0.05)
        doc = Document(uri="file:///a.sg", text="first")

        scheduler.trigger(doc)
        doc.set_text("edited without trigger")
        await scheduler.wait_idle()

        assert recorder.seen == [("file:///a.sg", "edited without trigger")]

    async def test_documents_are_independent(self, recorder: Recorder) -> None:
        scheduler = DebounceScheduler(recorder, delay=0.02)
        a = Document(uri="file:///a.sg", text="a")
        b = Document(uri="file:///b.sg", text="b")

        scheduler.trigger(a)
        scheduler.trigger(b)
        scheduler.trigger(a)
        assert scheduler.pending == 2

        await scheduler.wait_idle()

        assert sorted(recorder.seen) == [("file:///a.sg", "a"), ("file:///b.sg", "b")]

    async def test_separate_windows_produce_separate_calls(self, recorder: Recorder) -> None:
        scheduler = DebounceScheduler(recorder, delay=0.01)
        doc = Document(uri="file:///a.sg", text="one")

        scheduler.trigger(doc)
        await scheduler.wait_idle()
        doc.set_text("two")
        scheduler.trigger(doc)
        await scheduler.wait_idle()

        assert [text for _, text in recorder.seen] == ["one", "two"]

    async def test_disabled_scheduler_starts_no_timer(self, recorder: Recorder) -> None:
        scheduler = DebounceScheduler(recorder, delay=0.01, is_enabled=lambda: False)
        doc = Document(uri="file:///a.sg", text="x")

        assert scheduler.trigger(doc) is False
        assert scheduler.pending == 0
        await asyncio.sleep(0.03)

        assert recorder.seen == []

    async def test_other_language_is_ignored(self, recorder: Recorder) -> None:
        scheduler = DebounceScheduler(recorder, delay=0.01, language_id="surge")
        doc = Document(uri="file:///a.py", text="x", language_id="python")

        assert scheduler.trigger(doc) is False
        assert scheduler.pending == 0

    async def test_cancel_drops_pending_timer(self, recorder: Recorder) -> None:
        scheduler = DebounceScheduler(recorder, delay=0.02)
        doc = Document(uri="file:///a.sg", text="x")

        scheduler.trigger(doc)
        assert scheduler.is_pending(doc.uri)
        scheduler.cancel(doc.uri)
        await asyncio.sleep(0.05)

        assert recorder.seen == []
        assert not scheduler.is_pending(doc.uri)

    async def test_cancel_all(self, recorder: Recorder) -> None:
        scheduler = DebounceScheduler(recorder, delay=0.02)
        scheduler.trigger(Document(uri="file:///a.sg"))
        scheduler.trigger(Document(uri="file:///b.sg"))

        scheduler.cancel_all()
        await scheduler.wait_idle()

        assert recorder.seen == []

    async def test_failing_callback_does_not_break_scheduler(self) -> None:
        calls = 0

        async def boom(document: TextDocument) -> None:
            nonlocal calls
            calls += 1
            raise RuntimeError("analysis exploded")

        scheduler = DebounceScheduler(boom, delay=0.01)
        doc = Document(uri="file:///a.sg")
        scheduler.trigger(doc)
        await scheduler.wait_idle()
        scheduler.trigger(doc)
        await scheduler.wait_idle()

        assert calls == 2
