"""Shared test fixtures for surge-diagnostics."""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from surge_diagnostics.adapters.memory import InMemoryDiagnosticCollection, LoggingNotifier
from surge_diagnostics.config.schema import AnalyzerConfig
from surge_diagnostics.models.document import Document
from surge_diagnostics.utils.logging import clear_context
from surge_diagnostics.utils.metrics import MetricsRegistry

SAMPLE_SOURCE = """fn main() -> int {
    let x = 1;
    let y = undefined_name;
    return x;
}
"""


@pytest.fixture(autouse=True)
def fresh_metrics() -> None:
    """Give every test its own metrics registry."""
    MetricsRegistry.reset()


@pytest.fixture(autouse=True)
def reset_log_handlers() -> Iterator[None]:
    """Drop handlers installed by configure_logging and any bound context."""
    yield
    clear_context()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """A saved surge source file."""
    path = tmp_path / "project" / "main.sg"
    path.parent.mkdir()
    path.write_text(SAMPLE_SOURCE)
    return path


@pytest.fixture
def document(source_file: Path) -> Document:
    """A clean document backed by ``source_file``."""
    return Document.from_file(source_file)


@pytest.fixture
def analyzer_config(tmp_path: Path) -> AnalyzerConfig:
    """Analyzer settings with a short debounce and a private scratch dir."""
    return AnalyzerConfig(
        executable_path="surge",
        debounce_ms=10,
        max_diagnostics=50,
        temp_dir=tmp_path / "scratch",
    )


@pytest.fixture
def sink() -> InMemoryDiagnosticCollection:
    return InMemoryDiagnosticCollection()


@pytest.fixture
def notifier() -> LoggingNotifier:
    return LoggingNotifier()


def fake_process(stdout: str = "", stderr: str = "", returncode: int | None = 0) -> MagicMock:
    """A stand-in for ``asyncio.subprocess.Process``."""
    proc = MagicMock()
    proc.communicate = AsyncMock(return_value=(stdout.encode(), stderr.encode()))
    proc.returncode = returncode
    return proc


@pytest.fixture
def process_factory() -> Callable[..., MagicMock]:
    return fake_process
