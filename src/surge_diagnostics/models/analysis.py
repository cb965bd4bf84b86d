"""Data models for a single analysis attempt."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum


class AnalyzerAvailability(Enum):
    """Whether the analyzer executable can be spawned."""

    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class ResponseStatus(Enum):
    """Outcome of one analyzer invocation."""

    PAYLOAD = "payload"
    EMPTY = "empty"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass
class AnalysisContext:
    """Resolved path and cleanup obligation for one analysis attempt."""

    path: str
    normalized_analysis_path: str | None
    normalized_document_path: str | None = None
    cleanup: Callable[[], Awaitable[None]] | None = None

    @property
    def is_temporary(self) -> bool:
        return self.cleanup is not None

    @property
    def target_paths(self) -> frozenset[str]:
        """Normalized paths that count as "the document under analysis"."""
        return frozenset(
            p for p in (self.normalized_document_path, self.normalized_analysis_path) if p
        )


@dataclass(frozen=True)
class AnalyzerResponse:
    """What the analyzer process produced."""

    status: ResponseStatus
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.status is not ResponseStatus.TRANSPORT_FAILURE

    @classmethod
    def transport_failure(cls) -> AnalyzerResponse:
        return cls(status=ResponseStatus.TRANSPORT_FAILURE)


@dataclass(frozen=True)
class AnalysisTicket:
    """Document version captured before an invocation."""

    uri: str
    version: int
