"""Abstract interfaces for the host editor.

The pipeline never owns documents or the displayed diagnostics; it reads
documents and writes results through these protocols.
"""

from pathlib import Path
from typing import Protocol

from ..models.diagnostic import Diagnostic


class TextDocument(Protocol):
    """A live buffer as seen by the pipeline. Read-only."""

    @property
    def uri(self) -> str:
        """Stable document identity."""
        ...

    @property
    def path(self) -> Path | None:
        """Backing file on disk, or None for non-file documents."""
        ...

    @property
    def version(self) -> int:
        """Monotonically increasing version number."""
        ...

    @property
    def language_id(self) -> str: ...

    @property
    def is_dirty(self) -> bool:
        """True if the buffer has unsaved modifications."""
        ...

    @property
    def is_untitled(self) -> bool: ...

    @property
    def is_closed(self) -> bool: ...

    @property
    def line_count(self) -> int: ...

    def get_text(self) -> str:
        """Return the full current buffer content."""
        ...

    def line_at(self, line: int) -> str:
        """
        Return the text of a zero-based line.

        Raises:
            IndexError: If the line does not exist
        """
        ...


class DiagnosticSink(Protocol):
    """Where the host displays diagnostics, keyed by document URI."""

    def set(self, uri: str, diagnostics: list[Diagnostic]) -> None:
        """Replace the diagnostics shown for a document."""
        ...

    def get(self, uri: str) -> list[Diagnostic]: ...

    def delete(self, uri: str) -> None: ...

    def clear(self) -> None:
        """Remove diagnostics for every document."""
        ...


class UserNotifier(Protocol):
    """User-visible notifications."""

    def show_warning(self, message: str) -> None: ...


class WorkspaceResolver(Protocol):
    """Maps a document to the local root of its workspace folder."""

    def workspace_root(self, document: TextDocument) -> Path | None:
        """
        Return the workspace folder containing the document.

        Returns:
            A local filesystem path, or None if the document is outside any
            folder or the folder is not on the local filesystem
        """
        ...
