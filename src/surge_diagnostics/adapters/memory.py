"""In-memory host adapters.

These implement the editor protocols without an editor: diagnostics are
kept in a dict, warnings are logged and recorded, and workspace roots come
from a fixed list of folders. The CLI and the tests run the pipeline on
top of them.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from ..core.paths import normalize_fs_path, same_path

if TYPE_CHECKING:
    from ..interfaces.editor import TextDocument
    from ..models.diagnostic import Diagnostic

log = structlog.get_logger()


class InMemoryDiagnosticCollection:
    """Diagnostics per document URI."""

    def __init__(self) -> None:
        self._entries: dict[str, list[Diagnostic]] = {}

    def __contains__(self, uri: object) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def set(self, uri: str, diagnostics: list[Diagnostic]) -> None:
        self._entries[uri] = list(diagnostics)

    def get(self, uri: str) -> list[Diagnostic]:
        return list(self._entries.get(uri, []))

    def delete(self, uri: str) -> None:
        self._entries.pop(uri, None)

    def clear(self) -> None:
        self._entries.clear()

    def items(self) -> list[tuple[str, list[Diagnostic]]]:
        return [(uri, list(diags)) for uri, diags in self._entries.items()]


class LoggingNotifier:
    """Logs user warnings and keeps them for inspection."""

    def __init__(self) -> None:
        self.warnings: list[str] = []

    def show_warning(self, message: str) -> None:
        self.warnings.append(message)
        log.warning("user_warning", message=message)


class StaticWorkspace:
    """Resolves a document to the deepest configured folder containing it."""

    def __init__(self, roots: Iterable[Path] = ()) -> None:
        self._roots = [root.resolve() for root in roots]

    def workspace_root(self, document: TextDocument) -> Path | None:
        doc_path = normalize_fs_path(document.path)
        if doc_path is None:
            return self._roots[0] if len(self._roots) == 1 else None

        best: Path | None = None
        for root in self._roots:
            root_path = normalize_fs_path(root)
            if root_path is None:
                continue
            inside = doc_path.startswith(root_path.rstrip(os.sep) + os.sep)
            if inside or same_path(doc_path, root_path):
                if best is None or len(str(root)) > len(str(best)):
                    best = root
        return best
