"""Materialize buffers to scratch files when they cannot be analyzed from disk.

A document that is saved, titled and clean is analyzed in place. Anything
else (unsaved edits, untitled buffers, non-file documents) is written to a
uniquely named file in a shared scratch directory; the returned context
carries a cleanup action that removes it.
"""

from __future__ import annotations

import asyncio
import secrets
import time
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from surge_diagnostics.core.paths import normalize_fs_path
from surge_diagnostics.models.analysis import AnalysisContext
from surge_diagnostics.utils.errors import SnapshotError
from surge_diagnostics.utils.logging import LogEventNames

if TYPE_CHECKING:
    from surge_diagnostics.interfaces.editor import TextDocument

log = structlog.get_logger()

DEFAULT_STEM = "untitled"
DEFAULT_SUFFIX = ".sg"


class TempSnapshotManager:
    """Decides what path to analyze for a document.

    Example:
        manager = TempSnapshotManager(Path("/tmp/surge-vscode"))
        context = await manager.prepare(document)
        try:
            ...
        finally:
            if context.cleanup:
                await context.cleanup()
    """

    def __init__(self, temp_dir: Path) -> None:
        self._temp_dir = temp_dir

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    async def ensure_temp_dir(self) -> None:
        """Create the scratch directory; tolerates pre-existence."""
        await asyncio.to_thread(self._temp_dir.mkdir, parents=True, exist_ok=True)

    async def prepare(self, document: TextDocument) -> AnalysisContext:
        """Return the analysis context for the document's current state.

        Raises:
            SnapshotError: If the scratch file cannot be written.
        """
        doc_path = document.path
        normalized_doc_path = normalize_fs_path(doc_path)

        if doc_path is not None and not document.is_untitled and not document.is_dirty:
            return AnalysisContext(
                path=str(doc_path),
                normalized_analysis_path=normalized_doc_path,
                normalized_document_path=normalized_doc_path,
            )

        temp_path = await self.create_temp_file(document.get_text(), doc_path)

        async def cleanup() -> None:
            await self.delete_temp_file(temp_path)

        return AnalysisContext(
            path=str(temp_path),
            normalized_analysis_path=normalize_fs_path(temp_path),
            normalized_document_path=normalized_doc_path,
            cleanup=cleanup,
        )

    def temp_file_name(self, original_path: Path | None) -> str:
        """Build ``<stem>-<epoch ms>-<random hex><suffix>`` for a snapshot."""
        stem = original_path.stem if original_path and original_path.stem else DEFAULT_STEM
        suffix = original_path.suffix if original_path and original_path.suffix else DEFAULT_SUFFIX
        unique = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"
        return f"{stem}-{unique}{suffix}"

    async def create_temp_file(self, content: str, original_path: Path | None) -> Path:
        """Write ``content`` to a fresh file in the scratch directory.

        Raises:
            SnapshotError: If the directory or file cannot be written.
        """
        temp_path = self._temp_dir / self.temp_file_name(original_path)
        try:
            await self.ensure_temp_dir()
            await asyncio.to_thread(temp_path.write_text, content, encoding="utf-8")
        except OSError as e:
            raise SnapshotError(f"Unable to write snapshot {temp_path}: {e}") from e

        log.debug(LogEventNames.TEMP_FILE_WRITTEN, path=str(temp_path), size=len(content))
        return temp_path

    async def delete_temp_file(self, path: Path) -> None:
        """Remove a snapshot file. Never raises."""
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning(LogEventNames.TEMP_FILE_DELETE_FAILED, path=str(path), error=str(e))
