"""Client for the external surge analyzer process.

This module spawns ``surge diag`` with a fixed argument contract and turns
the run into one of three outcomes:
- PAYLOAD: the process exited and wrote something to stdout
- EMPTY: the process exited with blank stdout
- TRANSPORT_FAILURE: the process could not be spawned

The client owns the analyzer's availability. A missing executable flips it
to UNAVAILABLE for the rest of the session (until ``reset``), surfaces a
single warning to the user and clears every displayed diagnostic.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from surge_diagnostics.models.analysis import (
    AnalysisContext,
    AnalyzerAvailability,
    AnalyzerResponse,
    ResponseStatus,
)
from surge_diagnostics.utils.logging import LogEventNames
from surge_diagnostics.utils.metrics import get_metrics

if TYPE_CHECKING:
    from surge_diagnostics.interfaces.editor import DiagnosticSink, UserNotifier

log = structlog.get_logger()

MISSING_EXECUTABLE_WARNING = "Surge executable not found. Semantic analysis is disabled."


class AnalyzerClient:
    """Request/response client around one analyzer invocation per call.

    Example:
        client = AnalyzerClient("surge", 200, notifier, sink)
        response = await client.invoke(context, cwd)
        if response.ok:
            parse(response.stdout)
    """

    def __init__(
        self,
        executable: str,
        max_diagnostics: int,
        notifier: UserNotifier,
        sink: DiagnosticSink,
    ) -> None:
        """Initialize the client.

        Args:
            executable: Analyzer path or bare command name looked up on PATH
            max_diagnostics: Value passed to ``--max-diagnostics``
            notifier: Receives the one-time missing-executable warning
            sink: Cleared when the executable turns out to be missing
        """
        self._executable = executable
        self._max_diagnostics = max_diagnostics
        self._notifier = notifier
        self._sink = sink
        self._availability = AnalyzerAvailability.UNKNOWN
        self._notified_missing = False

    @property
    def executable(self) -> str:
        return self._executable

    @property
    def availability(self) -> AnalyzerAvailability:
        return self._availability

    @property
    def is_unavailable(self) -> bool:
        return self._availability is AnalyzerAvailability.UNAVAILABLE

    def reset(self, executable: str | None = None) -> None:
        """Forget availability after a configuration change.

        The missing-executable warning may be shown again afterwards.
        """
        if executable is not None:
            self._executable = executable
        self._availability = AnalyzerAvailability.UNKNOWN
        self._notified_missing = False

    def build_command(self, analysis_path: str) -> list[str]:
        return [
            self._executable,
            "diag",
            "--format",
            "json",
            "--stages",
            "sema",
            "--max-diagnostics",
            str(self._max_diagnostics),
            "--with-notes",
            "--suggest",
            "--preview",
            "--fullpath",
            analysis_path,
        ]

    @staticmethod
    def working_directory(
        context: AnalysisContext,
        workspace_root: Path | None = None,
    ) -> Path | None:
        """Pick the directory the analyzer runs in.

        Precedence: the document's own directory, then the workspace root,
        then the directory of the (possibly temporary) analysis path.
        """
        if context.normalized_document_path:
            return Path(context.normalized_document_path).parent
        if workspace_root is not None:
            return workspace_root
        if context.normalized_analysis_path:
            return Path(context.normalized_analysis_path).parent
        if context.path:
            return Path(context.path).parent
        return None

    async def invoke(
        self,
        context: AnalysisContext,
        cwd: Path | None = None,
    ) -> AnalyzerResponse:
        """Run the analyzer against ``context.path``.

        Never raises for spawn failures; those come back as
        TRANSPORT_FAILURE responses.
        """
        if not context.path:
            return AnalyzerResponse.transport_failure()

        cmd = self.build_command(context.path)
        metrics = get_metrics()
        log.debug(LogEventNames.ANALYZER_SPAWNING, command=cmd, cwd=str(cwd) if cwd else None)

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=os.fspath(cwd) if cwd else None,
            )
        except FileNotFoundError as e:
            if cwd is None or e.filename != os.fspath(cwd):
                self._handle_missing_executable(e)
                return AnalyzerResponse.transport_failure()
            metrics.analyzer_failures.inc(labels={"reason": "cwd"})
            log.error(LogEventNames.ANALYZER_SPAWN_FAILED, cwd=str(cwd), error=str(e))
            return AnalyzerResponse.transport_failure()
        except OSError as e:
            metrics.analyzer_failures.inc(labels={"reason": "spawn"})
            log.error(
                LogEventNames.ANALYZER_SPAWN_FAILED,
                executable=self._executable,
                error=str(e),
            )
            return AnalyzerResponse.transport_failure()

        metrics.analysis_runs.inc()
        metrics.in_flight.inc()
        try:
            stdout_bytes, stderr_bytes = await proc.communicate()
        finally:
            metrics.in_flight.dec()

        if self._availability is not AnalyzerAvailability.UNAVAILABLE:
            self._availability = AnalyzerAvailability.AVAILABLE

        exit_code = proc.returncode if isinstance(proc.returncode, int) else 0
        stdout = (stdout_bytes or b"").decode("utf-8", errors="replace")
        stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")
        log.debug(LogEventNames.ANALYZER_EXITED, exit_code=exit_code, stdout_size=len(stdout))

        status = ResponseStatus.PAYLOAD if stdout.strip() else ResponseStatus.EMPTY
        return AnalyzerResponse(status=status, stdout=stdout, stderr=stderr, exit_code=exit_code)

    def _handle_missing_executable(self, error: OSError) -> None:
        self._availability = AnalyzerAvailability.UNAVAILABLE
        get_metrics().analyzer_failures.inc(labels={"reason": "not_found"})
        log.warning(
            LogEventNames.ANALYZER_NOT_FOUND,
            executable=self._executable,
            error=str(error),
            notified=self._notified_missing,
        )
        if not self._notified_missing:
            self._notified_missing = True
            self._notifier.show_warning(MISSING_EXECUTABLE_WARNING)
        self._sink.clear()
