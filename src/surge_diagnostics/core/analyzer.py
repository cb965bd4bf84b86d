"""Diagnostic acquisition pipeline orchestrator.

This module implements the SurgeAnalyzer class that coordinates one
analysis attempt per quiet period:
1. Debounce change/open/save events per document
2. Capture the document version
3. Resolve an analyzable path (on disk, or a scratch snapshot)
4. Run the analyzer, always cleaning the snapshot up afterwards
5. Drop the result if the document changed or closed meanwhile
6. Parse diagnostics, replace the document's set, remember fixes
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from surge_diagnostics.config.schema import AnalyzerConfig
from surge_diagnostics.core.code_actions import CodeActionBuilder
from surge_diagnostics.core.correlator import ResultCorrelator
from surge_diagnostics.core.debounce import DebounceScheduler
from surge_diagnostics.core.diagnostic_parser import DiagnosticParser, FixRegistry
from surge_diagnostics.core.invoker import AnalyzerClient
from surge_diagnostics.core.snapshots import TempSnapshotManager
from surge_diagnostics.models.analysis import AnalysisContext, AnalyzerAvailability
from surge_diagnostics.models.diagnostic import CodeAction, Diagnostic, Fix
from surge_diagnostics.utils.logging import LogEventNames, bind_context, unbind_context
from surge_diagnostics.utils.metrics import Timer, get_metrics

if TYPE_CHECKING:
    from surge_diagnostics.interfaces.editor import (
        DiagnosticSink,
        TextDocument,
        UserNotifier,
        WorkspaceResolver,
    )

log = structlog.get_logger()


class SurgeAnalyzer:
    """Keeps a document's displayed diagnostics in step with the analyzer.

    Responsibilities:
    - Route editor events into the debounce scheduler
    - Run one analysis attempt and publish fresh results
    - Drop stale results without touching displayed diagnostics
    - Serve quick fixes for currently displayed diagnostics

    Example:
        analyzer = SurgeAnalyzer(config.analyzer, sink, notifier)
        await analyzer.start(open_documents)
        analyzer.on_document_changed(document)
    """

    def __init__(
        self,
        config: AnalyzerConfig,
        sink: DiagnosticSink,
        notifier: UserNotifier,
        workspace: WorkspaceResolver | None = None,
        client: AnalyzerClient | None = None,
        snapshots: TempSnapshotManager | None = None,
    ) -> None:
        """Initialize the SurgeAnalyzer.

        Args:
            config: Analyzer section of the configuration
            sink: Where diagnostics are displayed
            notifier: User-visible warnings
            workspace: Resolves workspace roots for the working directory
            client: Analyzer client (built from config if None)
            snapshots: Snapshot manager (built from config if None)
        """
        self._config = config
        self._sink = sink
        self._workspace = workspace
        self._client = client or AnalyzerClient(
            config.executable_path,
            config.max_diagnostics,
            notifier,
            sink,
        )
        self._snapshots = snapshots or TempSnapshotManager(config.temp_dir)
        self._correlator = ResultCorrelator()
        self._registry = FixRegistry()
        self._parser = DiagnosticParser(self._registry)
        self._actions = CodeActionBuilder(self._registry)
        self._scheduler = DebounceScheduler(
            self.run_analysis,
            delay=config.debounce_seconds,
            is_enabled=lambda: not self._client.is_unavailable,
            language_id=config.language_id,
        )

    @property
    def client(self) -> AnalyzerClient:
        return self._client

    @property
    def scheduler(self) -> DebounceScheduler:
        return self._scheduler

    @property
    def availability(self) -> AnalyzerAvailability:
        return self._client.availability

    async def start(self, documents: Iterable[TextDocument] = ()) -> None:
        """Prepare the scratch directory and analyze already-open documents."""
        try:
            await self._snapshots.ensure_temp_dir()
        except OSError as e:
            log.warning(
                LogEventNames.TEMP_DIR_FAILED,
                path=str(self._snapshots.temp_dir),
                error=str(e),
            )
        log.info(
            LogEventNames.ANALYZER_STARTED,
            executable=self._client.executable,
            debounce_ms=self._config.debounce_ms,
        )
        for document in documents:
            self.trigger(document)

    def stop(self) -> None:
        self._scheduler.cancel_all()
        log.info(LogEventNames.ANALYZER_STOPPED)

    async def wait_idle(self) -> None:
        await self._scheduler.wait_idle()

    def trigger(self, document: TextDocument) -> bool:
        return self._scheduler.trigger(document)

    def on_document_opened(self, document: TextDocument) -> None:
        self.trigger(document)

    def on_document_changed(self, document: TextDocument) -> None:
        self.trigger(document)

    def on_document_saved(self, document: TextDocument) -> None:
        self.trigger(document)

    def on_document_closed(self, document: TextDocument) -> None:
        self._scheduler.cancel(document.uri)
        self._registry.invalidate(document.uri)
        self._sink.delete(document.uri)

    def on_configuration_changed(
        self,
        config: AnalyzerConfig,
        documents: Iterable[TextDocument] = (),
    ) -> None:
        """Apply new settings; a new executable re-enables analysis."""
        executable_changed = config.executable_path != self._client.executable
        self._config = config
        self._scheduler.delay = config.debounce_seconds
        if not executable_changed:
            return

        self._client.reset(config.executable_path)
        log.info(LogEventNames.EXECUTABLE_CHANGED, executable=config.executable_path)
        for document in documents:
            self.trigger(document)

    async def run_analysis(self, document: TextDocument) -> list[Diagnostic] | None:
        """Run one analysis attempt for the document's current state.

        Returns:
            The published diagnostics, or None if nothing was published
            (analyzer unavailable, snapshot failure, spawn failure or a
            stale result).
        """
        if self._client.is_unavailable:
            return None

        bind_context(uri=document.uri)
        try:
            with Timer(get_metrics().analysis_duration):
                return await self._run(document)
        finally:
            unbind_context("uri")

    async def _run(self, document: TextDocument) -> list[Diagnostic] | None:
        ticket = self._correlator.capture(document)

        try:
            context = await self._snapshots.prepare(document)
        except Exception as e:
            log.error(LogEventNames.SNAPSHOT_PREPARE_FAILED, error=str(e))
            return None

        try:
            cwd = self._client.working_directory(context, self._workspace_root(document))
            response = await self._client.invoke(context, cwd)
        finally:
            await self._cleanup(context)

        if not response.ok:
            return None

        if not self._correlator.is_current(document, ticket):
            get_metrics().analysis_discarded.inc()
            log.debug(
                LogEventNames.RESULT_DISCARDED_STALE,
                analyzed_version=ticket.version,
                current_version=document.version,
                closed=document.is_closed,
            )
            return None

        if response.stderr.strip():
            log.info(LogEventNames.ANALYZER_STDERR, stderr=response.stderr.strip())
        if response.exit_code > 1:
            get_metrics().analyzer_failures.inc(labels={"reason": "exit_code"})
            log.error(LogEventNames.ANALYZER_EXIT_ERROR, exit_code=response.exit_code)

        self._registry.invalidate(document.uri)
        diagnostics = self._parser.parse(response.stdout, document, context)
        self._sink.set(document.uri, diagnostics)
        get_metrics().diagnostics_published.inc(len(diagnostics))
        log.debug(
            LogEventNames.DIAGNOSTICS_PUBLISHED,
            version=ticket.version,
            count=len(diagnostics),
        )
        return diagnostics

    async def _cleanup(self, context: AnalysisContext) -> None:
        if context.cleanup is None:
            return
        try:
            await context.cleanup()
        except Exception as e:
            log.warning(LogEventNames.CLEANUP_FAILED, path=context.path, error=str(e))

    def _workspace_root(self, document: TextDocument) -> Path | None:
        if self._workspace is None:
            return None
        return self._workspace.workspace_root(document)

    def get_fixes_for_diagnostic(self, diagnostic: Diagnostic | None) -> tuple[Fix, ...]:
        return self._registry.fixes_for(diagnostic)

    def provide_code_actions(
        self,
        document: TextDocument,
        diagnostics: Iterable[Diagnostic] | None = None,
    ) -> list[CodeAction]:
        """Quick fixes for the given diagnostics (default: all displayed ones)."""
        if diagnostics is None:
            diagnostics = self._sink.get(document.uri)
        return self._actions.provide_code_actions(document, diagnostics)
