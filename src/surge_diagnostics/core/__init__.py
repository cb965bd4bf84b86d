"""Core pipeline components.

This module exports the main pipeline classes:
- SurgeAnalyzer: Orchestrates debounce, snapshot, invocation and publishing
- DebounceScheduler: Coalesces change bursts per document
- TempSnapshotManager: Materializes unsaved buffers for analysis
- AnalyzerClient: Spawns the external analyzer
- ResultCorrelator: Drops results for superseded document versions
- DiagnosticParser: Decodes analyzer JSON into diagnostics
- CodeActionBuilder: Turns suggested fixes into quick fixes
"""

from surge_diagnostics.core.analyzer import SurgeAnalyzer
from surge_diagnostics.core.code_actions import CodeActionBuilder
from surge_diagnostics.core.correlator import ResultCorrelator
from surge_diagnostics.core.debounce import DebounceScheduler
from surge_diagnostics.core.diagnostic_parser import DiagnosticParser, FixRegistry
from surge_diagnostics.core.entrypoints import EntrypointLens, find_entrypoints
from surge_diagnostics.core.invoker import AnalyzerClient
from surge_diagnostics.core.paths import normalize_fs_path
from surge_diagnostics.core.snapshots import TempSnapshotManager

__all__ = [
    "AnalyzerClient",
    "CodeActionBuilder",
    "DebounceScheduler",
    "DiagnosticParser",
    "EntrypointLens",
    "FixRegistry",
    "ResultCorrelator",
    "SurgeAnalyzer",
    "TempSnapshotManager",
    "find_entrypoints",
    "normalize_fs_path",
]
