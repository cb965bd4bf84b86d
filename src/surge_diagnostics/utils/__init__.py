"""Errors, logging, metrics and asyncio helpers shared by the pipeline."""

from surge_diagnostics.utils.errors import (
    ConfigurationError,
    DiagnosticsParseError,
    SnapshotError,
    SurgeDiagnosticsError,
)
from surge_diagnostics.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from surge_diagnostics.utils.metrics import MetricsRegistry, Timer, get_metrics

__all__ = [
    "ConfigurationError",
    "DiagnosticsParseError",
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    "MetricsRegistry",
    "SnapshotError",
    "SurgeDiagnosticsError",
    "Timer",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "get_metrics",
    "unbind_context",
]
