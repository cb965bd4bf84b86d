"""Structured logging for surge-diagnostics.

Everything logs through structlog on top of the stdlib ``logging`` handlers.
Records carry the service name, the package version and whatever context
the analyzer bound for the document being processed (``uri``, ``version``).
Analyzer output can be large, so captured process fields are clipped
before rendering.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from pathlib import Path
from typing import Any, cast

import structlog
from structlog.typing import Processor, WrappedLogger

SERVICE_NAME = "surge-diagnostics"

# Fields that hold analyzer process output or argv
CLIPPED_FIELDS = ("stderr", "stdout", "command", "error")
MAX_FIELD_LENGTH = 2000


class LogFormat(StrEnum):
    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Stamp every record with ``service`` and, when known, ``version``."""
    event_dict["service"] = SERVICE_NAME
    try:
        from surge_diagnostics._version import __version__
    except (ImportError, RuntimeError):
        return event_dict
    event_dict["version"] = __version__
    return event_dict


def clip_process_output(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Shorten captured analyzer output so one bad run cannot flood the log.

    Lists (an argv) are joined first. Clipped values end with a marker
    naming how many characters were dropped.
    """
    for key in CLIPPED_FIELDS:
        value = event_dict.get(key)
        if isinstance(value, list | tuple):
            value = " ".join(str(part) for part in value)
        if isinstance(value, str) and len(value) > MAX_FIELD_LENGTH:
            dropped = len(value) - MAX_FIELD_LENGTH
            event_dict[key] = f"{value[:MAX_FIELD_LENGTH]}... [{dropped} more chars]"
    return event_dict


def _build_processors(log_format: LogFormat) -> list[Processor]:
    renderer: Processor
    if log_format is LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        add_context_processor,
        clip_process_output,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _build_handlers(numeric_level: int, file_path: Path | None) -> list[logging.Handler]:
    # stdout is reserved for the CLI report
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if file_path is not None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(file_path))
        except OSError as e:
            logging.getLogger("surge_diagnostics.logging").warning(
                "Could not create log file %s: %s", file_path, e
            )

    for handler in handlers:
        handler.setLevel(numeric_level)
    return handlers


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.CONSOLE,
    file_path: Path | str | None = None,
    file_enabled: bool = False,
) -> None:
    """Configure structlog and the root logger.

    Args:
        level: Minimum level, case-insensitive when given as a string
        log_format: ``json`` or ``console``
        file_path: Log file, written only when ``file_enabled`` is set
        file_enabled: Whether to add a file handler

    Raises:
        ValueError: If level or format is not a known value
    """
    level = LogLevel(level.upper()) if isinstance(level, str) else level
    log_format = LogFormat(log_format.lower()) if isinstance(log_format, str) else log_format
    numeric_level = logging.getLevelNamesMapping()[level.value]

    structlog.configure(
        processors=_build_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    log_file = Path(file_path) if file_enabled and file_path else None
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=_build_handlers(numeric_level, log_file),
        force=True,
    )


def get_logger(name: str | None = None) -> WrappedLogger:
    return cast(WrappedLogger, structlog.get_logger(name))


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every record logged from the current context.

    Example:
        bind_context(uri=document.uri, version=document.version)
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogEventNames:
    """Event names used across the pipeline."""

    # Lifecycle
    ANALYZER_STARTED = "analyzer_started"
    ANALYZER_STOPPED = "analyzer_stopped"
    EXECUTABLE_CHANGED = "analyzer_executable_changed"

    # Scheduling
    ANALYSIS_SCHEDULED = "analysis_scheduled"
    ANALYSIS_SKIPPED_UNAVAILABLE = "analysis_skipped_unavailable"

    # Snapshots
    TEMP_DIR_FAILED = "temp_dir_prepare_failed"
    SNAPSHOT_PREPARE_FAILED = "snapshot_prepare_failed"
    TEMP_FILE_WRITTEN = "temp_file_written"
    TEMP_FILE_DELETE_FAILED = "temp_file_delete_failed"
    CLEANUP_FAILED = "snapshot_cleanup_failed"

    # Process
    ANALYZER_SPAWNING = "analyzer_spawning"
    ANALYZER_EXITED = "analyzer_exited"
    ANALYZER_NOT_FOUND = "analyzer_not_found"
    ANALYZER_SPAWN_FAILED = "analyzer_spawn_failed"
    ANALYZER_STDERR = "analyzer_stderr"
    ANALYZER_EXIT_ERROR = "analyzer_exit_error"

    # Results
    RESULT_DISCARDED_STALE = "analysis_result_stale"
    DIAGNOSTICS_PARSE_ERROR = "diagnostics_parse_error"
    DIAGNOSTICS_PUBLISHED = "diagnostics_published"
