"""Entry point for running surge-diagnostics from the command line.

This module provides the command-line entry point. It handles:
- Configuration loading
- Logging setup
- Running the full diagnostics pipeline over files (``check``)
- Listing entrypoint actions (``entrypoints``)
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from surge_diagnostics._version import __version__

log = structlog.get_logger()

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2


def setup_logging(
    debug: bool = False,
    log_format: str = "console",
    file_path: Path | None = None,
    file_enabled: bool = False,
) -> None:
    """Bootstrap logging before any config file is read; warnings only unless debugging."""
    from surge_diagnostics.utils.logging import LogFormat, LogLevel, configure_logging

    level = LogLevel.DEBUG if debug else LogLevel.WARNING
    configure_logging(
        level=level,
        log_format=LogFormat(log_format.lower()),
        file_path=file_path,
        file_enabled=file_enabled,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="surge-diagnostics",
        description="Run the surge analyzer and report diagnostics and quick fixes",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: built-in defaults)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    check = subparsers.add_parser("check", help="Analyze files and print diagnostics")
    check.add_argument("files", nargs="+", type=Path, help="Source files to analyze")
    check.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Report format (default: text)",
    )
    check.add_argument(
        "--workspace",
        type=Path,
        action="append",
        default=None,
        help="Workspace folder (repeatable, default: current directory)",
    )
    check.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Seconds to wait for all analyses (default: 120)",
    )
    check.add_argument(
        "--fixes",
        action="store_true",
        help="Include available quick fixes in the report",
    )
    check.add_argument(
        "--metrics",
        action="store_true",
        help="Print pipeline metrics to stderr when done",
    )

    entrypoints = subparsers.add_parser("entrypoints", help="List @entrypoint run/build actions")
    entrypoints.add_argument("file", type=Path, help="Source file to scan")

    return parser.parse_args(argv)


def format_text_report(results: list[dict]) -> str:
    """Render ``path:line:col: severity: message [code]`` lines, 1-based."""
    lines: list[str] = []
    for result in results:
        for diag in result["diagnostics"]:
            start = diag["range"]["start"]
            code = f" [{diag['code']}]" if diag.get("code") else ""
            lines.append(
                f"{result['path']}:{start['line'] + 1}:{start['character'] + 1}: "
                f"{diag['severity']}: {diag['message']}{code}"
            )
            for related in diag.get("relatedInformation", []):
                rel_start = related["range"]["start"]
                lines.append(
                    f"    note {rel_start['line'] + 1}:{rel_start['character'] + 1}: "
                    f"{related['message']}"
                )
            for fix in diag.get("fixes", []):
                lines.append(f"    fix: {fix['title']}")
    return "\n".join(lines)


async def run_check(
    config_path: Path | None,
    files: list[Path],
    output: str = "text",
    workspace: list[Path] | None = None,
    timeout: float = 120.0,
    include_fixes: bool = False,
    debug: bool = False,
    show_metrics: bool = False,
) -> int:
    """Run the pipeline over files once and print the diagnostics.

    Returns:
        0 if no errors were reported, 1 if any error diagnostic was found,
        2 if configuration failed or any file got no analyzer result
    """
    from surge_diagnostics.adapters.memory import (
        InMemoryDiagnosticCollection,
        LoggingNotifier,
        StaticWorkspace,
    )
    from surge_diagnostics.config.loader import load_config
    from surge_diagnostics.core.analyzer import SurgeAnalyzer
    from surge_diagnostics.models.analysis import AnalyzerAvailability
    from surge_diagnostics.models.diagnostic import DiagnosticSeverity
    from surge_diagnostics.models.document import Document
    from surge_diagnostics.utils.async_helpers import with_timeout
    from surge_diagnostics.utils.errors import SurgeDiagnosticsError

    try:
        config = load_config(config_path)
    except (FileNotFoundError, SurgeDiagnosticsError) as e:
        log.error("configuration_invalid", error=str(e))
        return EXIT_ERROR

    if config_path is not None:
        from surge_diagnostics.utils.logging import configure_logging

        configure_logging(
            level="DEBUG" if debug else config.logging.level,
            log_format=config.logging.format,
            file_path=config.logging.file.path if config.logging.file.enabled else None,
            file_enabled=config.logging.file.enabled,
        )

    documents: list[Document] = []
    for path in files:
        try:
            documents.append(Document.from_file(path, language_id=config.analyzer.language_id))
        except (OSError, UnicodeDecodeError) as e:
            log.error("file_unreadable", path=str(path), error=str(e))
            return EXIT_ERROR

    # No edits race a one-shot run, so there is nothing to wait out
    analyzer_config = config.analyzer.model_copy(update={"debounce_ms": 0})
    sink = InMemoryDiagnosticCollection()
    notifier = LoggingNotifier()
    analyzer = SurgeAnalyzer(
        analyzer_config,
        sink,
        notifier,
        workspace=StaticWorkspace(workspace or [Path.cwd()]),
    )

    await analyzer.start(documents)
    try:
        await with_timeout(analyzer.wait_idle(), timeout)
    except SurgeDiagnosticsError as e:
        log.error("check_timed_out", error=str(e))
        analyzer.stop()
        return EXIT_ERROR
    analyzer.stop()

    if show_metrics:
        from surge_diagnostics.utils.metrics import get_metrics

        print(json.dumps(get_metrics().get_all_metrics(), indent=2), file=sys.stderr)

    if analyzer.availability is AnalyzerAvailability.UNAVAILABLE:
        for warning in notifier.warnings:
            print(warning, file=sys.stderr)
        return EXIT_ERROR

    # Only a failed attempt leaves a document without an entry
    missing = [document for document in documents if document.uri not in sink]
    for document in missing:
        print(f"{document.path}: analyzer produced no result", file=sys.stderr)

    results: list[dict] = []
    has_errors = False
    for document in documents:
        if document.uri not in sink:
            continue
        diagnostics = sink.get(document.uri)
        entries = []
        for diagnostic in diagnostics:
            entry = diagnostic.to_dict()
            if include_fixes:
                actions = analyzer.provide_code_actions(document, [diagnostic])
                entry["fixes"] = [
                    {"title": action.title, "preferred": action.is_preferred}
                    for action in actions
                ]
            entries.append(entry)
            has_errors = has_errors or diagnostic.severity is DiagnosticSeverity.ERROR
        results.append({"path": str(document.path), "uri": document.uri, "diagnostics": entries})

    if output == "json":
        print(json.dumps({"results": results}, indent=2))
    else:
        report = format_text_report(results)
        if report:
            print(report)

    if missing:
        return EXIT_ERROR
    return EXIT_FINDINGS if has_errors else EXIT_OK


def run_entrypoints(path: Path) -> int:
    """Print the Run/Build actions found in a file."""
    from surge_diagnostics.core.entrypoints import find_entrypoints
    from surge_diagnostics.models.document import Document

    try:
        document = Document.from_file(path)
    except (OSError, UnicodeDecodeError) as e:
        log.error("file_unreadable", path=str(path), error=str(e))
        return EXIT_ERROR

    for lens in find_entrypoints(document):
        name = lens.function_name or "<unknown>"
        print(f"{path}:{lens.range.start.line + 1}: {lens.title} {name} ({lens.command})")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_format=args.format)

    if args.dry_run:
        from surge_diagnostics.config.loader import load_config
        from surge_diagnostics.utils.errors import SurgeDiagnosticsError

        try:
            config = load_config(args.config)
        except (FileNotFoundError, SurgeDiagnosticsError) as e:
            log.error("configuration_invalid", error=str(e))
            return EXIT_ERROR
        print(config.model_dump_json(indent=2))
        return EXIT_OK

    if args.command == "entrypoints":
        return run_entrypoints(args.file)

    if args.command == "check":
        try:
            return asyncio.run(
                run_check(
                    args.config,
                    args.files,
                    output=args.output,
                    workspace=args.workspace,
                    timeout=args.timeout,
                    include_fixes=args.fixes,
                    debug=args.debug,
                    show_metrics=args.metrics,
                )
            )
        except KeyboardInterrupt:
            log.info("shutting_down_gracefully")
            return EXIT_ERROR

    print("usage: surge-diagnostics [-h] {check,entrypoints} ...", file=sys.stderr)
    return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
