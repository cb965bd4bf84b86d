"""Decoding of analyzer JSON into positioned diagnostics.

The analyzer reports 1-based line/column locations for whatever file it
touched. This module keeps only locations in the document under edit,
converts them to 0-based ranges clamped to the document's current text,
and remembers any suggested fixes per diagnostic for the code-action layer.
"""

from __future__ import annotations

import json
import math
import weakref
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from surge_diagnostics.core.paths import normalize_fs_path
from surge_diagnostics.models.diagnostic import (
    SURGE_SOURCE,
    Diagnostic,
    DiagnosticSeverity,
    Fix,
    Position,
    Range,
    RelatedInformation,
)
from surge_diagnostics.utils.errors import DiagnosticsParseError
from surge_diagnostics.utils.logging import LogEventNames

if TYPE_CHECKING:
    from surge_diagnostics.interfaces.editor import TextDocument
    from surge_diagnostics.models.analysis import AnalysisContext

log = structlog.get_logger()

# Wire field names, snake_case first
START_LINE_KEYS = ("start_line", "startLine")
START_COL_KEYS = ("start_col", "startCol")
END_LINE_KEYS = ("end_line", "endLine")
END_COL_KEYS = ("end_col", "endCol")

SEVERITY_MAP = {
    "WARNING": DiagnosticSeverity.WARNING,
    "NOTE": DiagnosticSeverity.INFORMATION,
    "INFO": DiagnosticSeverity.INFORMATION,
}


def to_zero_based(value: Any) -> int | None:
    """Convert a 1-based wire coordinate to 0-based, flooring at 0.

    Numbers and numeric strings are accepted; anything else yields None.
    Integers of any size pass through so the caller can clamp them.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text)
        except ValueError:
            try:
                value = float(text)
            except ValueError:
                return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        value = int(value)
    if isinstance(value, int):
        return max(0, value - 1)
    return None


def _first_present(location: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = location.get(key)
        if value is not None:
            return value
    return None


def map_severity(kind: Any) -> DiagnosticSeverity:
    """Map the analyzer severity string; unknown kinds are errors."""
    normalized = kind.upper() if isinstance(kind, str) else ""
    return SEVERITY_MAP.get(normalized, DiagnosticSeverity.ERROR)


def create_range(document: TextDocument, location: Mapping[str, Any] | None) -> Range | None:
    """Build a range for ``location`` that is valid in the current document.

    A missing end collapses to the start. Lines clamp to the document and
    characters to the line length. An empty or inverted single-line range is
    widened by one character when the line has room, so it stays visible.

    Returns:
        The range, or None if the location has no usable start.
    """
    if not isinstance(location, Mapping):
        return None

    start_line = to_zero_based(_first_present(location, START_LINE_KEYS))
    start_col = to_zero_based(_first_present(location, START_COL_KEYS))
    if start_line is None or start_col is None:
        return None

    end_line = to_zero_based(_first_present(location, END_LINE_KEYS))
    end_col = to_zero_based(_first_present(location, END_COL_KEYS))
    if end_line is None:
        end_line = start_line
    if end_col is None:
        end_col = start_col

    last_line = max(0, document.line_count - 1)
    clamped_start_line = min(start_line, last_line)
    clamped_end_line = min(end_line, last_line)

    try:
        start_text = document.line_at(clamped_start_line)
    except IndexError:
        return None

    try:
        end_text = document.line_at(clamped_end_line)
    except IndexError:
        clamped_end_line = clamped_start_line
        end_text = start_text

    start_char = min(start_col, len(start_text))
    end_char = min(end_col, len(end_text))

    if clamped_start_line == clamped_end_line and end_char <= start_char:
        if start_char < len(start_text):
            end_char = start_char + 1
        else:
            end_char = start_char

    return Range(
        start=Position(clamped_start_line, start_char),
        end=Position(clamped_end_line, end_char),
    )


class FixRegistry:
    """Associates suggested fixes with the diagnostic instance they belong to.

    Entries are weakly keyed, so fixes die with their diagnostic. The
    registry also drops a document's entries explicitly whenever its
    diagnostic set is replaced, so a diagnostic still referenced elsewhere
    cannot carry fixes for an old version.
    """

    def __init__(self) -> None:
        self._fixes: weakref.WeakKeyDictionary[Diagnostic, tuple[Fix, ...]] = (
            weakref.WeakKeyDictionary()
        )
        self._by_uri: dict[str, weakref.WeakSet[Diagnostic]] = {}
        self._aliases: dict[str, frozenset[str]] = {}

    def __len__(self) -> int:
        return len(self._fixes)

    def register(self, uri: str, diagnostic: Diagnostic, fixes: tuple[Fix, ...]) -> None:
        if not fixes:
            return
        self._fixes[diagnostic] = fixes
        self._by_uri.setdefault(uri, weakref.WeakSet()).add(diagnostic)

    def set_aliases(self, uri: str, paths: frozenset[str]) -> None:
        """Record snapshot paths that stand for the document in fix edits."""
        if paths:
            self._aliases[uri] = paths
        else:
            self._aliases.pop(uri, None)

    def aliases_for(self, uri: str) -> frozenset[str]:
        return self._aliases.get(uri, frozenset())

    def fixes_for(self, diagnostic: Diagnostic | None) -> tuple[Fix, ...]:
        if diagnostic is None:
            return ()
        return self._fixes.get(diagnostic, ())

    def invalidate(self, uri: str) -> None:
        """Forget every fix recorded for a document."""
        for diagnostic in list(self._by_uri.pop(uri, ())):
            self._fixes.pop(diagnostic, None)
        self._aliases.pop(uri, None)

    def clear(self) -> None:
        self._fixes.clear()
        self._by_uri.clear()
        self._aliases.clear()


class DiagnosticParser:
    """Turns ``surge diag --format json`` output into diagnostics.

    Example:
        parser = DiagnosticParser(FixRegistry())
        diagnostics = parser.parse(response.stdout, document, context)
    """

    def __init__(self, registry: FixRegistry | None = None) -> None:
        self._registry = registry if registry is not None else FixRegistry()

    @property
    def registry(self) -> FixRegistry:
        return self._registry

    def create_range(
        self, document: TextDocument, location: Mapping[str, Any] | None
    ) -> Range | None:
        return create_range(document, location)

    def parse(
        self,
        stdout: str,
        document: TextDocument,
        context: AnalysisContext,
    ) -> list[Diagnostic]:
        """Decode analyzer output. Never raises.

        Malformed output is logged and treated as "no diagnostics".
        """
        try:
            items = self._load_items(stdout)
        except DiagnosticsParseError as e:
            log.error(LogEventNames.DIAGNOSTICS_PARSE_ERROR, error=str(e), size=len(stdout))
            return []
        if not items:
            return []

        target_paths = context.target_paths
        if context.is_temporary and context.normalized_analysis_path:
            self._registry.set_aliases(
                document.uri, frozenset({context.normalized_analysis_path})
            )
        diagnostics: list[Diagnostic] = []
        for item in items:
            diagnostic = self._build_diagnostic(item, document, target_paths)
            if diagnostic is not None:
                diagnostics.append(diagnostic)
        return diagnostics

    def _load_items(self, stdout: str) -> list[Any]:
        """Extract the ``diagnostics`` array.

        Raises:
            DiagnosticsParseError: If stdout is not JSON or has no array.
        """
        if not stdout or not stdout.strip():
            return []

        try:
            payload = json.loads(stdout)
        except (ValueError, RecursionError) as e:
            # Also covers over-long integer literals and deep nesting
            raise DiagnosticsParseError(f"Analyzer output is not JSON: {e}") from e

        items = payload.get("diagnostics") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise DiagnosticsParseError(
                f"Analyzer output has no diagnostics array ({type(payload).__name__})"
            )
        return items

    @staticmethod
    def _in_targets(location: Mapping[str, Any], target_paths: frozenset[str]) -> bool:
        if not target_paths:
            return True
        file = location.get("file")
        location_path = normalize_fs_path(file) if isinstance(file, str) else None
        return location_path is None or location_path in target_paths

    def _build_diagnostic(
        self,
        item: Any,
        document: TextDocument,
        target_paths: frozenset[str],
    ) -> Diagnostic | None:
        if not isinstance(item, Mapping):
            return None
        location = item.get("location")
        if not isinstance(location, Mapping):
            return None
        if not self._in_targets(location, target_paths):
            return None

        range_ = create_range(document, location)
        if range_ is None:
            return None

        message = item.get("message")
        code = item.get("code")
        diagnostic = Diagnostic(
            range=range_,
            message=message if isinstance(message, str) else "",
            severity=map_severity(item.get("severity")),
            code=str(code) if code not in (None, "") else None,
            source=SURGE_SOURCE,
            related_information=self._build_related(document, item.get("notes"), target_paths),
        )

        raw_fixes = item.get("fixes")
        if isinstance(raw_fixes, list) and raw_fixes:
            fixes = tuple(Fix.from_payload(fix) for fix in raw_fixes if isinstance(fix, Mapping))
            self._registry.register(document.uri, diagnostic, fixes)

        return diagnostic

    def _build_related(
        self,
        document: TextDocument,
        notes: Any,
        target_paths: frozenset[str],
    ) -> tuple[RelatedInformation, ...]:
        if not isinstance(notes, list):
            return ()

        related: list[RelatedInformation] = []
        for note in notes:
            if not isinstance(note, Mapping):
                continue
            location = note.get("location")
            if not isinstance(location, Mapping) or not self._in_targets(location, target_paths):
                continue
            range_ = create_range(document, location)
            if range_ is None:
                continue
            message = note.get("message")
            related.append(
                RelatedInformation(
                    uri=document.uri,
                    range=range_,
                    message=message if isinstance(message, str) else "",
                )
            )
        return tuple(related)
