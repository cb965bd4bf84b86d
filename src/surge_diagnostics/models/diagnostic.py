"""Data models for diagnostics, fixes and code actions."""

from __future__ import annotations

import itertools
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

SURGE_SOURCE = "surge"
QUICK_FIX_KIND = "quickfix"

_diagnostic_ids = itertools.count(1)


class DiagnosticSeverity(IntEnum):
    """Severity of a diagnostic, numbered as editors expect."""

    ERROR = 1
    WARNING = 2
    INFORMATION = 3


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based line and character offset."""

    line: int
    character: int


@dataclass(frozen=True)
class Range:
    """A span of text; ``end`` is exclusive."""

    start: Position
    end: Position

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            "start": {"line": self.start.line, "character": self.start.character},
            "end": {"line": self.end.line, "character": self.end.character},
        }


@dataclass(frozen=True)
class RelatedInformation:
    """A secondary location attached to a diagnostic (an analyzer note)."""

    uri: str
    range: Range
    message: str


@dataclass(frozen=True, eq=False)
class Diagnostic:
    """A positioned, severity-tagged finding for one document version.

    Diagnostics hash by identity so they can key the weak fix registry.
    """

    range: Range
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR
    code: str | None = None
    source: str = SURGE_SOURCE
    related_information: tuple[RelatedInformation, ...] = ()
    id: int = field(default_factory=lambda: next(_diagnostic_ids))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "range": self.range.to_dict(),
            "message": self.message,
            "severity": self.severity.name.lower(),
            "source": self.source,
        }
        if self.code is not None:
            data["code"] = self.code
        if self.related_information:
            data["relatedInformation"] = [
                {"uri": info.uri, "range": info.range.to_dict(), "message": info.message}
                for info in self.related_information
            ]
        return data


@dataclass(frozen=True)
class FixEdit:
    """One replacement suggested by the analyzer, still in wire coordinates."""

    location: Mapping[str, Any] | None
    new_text: str = ""
    before_lines: tuple[str, ...] | None = None
    after_lines: tuple[str, ...] | None = None

    @property
    def file(self) -> str | None:
        if not self.location:
            return None
        value = self.location.get("file")
        return value if isinstance(value, str) and value else None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> FixEdit:
        location = payload.get("location")
        new_text = payload.get("new_text")
        return cls(
            location=location if isinstance(location, Mapping) else None,
            new_text=new_text if isinstance(new_text, str) else "",
            before_lines=_string_lines(payload.get("before_lines")),
            after_lines=_string_lines(payload.get("after_lines")),
        )


def _string_lines(value: Any) -> tuple[str, ...] | None:
    if not isinstance(value, list):
        return None
    return tuple(str(line) for line in value)


@dataclass(frozen=True)
class Fix:
    """A suggested set of edits resolving a diagnostic."""

    title: str | None
    edits: tuple[FixEdit, ...]
    is_preferred: bool | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Fix:
        """Build a Fix from one entry of a diagnostic's ``fixes`` array."""
        raw_edits = payload.get("edits")
        edits = tuple(
            FixEdit.from_payload(edit)
            for edit in (raw_edits if isinstance(raw_edits, list) else [])
            if isinstance(edit, Mapping)
        )
        preferred = payload.get("isPreferred")
        if not isinstance(preferred, bool):
            preferred = payload.get("is_preferred")
        title = payload.get("title")
        return cls(
            title=title if isinstance(title, str) and title else None,
            edits=edits,
            is_preferred=preferred if isinstance(preferred, bool) else None,
        )


@dataclass(frozen=True)
class TextEdit:
    """A resolved replacement inside one document."""

    range: Range
    new_text: str


@dataclass
class WorkspaceEdit:
    """Text edits grouped by document URI."""

    changes: dict[str, list[TextEdit]] = field(default_factory=dict)

    def replace(self, uri: str, range: Range, new_text: str) -> None:
        self.changes.setdefault(uri, []).append(TextEdit(range=range, new_text=new_text))

    def __bool__(self) -> bool:
        return any(self.changes.values())


@dataclass
class CodeAction:
    """A quick fix offered to the user for one or more diagnostics."""

    title: str
    edit: WorkspaceEdit
    diagnostics: list[Diagnostic] = field(default_factory=list)
    kind: str = QUICK_FIX_KIND
    is_preferred: bool | None = None
    documentation: str | None = None
