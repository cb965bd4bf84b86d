"""Heuristic scanner for ``@entrypoint`` functions.

Produces "Run"/"Build" lenses for each entrypoint so the host can offer
clickable actions. This is a line-based scan, not a parse.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from surge_diagnostics.models.diagnostic import Position, Range

if TYPE_CHECKING:
    from surge_diagnostics.interfaces.editor import TextDocument

ENTRYPOINT_RE = re.compile(r"@entrypoint\b")
FN_RE = re.compile(r"\bfn\s+([A-Za-z_][A-Za-z0-9_]*)")
MAX_LOOKAHEAD = 6

RUN_COMMAND = "surge.runEntryPoint"
BUILD_COMMAND = "surge.buildEntryPoint"


@dataclass(frozen=True)
class EntrypointLens:
    """A clickable action anchored at the start of a line."""

    range: Range
    title: str
    command: str
    arguments: tuple[str, ...]
    function_name: str | None = None


def find_entrypoints(
    document: TextDocument,
    language_id: str = "surge",
) -> list[EntrypointLens]:
    """Return Run and Build lenses for every entrypoint in the document.

    The lens sits on the first ``fn`` declaration within ``MAX_LOOKAHEAD``
    lines of the attribute (the attribute's own line included), or on the
    attribute line when none is found. Each target line gets one pair.
    """
    if not document.uri.startswith("file:") or document.language_id != language_id:
        return []

    lenses: list[EntrypointLens] = []
    seen_lines: set[int] = set()
    line_count = document.line_count
    for i in range(line_count):
        if not ENTRYPOINT_RE.search(document.line_at(i)):
            continue

        target_line = i
        name = None
        for j in range(i, min(line_count, i + MAX_LOOKAHEAD)):
            match = FN_RE.search(document.line_at(j))
            if match:
                target_line = j
                name = match.group(1)
                break

        if target_line in seen_lines:
            continue
        seen_lines.add(target_line)

        anchor = Range(Position(target_line, 0), Position(target_line, 0))
        for title, command in (("Run", RUN_COMMAND), ("Build", BUILD_COMMAND)):
            lenses.append(
                EntrypointLens(
                    range=anchor,
                    title=title,
                    command=command,
                    arguments=(document.uri,),
                    function_name=name,
                )
            )
    return lenses
