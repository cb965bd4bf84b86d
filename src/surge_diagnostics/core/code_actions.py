"""Quick-fix code actions built from analyzer suggestions."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from surge_diagnostics.core.diagnostic_parser import FixRegistry, create_range
from surge_diagnostics.core.paths import normalize_fs_path
from surge_diagnostics.models.diagnostic import (
    SURGE_SOURCE,
    CodeAction,
    Diagnostic,
    Fix,
    WorkspaceEdit,
)

if TYPE_CHECKING:
    from surge_diagnostics.interfaces.editor import TextDocument

log = structlog.get_logger()

DEFAULT_FIX_TITLE = "Apply Surge fix"
SNIPPET_LANGUAGE = "surge"


class CodeActionBuilder:
    """Converts fixes attached to diagnostics into applicable edits.

    Only edits that touch the open document are realized; a fix whose edits
    all target other files produces no action.
    """

    def __init__(self, registry: FixRegistry) -> None:
        self._registry = registry

    def provide_code_actions(
        self,
        document: TextDocument,
        diagnostics: Iterable[Diagnostic],
    ) -> list[CodeAction]:
        """Build actions for every surge diagnostic that carries fixes."""
        actions: list[CodeAction] = []
        for diagnostic in diagnostics:
            if diagnostic is None or diagnostic.source != SURGE_SOURCE:
                continue
            for fix in self._registry.fixes_for(diagnostic):
                action = self.build_action(document, diagnostic, fix)
                if action is not None:
                    actions.append(action)
        return actions

    def build_action(
        self,
        document: TextDocument,
        diagnostic: Diagnostic,
        fix: Fix,
    ) -> CodeAction | None:
        """Build one quick fix, or None if no edit applies to ``document``."""
        if not fix.edits:
            return None

        # Untitled buffers have no path; only their snapshot aliases match
        accepted = set(self._registry.aliases_for(document.uri))
        document_path = normalize_fs_path(document.path)
        if document_path is not None:
            accepted.add(document_path)

        edit = WorkspaceEdit()
        for change in fix.edits:
            target_path = normalize_fs_path(change.file)
            if target_path is not None and target_path not in accepted:
                log.debug(
                    "fix_edit_skipped_other_file",
                    uri=document.uri,
                    target=target_path,
                )
                continue
            range_ = create_range(document, change.location)
            if range_ is None:
                continue
            edit.replace(document.uri, range_, change.new_text)

        if not edit:
            return None

        return CodeAction(
            title=fix.title or DEFAULT_FIX_TITLE,
            edit=edit,
            diagnostics=[diagnostic],
            is_preferred=fix.is_preferred,
            documentation=self.build_documentation(fix),
        )

    @staticmethod
    def build_documentation(fix: Fix) -> str | None:
        """Render the first before/after preview in the fix as markdown."""
        for change in fix.edits:
            before = "\n".join(change.before_lines) if change.before_lines else None
            after = "\n".join(change.after_lines) if change.after_lines else None
            if not before and not after:
                continue
            parts: list[str] = []
            if before:
                parts.append(f"**Before**\n```{SNIPPET_LANGUAGE}\n{before}\n```")
            if after:
                parts.append(f"**After**\n```{SNIPPET_LANGUAGE}\n{after}\n```")
            return "\n".join(parts)
        return None
