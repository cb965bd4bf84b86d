"""Staleness check for analysis results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from surge_diagnostics.models.analysis import AnalysisTicket

if TYPE_CHECKING:
    from surge_diagnostics.interfaces.editor import TextDocument


class ResultCorrelator:
    """Discards results computed for a document version that is gone.

    There is no process cancellation: an older run that finishes after the
    document changed is simply dropped here, so out-of-order completions
    never overwrite fresher diagnostics.
    """

    def capture(self, document: TextDocument) -> AnalysisTicket:
        return AnalysisTicket(uri=document.uri, version=document.version)

    def is_current(self, document: TextDocument, ticket: AnalysisTicket) -> bool:
        if document.is_closed:
            return False
        return document.uri == ticket.uri and document.version == ticket.version
