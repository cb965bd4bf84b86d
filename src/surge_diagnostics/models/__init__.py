"""Data models and transfer objects."""

from .analysis import (
    AnalysisContext,
    AnalysisTicket,
    AnalyzerAvailability,
    AnalyzerResponse,
    ResponseStatus,
)
from .diagnostic import (
    CodeAction,
    Diagnostic,
    DiagnosticSeverity,
    Fix,
    FixEdit,
    Position,
    Range,
    RelatedInformation,
    TextEdit,
    WorkspaceEdit,
)
from .document import Document

__all__ = [
    # Analysis models
    "AnalysisContext",
    "AnalysisTicket",
    "AnalyzerAvailability",
    "AnalyzerResponse",
    "ResponseStatus",
    # Diagnostic models
    "CodeAction",
    "Diagnostic",
    "DiagnosticSeverity",
    "Fix",
    "FixEdit",
    "Position",
    "Range",
    "RelatedInformation",
    "TextEdit",
    "WorkspaceEdit",
    # Documents
    "Document",
]
