"""Protocol definitions for the host editor."""

from .editor import DiagnosticSink, TextDocument, UserNotifier, WorkspaceResolver

__all__ = ["DiagnosticSink", "TextDocument", "UserNotifier", "WorkspaceResolver"]
