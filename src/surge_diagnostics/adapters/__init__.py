"""Host adapters implementing the editor protocols."""

from .memory import InMemoryDiagnosticCollection, LoggingNotifier, StaticWorkspace

__all__ = ["InMemoryDiagnosticCollection", "LoggingNotifier", "StaticWorkspace"]
