"""Exception hierarchy for the diagnostics pipeline."""


class SurgeDiagnosticsError(Exception):
    """Base exception for all surge-diagnostics errors."""


class ConfigurationError(SurgeDiagnosticsError):
    """Configuration is missing or invalid."""


class SnapshotError(SurgeDiagnosticsError):
    """Failed to materialize a document snapshot for analysis."""


class DiagnosticsParseError(SurgeDiagnosticsError):
    """The analyzer output could not be decoded."""


class TimeoutError(SurgeDiagnosticsError):
    """Operation timed out."""
