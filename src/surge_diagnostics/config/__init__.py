"""Configuration loading and validation."""

from .loader import load_config
from .schema import AnalyzerConfig, FileLoggingConfig, LoggingConfig, SurgeConfig

__all__ = [
    # Loader
    "load_config",
    # Root config
    "SurgeConfig",
    # Sections
    "AnalyzerConfig",
    "LoggingConfig",
    "FileLoggingConfig",
]
