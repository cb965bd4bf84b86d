"""Pydantic models for configuration schema."""

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_EXECUTABLE = "surge"


def default_temp_dir() -> Path:
    """Scratch directory shared by all documents of this process."""
    return Path(tempfile.gettempdir()) / "surge-vscode"


class AnalyzerConfig(BaseModel):
    """External analyzer configuration."""

    executable_path: str = DEFAULT_EXECUTABLE
    debounce_ms: int = Field(500, ge=0, le=10_000, description="Quiet period before analysis")
    max_diagnostics: int = Field(200, ge=1, le=10_000)
    temp_dir: Path = Field(default_factory=default_temp_dir)
    language_id: str = "surge"

    @field_validator("executable_path", mode="before")
    @classmethod
    def validate_executable_path(cls, v: object) -> str:
        """Fall back to the bare command name for blank or non-string values."""
        if not isinstance(v, str) or not v.strip():
            return DEFAULT_EXECUTABLE
        return v.strip()

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("surge-diagnostics.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"
    file: FileLoggingConfig = FileLoggingConfig()


class SurgeConfig(BaseSettings):
    """Root configuration for surge-diagnostics."""

    analyzer: AnalyzerConfig = AnalyzerConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="SURGE_",
        env_nested_delimiter="__",
    )
