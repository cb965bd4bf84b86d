"""Load ``SurgeConfig`` from YAML, expanding ``${VAR}`` references first."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..utils.errors import ConfigurationError
from .schema import SurgeConfig

# ${NAME} or ${NAME:-fallback}
ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<default>[^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """Expand environment references in raw config text.

    ``${NAME:-fallback}`` uses ``fallback`` when ``NAME`` is unset, so a
    config can point ``executable_path`` at ``${SURGE_HOME:-/usr/local}/bin/surge``.

    Raises:
        ConfigurationError: If a reference without a fallback is unset
    """

    def expand(match: re.Match[str]) -> str:
        name = match.group("name")
        value = os.environ.get(name, match.group("default"))
        if value is None:
            raise ConfigurationError(f"Environment variable {name} not found")
        return value

    return ENV_REFERENCE.sub(expand, text)


def _read_mapping(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(substitute_env_vars(path.read_text()))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {path}")
    return data


def load_config(path: Path | None = None) -> SurgeConfig:
    """Build the configuration.

    Values from the file override ``SURGE_*`` environment variables, which
    override the defaults. Without a path only the latter two apply.

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ConfigurationError: If the file cannot be expanded, parsed or validated
    """
    if path is None:
        return SurgeConfig()
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        return SurgeConfig(**_read_mapping(path))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e
