"""Package version, from installed metadata or the source checkout."""

import tomllib
from importlib import metadata
from pathlib import Path

DISTRIBUTION = "surge-diagnostics"
PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _read_pyproject_version(path: Path) -> str | None:
    if not path.is_file():
        return None
    with path.open("rb") as f:
        project = tomllib.load(f).get("project", {})
    version = project.get("version")
    return str(version) if version else None


def resolve_version() -> str:
    """Return the installed version, else the one in ``pyproject.toml``.

    Raises:
        RuntimeError: If neither source has a version
    """
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        pass

    version = _read_pyproject_version(PYPROJECT)
    if version is None:
        raise RuntimeError(f"Could not determine {DISTRIBUTION} version")
    return version


__version__ = resolve_version()

__all__ = ["__version__"]
