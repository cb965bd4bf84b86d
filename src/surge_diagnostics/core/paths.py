"""Filesystem path canonicalization for equality comparison."""

from __future__ import annotations

import os
import sys
from pathlib import Path

CASE_INSENSITIVE_PLATFORMS = frozenset({"win32", "cygwin"})


def is_case_insensitive_platform(platform: str | None = None) -> bool:
    return (platform or sys.platform) in CASE_INSENSITIVE_PLATFORMS


def normalize_fs_path(
    path: str | os.PathLike[str] | None,
    *,
    case_insensitive: bool | None = None,
) -> str | None:
    """Return an absolute, lexically normalized form of ``path``.

    Relative paths resolve against the current working directory. Symlinks
    are not followed. On case-insensitive platforms the result is
    case-folded so that two spellings of one file compare equal.

    Args:
        path: Path to normalize. Empty values yield None.
        case_insensitive: Override platform detection.

    Returns:
        The normalized path, or None if ``path`` is empty.
    """
    if path is None:
        return None
    raw = os.fspath(path)
    if not raw:
        return None

    normalized = os.path.normpath(os.path.abspath(raw))
    if case_insensitive is None:
        case_insensitive = is_case_insensitive_platform()
    return normalized.lower() if case_insensitive else normalized


def same_path(a: str | Path | None, b: str | Path | None) -> bool:
    """True if both paths are set and denote the same file."""
    left = normalize_fs_path(a)
    return left is not None and left == normalize_fs_path(b)
