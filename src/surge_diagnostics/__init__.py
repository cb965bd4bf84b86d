"""Diagnostic acquisition pipeline for the surge analyzer."""

from surge_diagnostics._version import __version__

__all__ = ["__version__"]
