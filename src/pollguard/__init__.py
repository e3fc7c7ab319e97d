"""Top-level package for the Pollguard project.

Provides the package version, read from the installed distribution metadata
with a placeholder when running from a source tree.
"""
from __future__ import annotations

from importlib import metadata as importlib_metadata


try:
    __version__ = importlib_metadata.version("pollguard")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback when not installed
    __version__ = "0.0.0"


def get_version() -> str:
    """Return the package version string."""
    return __version__


__all__ = ["get_version", "__version__"]
