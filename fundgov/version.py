from __future__ import annotations

"""
fundgov.version — resolved version string.

Rules:
- BASE_VERSION is the semver for this package.
- FUNDGOV_VERSION in the environment wins (useful for packaging/CI).
- Otherwise the installed distribution metadata is used, falling back to
  BASE_VERSION for source checkouts that were never installed.
"""


import os
from importlib import metadata

# Bump this on intentional releases.
BASE_VERSION = "0.1.0"
DIST_NAME = "fundgov"


def build_version() -> str:
    v = os.getenv("FUNDGOV_VERSION")
    if v:
        return v
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return BASE_VERSION


__version__ = build_version()


def get_version() -> str:
    """Public helper returning the resolved version string."""
    return __version__


__all__ = ["__version__", "get_version", "BASE_VERSION"]
