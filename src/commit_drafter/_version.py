"""
Version lookup for commit_drafter.

The version is read from the installed distribution metadata so that
``pyproject.toml`` stays the single place where it is set. Running from
a source checkout without installing falls back to a development
version.
"""

from importlib.metadata import PackageNotFoundError, version


DISTRIBUTION_NAME = "cmt"
FALLBACK_VERSION = "0.0.0.dev0"


def get_version(distribution: str = DISTRIBUTION_NAME) -> str:
    """Return the installed version of ``distribution``."""
    try:
        return version(distribution)
    except PackageNotFoundError:
        return FALLBACK_VERSION
