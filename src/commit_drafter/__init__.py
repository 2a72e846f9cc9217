"""
Top-level package for commit_drafter.

This package exposes the main CLI entry point via the
``commit_drafter.cli`` module.
"""

__all__ = ["__version__"]

from commit_drafter._version import get_version

__version__ = get_version()
