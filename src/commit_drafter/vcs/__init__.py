"""
Version control system (VCS) integration.

This package contains the Git client used to read the staged
change-set, detect unstaged modifications, list recent history and
create the commit.
"""

from .git_client import (  # noqa: F401
    CommitError,
    Delta,
    DiffStats,
    GitClient,
    GitError,
    NothingStagedError,
)
