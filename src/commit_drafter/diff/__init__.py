"""
Reading the staged change-set.

:mod:`commit_drafter.diff.collector` turns the staged deltas into a
:class:`~commit_drafter.analysis.models.DiffAnalysis`, and
:mod:`commit_drafter.diff.renderer` produces the bounded diff text sent
to the LLM.
"""

from .collector import collect_changes  # noqa: F401
from .renderer import (  # noqa: F401
    TRUNCATION_MARKER,
    DiffStats,
    StagedChanges,
    get_staged_changes,
    should_skip_file,
)
