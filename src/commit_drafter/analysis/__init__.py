"""
Diff analysis for commit type classification.

This package categorizes changed files, aggregates statistics per
category and suggests a commit type and scope. See
:mod:`commit_drafter.analysis.categorizer`,
:mod:`commit_drafter.analysis.classifier` and
:mod:`commit_drafter.analysis.models`.
"""

from .categorizer import FileCategory, categorize  # noqa: F401
from .classifier import build_category_stats, suggest_commit_type  # noqa: F401
from .models import (  # noqa: F401
    CategoryStats,
    DiffAnalysis,
    FileChange,
    FileOperation,
    SuggestedType,
)
