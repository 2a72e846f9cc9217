"""
Heuristic commit type suggestion.

The classifier looks at the per-category statistics of a change-set and
walks a fixed rule cascade. Pure single-category change-sets give a
strong signal, file operations give weaker ones. Each rule that fires
appends a human readable reason; the reasons are shown to the LLM and to
the user in ``--show-raw-diff`` mode.

The classification is deterministic so it can be unit tested without a
language model, and it is what the commit message generator falls back
on when the model fails.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from commit_drafter.analysis.categorizer import FileCategory
from commit_drafter.analysis.models import CategoryStats, FileChange, SuggestedType


# (category, suggested label, reason) for the "everything is X" rules.
_PURE_CATEGORY_RULES = (
    (FileCategory.DOCS, "docs", "All changes are in documentation files"),
    (FileCategory.CI, "ci", "All changes are in CI/CD configuration"),
    (FileCategory.TEST, "test", "All changes are in test files"),
    (FileCategory.BUILD, "build", "All changes are in build configuration"),
    (FileCategory.CONFIG, "chore", "All changes are in configuration/dependency files"),
)


def _is_pure(category: FileCategory, category_stats: Dict[FileCategory, CategoryStats]) -> bool:
    own = category_stats.get(category)
    others = sum(stats.files for key, stats in category_stats.items() if key != category)
    return own is not None and own.files > 0 and others == 0


def suggest_commit_type(
    files: Sequence[FileChange],
    category_stats: Dict[FileCategory, CategoryStats],
    total_insertions: int = 0,
    total_deletions: int = 0,
) -> Tuple[SuggestedType, List[str]]:
    """Suggest a commit type for a change-set.

    Parameters
    ----------
    files : Sequence[FileChange]
        Changed files after noise filtering.
    category_stats : Dict[FileCategory, CategoryStats]
        Statistics per category built from ``files``.
    total_insertions, total_deletions : int
        Aggregate line counts. Currently not used by any rule.

    Returns
    -------
    Tuple[SuggestedType, List[str]]
        The suggestion and the reasons collected while evaluating the
        rules, in the order they fired.
    """
    reasons: List[str] = []

    for category, label, reason in _PURE_CATEGORY_RULES:
        if _is_pure(category, category_stats):
            reasons.append(reason)
            return SuggestedType.strong(label), reasons

    total_renamed = sum(stats.renamed for stats in category_stats.values())
    if total_renamed > 0:
        reasons.append(f"{total_renamed} files were renamed")
        if total_renamed == len(files):
            return SuggestedType.strong("refactor"), reasons
        reasons.append("Renames mixed with other changes")

    total_added = sum(stats.added for stats in category_stats.values())
    source = category_stats.get(FileCategory.SOURCE)
    if total_added > 0 and source is not None and source.added > 0:
        reasons.append(f"{source.added} new source files added")
        return SuggestedType.weak("feat"), reasons

    total_deleted = sum(stats.deleted for stats in category_stats.values())
    total_modified = sum(stats.modified for stats in category_stats.values())
    if total_deleted > 0 and total_added == 0 and total_modified == 0:
        reasons.append("Only file deletions, no additions or modifications")
        return SuggestedType.weak("refactor"), reasons

    if source is not None and source.files > 0:
        reasons.append("Source code modified - analyze diff for fix/feat/refactor")
        return SuggestedType.unknown(), reasons

    return SuggestedType.unknown(), reasons


def build_category_stats(files: Sequence[FileChange]) -> Dict[FileCategory, CategoryStats]:
    """Aggregate ``files`` into per-category statistics."""
    stats: Dict[FileCategory, CategoryStats] = {}
    for change in files:
        stats.setdefault(change.category, CategoryStats()).record(change)
    return stats
