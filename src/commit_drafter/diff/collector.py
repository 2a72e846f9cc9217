"""
Collection of the staged change-set into a :class:`DiffAnalysis`.

The collector asks the Git client for the staged deltas (with rename
and copy detection), counts per-file insertions and deletions from the
patch text and runs the classifier over the result.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Dict, List, Tuple

from commit_drafter.analysis.categorizer import categorize
from commit_drafter.analysis.classifier import build_category_stats, suggest_commit_type
from commit_drafter.analysis.models import DiffAnalysis, FileChange, FileOperation
from commit_drafter.diff.patch import split_patch
from commit_drafter.vcs.git_client import Delta, GitClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


_STATUS_OPERATIONS = {
    "A": FileOperation.ADDED,
    "D": FileOperation.DELETED,
    "M": FileOperation.MODIFIED,
    "R": FileOperation.RENAMED,
    "C": FileOperation.COPIED,
}

# Context does not change the +/- counts, keep the patch small.
_COUNTING_CONTEXT = 0


def is_lock_file(path: str) -> bool:
    """Return True if ``path`` has a ``.lock`` extension."""
    return PurePosixPath(path).suffix.lower() == ".lock"


def _operation_for(delta: Delta) -> FileOperation:
    return _STATUS_OPERATIONS.get(delta.status, FileOperation.MODIFIED)


def _per_file_counts(patch_text: str) -> Dict[str, Tuple[int, int]]:
    counts: Dict[str, Tuple[int, int]] = {}
    for section in split_patch(patch_text):
        counts[section.path] = section.count_changes()
    return counts


def collect_changes(client: GitClient) -> DiffAnalysis:
    """Build a :class:`DiffAnalysis` from the staged change-set.

    Files with a ``.lock`` extension are dropped completely: they do not
    appear in ``files`` and do not contribute to any total.

    When the patch yields no ``+``/``-`` lines for a file (binary files,
    mode changes, pure renames) its counts are approximated by splitting
    the change-set's aggregate totals evenly over all deltas. This is an
    estimate and can be far off for uneven change-sets.

    Raises
    ------
    GitError
        If any of the underlying Git reads fails.
    """
    deltas = client.list_staged_deltas()
    counts = _per_file_counts(client.staged_patch(_COUNTING_CONTEXT))

    fallback = None
    files: List[FileChange] = []
    for delta in deltas:
        if is_lock_file(delta.path):
            logger.debug("Skipping lock file %s", delta.path)
            continue

        insertions, deletions = counts.get(delta.path, (0, 0))
        if insertions == 0 and deletions == 0:
            if fallback is None:
                stats = client.staged_stats()
                fallback = (stats.insertions // len(deltas), stats.deletions // len(deltas))
            insertions, deletions = fallback

        operation = _operation_for(delta)
        files.append(
            FileChange(
                path=delta.path,
                operation=operation,
                category=categorize(delta.path),
                insertions=insertions,
                deletions=deletions,
                old_path=delta.old_path if operation in (FileOperation.RENAMED, FileOperation.COPIED) else None,
            )
        )

    category_stats = build_category_stats(files)
    total_insertions = sum(change.insertions for change in files)
    total_deletions = sum(change.deletions for change in files)
    suggested, reasons = suggest_commit_type(files, category_stats, total_insertions, total_deletions)

    logger.debug(
        "Collected %d files (+%d/-%d), suggested type %s",
        len(files),
        total_insertions,
        total_deletions,
        suggested,
    )
    return DiffAnalysis(
        files=files,
        category_stats=category_stats,
        total_insertions=total_insertions,
        total_deletions=total_deletions,
        suggested_type=suggested,
        confidence_reasons=reasons,
    )
