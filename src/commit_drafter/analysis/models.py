"""
Data models produced by the diff analysis.

A :class:`DiffAnalysis` is built once per invocation by the collector in
:mod:`commit_drafter.diff.collector` and is read-only afterwards. Besides
holding the per-file records and the per-category statistics it knows
how to infer a scope for the change-set and how to render the summary
that is embedded in the LLM prompt.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from commit_drafter.analysis.categorizer import FileCategory


class FileOperation(str, Enum):
    """Kind of change recorded for a file."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"


_OPERATION_INDICATORS = {
    FileOperation.ADDED: "+",
    FileOperation.DELETED: "-",
    FileOperation.MODIFIED: "~",
    FileOperation.RENAMED: "→",
    FileOperation.COPIED: "c",
}


@dataclass(frozen=True)
class FileChange:
    """A single changed path in the staged change-set."""

    path: str
    operation: FileOperation
    category: FileCategory
    insertions: int = 0
    deletions: int = 0
    old_path: Optional[str] = None  # only for renames and copies

    @property
    def churn(self) -> int:
        return self.insertions + self.deletions


@dataclass
class CategoryStats:
    """Running totals for one :class:`FileCategory`.

    Copied files increase ``files`` but none of the per-operation
    counters.
    """

    files: int = 0
    insertions: int = 0
    deletions: int = 0
    added: int = 0
    modified: int = 0
    deleted: int = 0
    renamed: int = 0

    def record(self, change: FileChange) -> None:
        self.files += 1
        self.insertions += change.insertions
        self.deletions += change.deletions
        if change.operation is FileOperation.ADDED:
            self.added += 1
        elif change.operation is FileOperation.MODIFIED:
            self.modified += 1
        elif change.operation is FileOperation.DELETED:
            self.deleted += 1
        elif change.operation is FileOperation.RENAMED:
            self.renamed += 1


class Signal(str, Enum):
    STRONG = "strong"
    WEAK = "weak"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SuggestedType:
    """Commit type suggested by the heuristics.

    ``STRONG`` means the whole change-set belongs to a single category,
    ``WEAK`` a partial signal and ``UNKNOWN`` that no rule was decisive.
    """

    signal: Signal
    label: Optional[str] = None

    @classmethod
    def strong(cls, label: str) -> "SuggestedType":
        return cls(Signal.STRONG, label)

    @classmethod
    def weak(cls, label: str) -> "SuggestedType":
        return cls(Signal.WEAK, label)

    @classmethod
    def unknown(cls) -> "SuggestedType":
        return cls(Signal.UNKNOWN)

    @property
    def is_strong(self) -> bool:
        return self.signal is Signal.STRONG

    @property
    def is_unknown(self) -> bool:
        return self.signal is Signal.UNKNOWN

    def __str__(self) -> str:
        if self.label is None:
            return "Unknown"
        return f"{self.signal.value.capitalize()}({self.label})"


# Directory names that are meaningful as a commit scope on their own.
SCOPE_VOCABULARY = frozenset(
    {
        "frontend", "backend", "api", "web", "mobile", "ios", "android",
        "cli", "core", "common", "shared", "server", "client", "ui",
        "auth", "db", "database", "infra", "deploy", "docs", "test",
        "tests",
    }
)
# Top-level directories whose children are packages or services.
MONOREPO_ROOTS = frozenset({"packages", "apps", "libs", "services", "modules", "crates"})
# Generic source roots skipped in favour of the next component.
SOURCE_ROOTS = frozenset({"src", "lib", "app", "pkg", "internal", "cmd"})

SCOPE_DOMINANCE = 0.8
MAX_SCOPE_LENGTH = 15
TOP_FILES_IN_SUMMARY = 20


def _scope_candidate(path: str) -> Optional[str]:
    parts = [part.lower() for part in path.split("/") if part and part != "."]
    if len(parts) < 3:
        return None
    first = parts[0]
    if first in MONOREPO_ROOTS or first in SOURCE_ROOTS:
        return parts[1]
    if first in SCOPE_VOCABULARY:
        return first
    return None


@dataclass
class DiffAnalysis:
    """Structured view of the staged change-set."""

    files: List[FileChange] = field(default_factory=list)
    category_stats: Dict[FileCategory, CategoryStats] = field(default_factory=dict)
    total_insertions: int = 0
    total_deletions: int = 0
    suggested_type: SuggestedType = field(default_factory=SuggestedType.unknown)
    confidence_reasons: List[str] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.files)

    def stats_for(self, category: FileCategory) -> CategoryStats:
        """Return the stats for ``category`` (empty stats if untouched)."""
        return self.category_stats.get(category, CategoryStats())

    def suggest_scope(self) -> Optional[str]:
        """Infer a commit scope from the directory layout.

        A scope is only returned for clearly structured change-sets: at
        least two files, and a single candidate covering more than 80% of
        *all* changed files. Candidates come from monorepo package names,
        the directory below a generic source root, or a top-level
        directory that is itself a well-known scope word.
        """
        total = len(self.files)
        if total < 2:
            return None

        counts: Counter = Counter()
        for change in self.files:
            candidate = _scope_candidate(change.path)
            if candidate is not None:
                counts[candidate] += 1

        qualifying = [
            (name, count)
            for name, count in counts.most_common()
            if count / total > SCOPE_DOMINANCE
            and name
            and len(name) <= MAX_SCOPE_LENGTH
            and "." not in name
        ]
        if not qualifying:
            return None
        return qualifying[0][0]

    def summary(self) -> str:
        """Render the analysis as markdown for inclusion in the prompt."""
        lines: List[str] = [
            "## Change Summary",
            f"{self.total_files} files changed: +{self.total_insertions} insertions, "
            f"-{self.total_deletions} deletions",
            "",
            "## Files by Category",
        ]

        for category in FileCategory:
            stats = self.category_stats.get(category)
            if stats is None or stats.files == 0:
                continue
            ops = []
            if stats.added:
                ops.append(f"{stats.added} added")
            if stats.modified:
                ops.append(f"{stats.modified} modified")
            if stats.deleted:
                ops.append(f"{stats.deleted} deleted")
            if stats.renamed:
                ops.append(f"{stats.renamed} renamed")
            lines.append(
                f"- {category.value}: {stats.files} files ({', '.join(ops)}) "
                f"[+{stats.insertions}/-{stats.deletions}]"
            )

        lines.append("")
        lines.append(f"## Changed Files (top {TOP_FILES_IN_SUMMARY} by churn)")
        ranked = sorted(self.files, key=lambda change: -change.churn)
        for change in ranked[:TOP_FILES_IN_SUMMARY]:
            indicator = _OPERATION_INDICATORS[change.operation]
            if change.old_path:
                lines.append(
                    f"{indicator} {change.old_path} → {change.path} [{change.category.value}]"
                )
            else:
                lines.append(f"{indicator} {change.path} [{change.category.value}]")
        if len(self.files) > TOP_FILES_IN_SUMMARY:
            lines.append(f"+{len(self.files) - TOP_FILES_IN_SUMMARY} other files not listed")

        lines.append("")
        lines.append("## Analysis Hints")
        suggested = self.suggested_type
        if suggested.signal is Signal.STRONG:
            lines.append(f"STRONG SIGNAL: This appears to be a '{suggested.label}' commit")
        elif suggested.signal is Signal.WEAK:
            lines.append(f"POSSIBLE: This might be a '{suggested.label}' commit")
        else:
            lines.append("No clear pattern detected - analyze the diff carefully")
        for reason in self.confidence_reasons:
            lines.append(f"- {reason}")

        return "\n".join(lines) + "\n"
