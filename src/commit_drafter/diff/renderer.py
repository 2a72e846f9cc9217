"""
Bounded rendering of the staged diff.

The text produced here is what the LLM sees. It is built from the
staged patch with three limits applied:

* noise files (lock files, minified and generated assets, binaries,
  build output) are left out entirely,
* every file contributes at most ``max_lines_per_file`` content lines,
  followed by a single :data:`TRUNCATION_MARKER` line when cut,
* every content line is cut to ``max_line_width`` characters (origin
  marker not counted) followed by :data:`ELLIPSIS`.

Large change-sets additionally get less context and a tighter per-file
cap, see :func:`effective_limits`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import List, Tuple

from commit_drafter.diff.patch import split_patch
from commit_drafter.vcs.git_client import DiffStats as GitDiffStats
from commit_drafter.vcs.git_client import GitClient, NothingStagedError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


TRUNCATION_MARKER = "[... remaining lines of this file truncated ...]"
ELLIPSIS = "..."

LARGE_DIFF_FILES = 40
LARGE_DIFF_LINES = 4000
LARGE_DIFF_MIN_CONTEXT = 3
LARGE_DIFF_MAX_CONTEXT = 6
LARGE_DIFF_MAX_LINES_PER_FILE = 200

_LOCK_FILE_NAMES = {
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "cargo.lock",
    "poetry.lock",
    "pipfile.lock",
    "gemfile.lock",
    "composer.lock",
    "go.sum",
    "uv.lock",
    "bun.lockb",
}
_GENERATED_SUFFIXES = (".map", ".min.js", ".min.css")
_BINARY_EXTENSIONS = {
    "png", "jpg", "jpeg", "gif", "bmp", "ico", "webp", "svg", "tiff",
    "pdf", "zip", "gz", "tgz", "bz2", "xz", "7z", "rar", "tar", "jar",
    "war", "exe", "dll", "so", "dylib", "a", "o", "obj", "class", "pyc",
    "wasm", "bin", "dat", "db", "sqlite", "woff", "woff2", "ttf", "otf",
    "eot", "mp3", "mp4", "mov", "avi", "wav", "ogg", "flac",
}
_GENERATED_DIRS = {
    "dist", "build", "out", "node_modules", "target", "vendor", ".next",
    ".nuxt", "__pycache__", ".venv", "coverage",
}


@dataclass(frozen=True)
class DiffStats:
    """Totals of the staged change-set as shown to the user."""

    files_changed: int
    insertions: int
    deletions: int
    is_large: bool


@dataclass(frozen=True)
class StagedChanges:
    """Bounded diff text together with its statistics."""

    diff_text: str
    stats: DiffStats


def should_skip_file(path: str) -> bool:
    """Return True if ``path`` is noise that should not reach the LLM."""
    lowered = path.lower()
    pure = PurePosixPath(lowered)
    name = pure.name

    if name in _LOCK_FILE_NAMES or pure.suffix == ".lock":
        return True
    if name.endswith(_GENERATED_SUFFIXES):
        return True
    if pure.suffix[1:] in _BINARY_EXTENSIONS:
        return True
    return any(part in _GENERATED_DIRS for part in pure.parts[:-1])


def is_large_change_set(stats: GitDiffStats) -> bool:
    return stats.files_changed > LARGE_DIFF_FILES or stats.changed_lines > LARGE_DIFF_LINES


def effective_limits(
    is_large: bool, context_lines: int, max_lines_per_file: int
) -> Tuple[int, int]:
    """Return the ``(context_lines, max_lines_per_file)`` actually used.

    Only large change-sets are clamped: context into the 3..6 range and
    the per-file cap to at most 200 lines.
    """
    if not is_large:
        return context_lines, max_lines_per_file
    clamped_context = min(max(context_lines, LARGE_DIFF_MIN_CONTEXT), LARGE_DIFF_MAX_CONTEXT)
    return clamped_context, min(max_lines_per_file, LARGE_DIFF_MAX_LINES_PER_FILE)


def _cap_width(line: str, max_line_width: int) -> str:
    origin, content = line[:1], line[1:]
    if len(content) <= max_line_width:
        return line
    return origin + content[:max_line_width] + ELLIPSIS


def render_patch(patch_text: str, max_lines_per_file: int, max_line_width: int) -> str:
    """Apply noise filtering, per-file caps and width caps to a patch.

    Parameters
    ----------
    patch_text : str
        Output of ``git diff``.
    max_lines_per_file : int
        Maximum number of content lines (``+``, ``-`` and context) kept
        for each file.
    max_line_width : int
        Maximum length of a content line, not counting its origin
        marker.

    Returns
    -------
    str
        The bounded diff text. Empty if nothing survives filtering.
    """
    output: List[str] = []
    for section in split_patch(patch_text):
        if should_skip_file(section.path):
            logger.debug("Leaving %s out of the diff", section.path)
            continue

        emitted = 0
        truncated = False
        for line, is_content in section.iter_lines():
            if not is_content:
                output.append(line)
                continue
            if emitted >= max_lines_per_file:
                if not truncated:
                    output.append(TRUNCATION_MARKER)
                    truncated = True
                continue
            output.append(_cap_width(line, max_line_width))
            emitted += 1

    if not output:
        return ""
    return "\n".join(output) + "\n"


def get_staged_changes(
    client: GitClient,
    context_lines: int,
    max_lines_per_file: int,
    max_line_width: int,
) -> StagedChanges:
    """Return the bounded staged diff and its statistics.

    Raises
    ------
    NothingStagedError
        If the rendered diff is empty.
    GitError
        If reading the repository fails.
    """
    totals = client.staged_stats()
    large = is_large_change_set(totals)
    effective_context, effective_cap = effective_limits(large, context_lines, max_lines_per_file)
    # widening the context of a large diff would only make it bigger
    used_context = min(effective_context, context_lines)
    logger.debug(
        "Rendering diff: large=%s context=%d max_lines_per_file=%d max_line_width=%d",
        large,
        used_context,
        effective_cap,
        max_line_width,
    )

    text = render_patch(client.staged_patch(used_context), effective_cap, max_line_width)
    if not text.strip():
        raise NothingStagedError("No changes have been staged for commit")

    return StagedChanges(
        diff_text=text,
        stats=DiffStats(
            files_changed=totals.files_changed,
            insertions=totals.insertions,
            deletions=totals.deletions,
            is_large=large,
        ),
    )
