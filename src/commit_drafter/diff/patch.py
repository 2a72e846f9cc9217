"""
Splitting of unified diff text into per-file sections.

Both the collector (line counts) and the renderer (bounded output) walk
``git diff`` output file by file. A section starts at a ``diff --git``
line. Lines before the first ``@@`` hunk header of a section are
metadata; afterwards, lines starting with ``+``, ``-`` or a space are
content lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


DIFF_HEADER = "diff --git "


def _clean_path(raw: str) -> str:
    raw = raw.rstrip("\t")
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        raw = raw[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return raw


def _strip_side(raw: str, prefix: str) -> Optional[str]:
    raw = _clean_path(raw)
    if raw == "/dev/null":
        return None
    if raw.startswith(prefix):
        return raw[len(prefix):]
    return raw


@dataclass
class PatchSection:
    """All diff lines belonging to one file."""

    lines: List[str] = field(default_factory=list)

    @property
    def path(self) -> str:
        """Best effort path of the file this section describes.

        Prefer the ``+++`` side, then the ``---`` side (deletions), then
        rename/copy targets, then the ``diff --git`` header itself.
        """
        new_path: Optional[str] = None
        old_path: Optional[str] = None
        target: Optional[str] = None
        for line in self.lines:
            if line.startswith("@@"):
                break
            if line.startswith("+++ "):
                new_path = _strip_side(line[4:], "b/")
            elif line.startswith("--- "):
                old_path = _strip_side(line[4:], "a/")
            elif line.startswith("rename to ") or line.startswith("copy to "):
                target = _clean_path(line.split(" to ", 1)[1])
        if new_path:
            return new_path
        if old_path:
            return old_path
        if target:
            return target
        header = self.lines[0][len(DIFF_HEADER):] if self.lines else ""
        # "a/<path> b/<path>": both halves are equal for non-renames
        if header.startswith("a/") and " b/" in header:
            middle = len(header) // 2
            candidate = header[middle + 1:]
            if candidate.startswith("b/"):
                return candidate[2:]
            return header.split(" b/", 1)[1]
        return header

    def iter_lines(self):
        """Yield ``(line, is_content)`` pairs for this section."""
        in_hunk = False
        for line in self.lines:
            if line.startswith("@@"):
                in_hunk = True
                yield line, False
            elif in_hunk and line[:1] in ("+", "-", " "):
                yield line, True
            else:
                yield line, False

    def count_changes(self):
        """Return ``(insertions, deletions)`` counted from content lines."""
        insertions = deletions = 0
        for line, is_content in self.iter_lines():
            if not is_content:
                continue
            if line.startswith("+"):
                insertions += 1
            elif line.startswith("-"):
                deletions += 1
        return insertions, deletions


def split_patch(patch_text: str) -> List[PatchSection]:
    """Split unified diff text into one :class:`PatchSection` per file.

    Anything before the first ``diff --git`` line is dropped.
    """
    sections: List[PatchSection] = []
    current: Optional[PatchSection] = None
    for line in patch_text.split("\n"):
        if line.startswith(DIFF_HEADER):
            current = PatchSection()
            sections.append(current)
        if current is not None:
            current.lines.append(line)
    # a trailing newline leaves an empty last element
    if current is not None and current.lines and current.lines[-1] == "":
        current.lines.pop()
    return sections
