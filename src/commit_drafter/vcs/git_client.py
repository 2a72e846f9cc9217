"""
Git client implementation for commit_drafter.

This module wraps the read-only Git queries needed to analyse the staged
change-set (delta listing with rename/copy detection, patch text,
aggregate totals, unstaged-change detection, recent history) and the one
write operation the tool performs: ``git commit``. All subprocess calls
go through :meth:`GitClient._run` so that unit tests can mock them
easily.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


_SHORTSTAT_FILES_RE = re.compile(r"(\d+) files? changed")
_SHORTSTAT_INSERTIONS_RE = re.compile(r"(\d+) insertions?\(\+\)")
_SHORTSTAT_DELETIONS_RE = re.compile(r"(\d+) deletions?\(-\)")


@dataclass(frozen=True)
class Delta:
    """One entry of ``git diff --name-status``.

    ``status`` is the single status letter reported by Git (``A``, ``M``,
    ``D``, ``R``, ``C``, ``T``...). ``old_path`` is only set for renames
    and copies.
    """

    status: str
    path: str
    old_path: Optional[str] = None


@dataclass(frozen=True)
class DiffStats:
    """Aggregate totals for the whole staged change-set."""

    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0

    @property
    def changed_lines(self) -> int:
        return self.insertions + self.deletions


class GitError(Exception):
    """Raised when a Git command fails or the repository cannot be read."""

    pass


class NothingStagedError(GitError):
    """Raised when the staged change-set yields no diff to describe."""

    pass


class CommitError(GitError):
    """Raised when ``git commit`` fails.

    Attributes
    ----------
    kind : str
        ``"pre-commit"`` or ``"commit-msg"`` when a hook rejected the
        commit, ``"parse"`` when the commit hash could not be read from
        Git's output and ``"git"`` for any other failure.
    """

    def __init__(self, kind: str, message: str = "") -> None:
        self.kind = kind
        super().__init__(message or f"{kind} hook failed")


def parse_commit_hash(output: str) -> Optional[str]:
    """Extract the commit hash from ``git commit`` output.

    Git prints ``[main abc1234] subject`` or
    ``[main (root-commit) abc1234] subject``.
    """
    for line in output.splitlines():
        line = line.strip()
        if not line.startswith("["):
            continue
        end = line.find("]")
        if end == -1:
            continue
        tokens = line[1:end].split()
        if not tokens:
            continue
        candidate = tokens[-1]
        if len(candidate) >= 7 and all(c in "0123456789abcdefABCDEF" for c in candidate):
            return candidate
    return None


def parse_shortstat(output: str) -> DiffStats:
    """Parse the output of ``git diff --shortstat``."""

    def _grab(pattern: re.Pattern) -> int:
        match = pattern.search(output)
        return int(match.group(1)) if match else 0

    return DiffStats(
        files_changed=_grab(_SHORTSTAT_FILES_RE),
        insertions=_grab(_SHORTSTAT_INSERTIONS_RE),
        deletions=_grab(_SHORTSTAT_DELETIONS_RE),
    )


def parse_name_status(output: str) -> List[Delta]:
    """Parse NUL separated ``git diff --name-status -z`` output."""
    tokens = output.split("\0")
    while tokens and tokens[-1] == "":
        tokens.pop()

    deltas: List[Delta] = []
    idx = 0
    while idx < len(tokens):
        status = tokens[idx]
        letter = status[:1].upper()
        if letter in ("R", "C"):
            if idx + 2 >= len(tokens):
                raise GitError(f"Malformed name-status entry: {status!r}")
            deltas.append(Delta(status=letter, path=tokens[idx + 2], old_path=tokens[idx + 1]))
            idx += 3
        else:
            if idx + 1 >= len(tokens):
                raise GitError(f"Malformed name-status entry: {status!r}")
            deltas.append(Delta(status=letter, path=tokens[idx + 1]))
            idx += 2
    return deltas


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root
        self._baseline: Optional[str] = None

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def is_repo(path: Path) -> bool:
        """Return True if the given path is the root of a Git repository."""
        return (path / ".git").exists()

    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(
        self,
        args: List[str],
        check: bool = True,
        input: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If Git cannot be started, or exits with a non-zero status
            when ``check`` is True.
        """
        full_cmd = ["git", "-c", "core.quotepath=false"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                input=input,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",  # Replace invalid characters instead of failing
            )
        except FileNotFoundError as exc:
            raise GitError("git is not installed or not on PATH") from exc
        except OSError as exc:
            raise GitError(f"Failed to run git: {exc}") from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # Staged change-set queries
    # ------------------------------------------------------------------
    def has_head(self) -> bool:
        """Return True if the repository has at least one commit."""
        result = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False)
        return result.returncode == 0

    def baseline(self) -> str:
        """Return the tree-ish the index is compared against.

        This is ``HEAD`` normally and the empty tree for a repository
        without commits, so that every staged file shows up as added.
        """
        if self._baseline is None:
            if self.has_head():
                self._baseline = "HEAD"
            else:
                result = self._run(["hash-object", "-t", "tree", "--stdin"], input="")
                self._baseline = result.stdout.strip()
        return self._baseline

    def _staged_diff_args(self, *extra: str) -> List[str]:
        # fixed prefixes, whatever diff.mnemonicPrefix or diff.noprefix say
        return [
            "diff", "--cached", "--no-color", "--no-ext-diff", "-M", "-C",
            "--src-prefix=a/", "--dst-prefix=b/", *extra, self.baseline(),
        ]

    def list_staged_deltas(self) -> List[Delta]:
        """Return the staged deltas, with rename and copy detection."""
        result = self._run(self._staged_diff_args("--name-status", "-z"))
        return parse_name_status(result.stdout)

    def staged_patch(self, context_lines: int) -> str:
        """Return the staged unified diff with ``context_lines`` of context."""
        result = self._run(self._staged_diff_args(f"--unified={int(context_lines)}"))
        return result.stdout

    def staged_stats(self) -> DiffStats:
        """Return the aggregate insertion/deletion totals of the index."""
        result = self._run(self._staged_diff_args("--shortstat"))
        return parse_shortstat(result.stdout)

    def has_unstaged_changes(self) -> bool:
        """Return True if the working tree has modifications not in the index."""
        result = self._run(["diff", "--quiet", "--no-ext-diff"], check=False)
        if result.returncode in (0, 1):
            return result.returncode == 1
        raise GitError(result.stderr.strip() or "git diff --quiet failed")

    def recent_commits(self, count: int) -> str:
        """Return the last ``count`` commits as ``<hash> <subject>`` lines."""
        if count <= 0 or not self.has_head():
            return ""
        result = self._run(["log", f"-n{int(count)}", "--pretty=format:%h %s"])
        return result.stdout.strip()

    # ------------------------------------------------------------------
    # Committing
    # ------------------------------------------------------------------
    def commit(self, message: str, no_verify: bool = False) -> str:
        """Create a commit from the index and return its short hash.

        The message is passed through a temporary file with
        ``git commit -F`` so that the repository's hooks run as usual.

        Raises
        ------
        CommitError
            If a hook rejects the commit, Git fails, or the new commit
            hash cannot be parsed from Git's output.
        """
        fd, tmp_path = tempfile.mkstemp(prefix="cmt-", suffix=".txt")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(message)
            args = ["commit", "-F", tmp_path]
            if no_verify:
                args.append("--no-verify")
            result = self._run(args, check=False)
        finally:
            os.unlink(tmp_path)

        if result.returncode != 0:
            combined = f"{result.stdout}{result.stderr}".strip()
            lowered = combined.lower()
            if result.returncode == 1:
                if "pre-commit" in lowered:
                    raise CommitError("pre-commit", combined)
                if "commit-msg" in lowered:
                    raise CommitError("commit-msg", combined)
                if "nothing to commit" not in lowered and "no changes" not in lowered:
                    # pre-commit runs first, so an unexplained exit 1 is most likely it
                    raise CommitError("pre-commit", combined)
            raise CommitError("git", combined)

        oid = parse_commit_hash(result.stdout)
        if oid is None:
            raise CommitError("parse", "failed to parse commit output")
        return oid
