"""
Prompt construction for commit message generation.

The system prompt describes the expected JSON reply; the user prompt
carries the optional pre-analysis block, the bounded diff, recent
commit subjects for style reference and an optional user hint.
"""

from __future__ import annotations

from textwrap import dedent
from typing import Optional


SYSTEM_PROMPT = dedent(
    """
    You are an expert software engineer who writes clear, conventional git
    commit messages from staged diffs.

    Choose exactly one commit type:
    - feat: a new feature or enhancement (not docs/readme)
    - fix: a bug fix or error correction
    - refactor: code restructuring without behavior change
    - chore: routine maintenance such as dependency bumps
    - docs: documentation updates (README, comments, API docs)
    - style: formatting or stylistic changes
    - test: test additions or updates
    - build: build system or script changes
    - ci: CI/CD configuration updates
    - perf: performance improvements

    Rules:
    - The subject starts with a lowercase verb in present tense, has no
      trailing period and keeps "type(scope): subject" under 50 characters.
    - Details are optional bullet points ("- ..."), each under 80
      characters, explaining the purpose and impact of the change.
    - Only set "scope" when the change clearly belongs to one component.
    - Only set "breaking" when backward compatibility is broken.
    - Only set "issues" when the diff or the hint references an issue.

    Respond with a single JSON object and nothing else:
    {"type": "...", "scope": null, "subject": "...", "details": null,
     "issues": null, "breaking": null}
    """
).strip()


ANALYSIS_HEADER = "# Pre-Analysis of Changes\n\n"
ANALYSIS_PREAMBLE = (
    "The following analysis was generated automatically from the diff.\n"
    "Use this to inform your commit type selection, but always verify by reading the actual diff.\n\n"
)


def build_user_prompt(
    changes: str,
    analysis_summary: Optional[str] = None,
    recent_commits: str = "",
    hint: Optional[str] = None,
) -> str:
    """Assemble the user prompt.

    Parameters
    ----------
    changes : str
        Bounded diff text from the renderer.
    analysis_summary : str, optional
        Output of :meth:`DiffAnalysis.summary`. When given it is placed
        before the diff under a "Pre-Analysis of Changes" heading.
    recent_commits : str
        Recent ``<hash> <subject>`` lines, may be empty.
    hint : str, optional
        Free-form guidance from the user.
    """
    parts = []
    if analysis_summary:
        parts.append(ANALYSIS_HEADER + ANALYSIS_PREAMBLE + analysis_summary + "\n---\n\n")

    parts.append(
        "Generate a commit message for the following staged changes.\n\n"
        "# Staged Changes\n\n"
        f"```diff\n{changes.rstrip()}\n```\n"
    )
    if recent_commits.strip():
        parts.append(
            "\n# Recent Commits\n\n"
            "Match the style of these recent commits where it makes sense:\n\n"
            f"{recent_commits.strip()}\n"
        )
    if hint:
        parts.append(f"\n# Additional Context\n\n{hint.strip()}\n")
    return "".join(parts)
