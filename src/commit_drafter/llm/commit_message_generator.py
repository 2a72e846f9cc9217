"""
Commit message generation using an LLM.

This module provides the :class:`CommitMessageGenerator` class, which
builds the prompts from the bounded diff and the diff analysis, sends
them to a provider client and parses the reply into a
:class:`CommitTemplate`. A missing or unknown commit type is filled in
from the analysis. In the event of an LLM failure, or a reply that
cannot be parsed, a deterministic fallback message is built from the
analysis instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from commit_drafter.analysis.models import DiffAnalysis
from commit_drafter.llm.prompts import SYSTEM_PROMPT, build_user_prompt
from commit_drafter.llm.providers import LLMError, ProviderClient
from commit_drafter.llm.response_parser import ResponseParseError, parse_commit_response
from commit_drafter.templates.manager import CommitTemplate, CommitType


logger = logging.getLogger(__name__)
# Attach a null handler to prevent logging errors when no handlers are
# configured on the root logger. Logs will propagate when configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


FALLBACK_TYPE = CommitType.CHORE.value


@dataclass
class GenerationResult:
    """Outcome of one generation attempt."""

    template: CommitTemplate
    used_fallback: bool = False
    raw_response: str = ""


def suggested_label(analysis: Optional[DiffAnalysis]) -> Optional[str]:
    """Return the analysis' suggested type if it is a known commit type."""
    if analysis is None:
        return None
    label = analysis.suggested_type.label
    return label if label in CommitType.values() else None


def fallback_template(analysis: Optional[DiffAnalysis]) -> CommitTemplate:
    """Build a commit message from the analysis alone.

    Used when the LLM is unreachable or its reply is unusable.
    """
    count = analysis.total_files if analysis is not None else 0
    subject = f"update {count} file{'s' if count != 1 else ''}" if count else "update files"
    return CommitTemplate(
        type=suggested_label(analysis) or FALLBACK_TYPE,
        subject=subject,
        scope=analysis.suggest_scope() if analysis is not None else None,
    )


class CommitMessageGenerator:
    """Generate commit messages for the staged change-set."""

    def __init__(self, client: ProviderClient) -> None:
        self.client = client

    def _fill_type(self, template: CommitTemplate, analysis: Optional[DiffAnalysis]) -> CommitTemplate:
        if template.type not in CommitType.values():
            if template.type:
                logger.debug("Replacing unknown commit type %r", template.type)
            template.type = suggested_label(analysis) or FALLBACK_TYPE
        return template

    def generate(
        self,
        diff_text: str,
        analysis: Optional[DiffAnalysis] = None,
        recent_commits: str = "",
        hint: Optional[str] = None,
    ) -> GenerationResult:
        """Generate a commit message.

        Parameters
        ----------
        diff_text : str
            Bounded diff from :func:`commit_drafter.diff.renderer.get_staged_changes`.
        analysis : DiffAnalysis, optional
            Result of :func:`commit_drafter.diff.collector.collect_changes`.
            When missing the prompt carries no pre-analysis block.
        recent_commits : str
            Recent commit lines for style reference.
        hint : str, optional
            Extra guidance from the user.

        Returns
        -------
        GenerationResult
            Never raises for provider failures; ``used_fallback`` tells
            whether the message was built without the LLM.
        """
        user_prompt = build_user_prompt(
            diff_text,
            analysis.summary() if analysis is not None else None,
            recent_commits,
            hint,
        )
        raw = ""
        try:
            raw = self.client.generate(SYSTEM_PROMPT, user_prompt)
            template = parse_commit_response(raw)
        except (LLMError, ResponseParseError) as exc:
            logger.warning("LLM failed to generate a commit message: %s; using fallback.", exc)
            return GenerationResult(template=fallback_template(analysis), used_fallback=True, raw_response=raw)

        return GenerationResult(template=self._fill_type(template, analysis), raw_response=raw)
