import unittest

from commit_drafter.analysis.categorizer import categorize
from commit_drafter.analysis.classifier import build_category_stats, suggest_commit_type
from commit_drafter.analysis.models import DiffAnalysis, FileChange, FileOperation
from commit_drafter.llm.commit_message_generator import (
    CommitMessageGenerator,
    fallback_template,
    suggested_label,
)
from commit_drafter.llm.prompts import SYSTEM_PROMPT
from commit_drafter.llm.providers import LLMError


class DummyClient:
    """Stand-in for a provider client that returns a fixed reply."""

    def __init__(self, reply=None, error=None) -> None:
        self.reply = reply
        self.error = error
        self.calls = []

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.reply


def analysis_for(*paths: str, operation: FileOperation = FileOperation.MODIFIED) -> DiffAnalysis:
    files = [FileChange(p, operation, categorize(p), 2, 1) for p in paths]
    stats = build_category_stats(files)
    suggested, reasons = suggest_commit_type(files, stats)
    return DiffAnalysis(
        files=files,
        category_stats=stats,
        total_insertions=2 * len(files),
        total_deletions=len(files),
        suggested_type=suggested,
        confidence_reasons=reasons,
    )


class TestCommitMessageGenerator(unittest.TestCase):
    def test_generate_sends_prompts_and_parses_reply(self) -> None:
        client = DummyClient(reply='{"type": "docs", "subject": "describe setup", "scope": "readme"}')
        analysis = analysis_for("README.md")
        result = CommitMessageGenerator(client).generate("+hello\n", analysis, "abc1234 feat: x", "be brief")

        self.assertFalse(result.used_fallback)
        self.assertEqual(result.template.type, "docs")
        self.assertEqual(result.template.subject, "describe setup")
        system_prompt, user_prompt = client.calls[0]
        self.assertEqual(system_prompt, SYSTEM_PROMPT)
        self.assertIn("STRONG SIGNAL: This appears to be a 'docs' commit", user_prompt)
        self.assertIn("+hello", user_prompt)
        self.assertIn("abc1234 feat: x", user_prompt)
        self.assertIn("be brief", user_prompt)

    def test_without_analysis_there_is_no_pre_analysis(self) -> None:
        client = DummyClient(reply="fix: y")
        CommitMessageGenerator(client).generate("+1\n")
        self.assertNotIn("Pre-Analysis", client.calls[0][1])

    def test_unknown_type_is_replaced_by_suggestion(self) -> None:
        client = DummyClient(reply="update: tweak docs")
        result = CommitMessageGenerator(client).generate("+1\n", analysis_for("docs/a.md", "docs/b.md"))
        self.assertEqual(result.template.type, "docs")
        self.assertEqual(result.template.subject, "tweak docs")

    def test_missing_type_without_suggestion_becomes_chore(self) -> None:
        client = DummyClient(reply="Tweak things")
        result = CommitMessageGenerator(client).generate("+1\n", analysis_for("src/a.py"))
        self.assertEqual(result.template.type, "chore")
        self.assertFalse(result.used_fallback)

    def test_llm_error_uses_fallback(self) -> None:
        client = DummyClient(error=LLMError("boom", status_code=503))
        analysis = analysis_for("packages/api/a.rs", "packages/api/b.rs")
        with self.assertLogs("commit_drafter.llm.commit_message_generator", level="WARNING"):
            result = CommitMessageGenerator(client).generate("+1\n", analysis)
        self.assertTrue(result.used_fallback)
        self.assertEqual(result.template.subject, "update 2 files")
        self.assertEqual(result.template.scope, "api")
        self.assertEqual(result.template.type, "chore")

    def test_unparseable_reply_uses_fallback(self) -> None:
        client = DummyClient(reply="<think>nothing useful</think>")
        result = CommitMessageGenerator(client).generate("+1\n", analysis_for("tests/test_a.py"))
        self.assertTrue(result.used_fallback)
        self.assertEqual(result.template.type, "test")
        self.assertEqual(result.template.subject, "update 1 file")
        self.assertEqual(result.raw_response, "<think>nothing useful</think>")


class TestFallbackHelpers(unittest.TestCase):
    def test_fallback_without_analysis(self) -> None:
        template = fallback_template(None)
        self.assertEqual((template.type, template.subject, template.scope), ("chore", "update files", None))

    def test_suggested_label(self) -> None:
        self.assertIsNone(suggested_label(None))
        self.assertEqual(suggested_label(analysis_for("README.md")), "docs")
        self.assertIsNone(suggested_label(analysis_for("src/a.py")))


if __name__ == "__main__":
    unittest.main()
