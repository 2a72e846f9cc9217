"""Tests for filtering thinking process from LLM responses."""

import unittest
from unittest.mock import Mock, patch

from commit_drafter.llm.providers import OllamaClient, strip_thinking_tags


class TestStripThinkingTags(unittest.TestCase):
    """Tests for the tag filter itself."""

    def test_all_tag_variants(self):
        for tag in ("think", "thinking", "thought", "reasoning"):
            with self.subTest(tag=tag):
                text = f"<{tag}>step one\nstep two</{tag}>\n\nfeat: add x"
                self.assertEqual(strip_thinking_tags(text), "feat: add x")

    def test_case_insensitive_and_multiple_blocks(self):
        text = "<THINK>a</THINK>fix: y<Thinking>b</Thinking>"
        self.assertEqual(strip_thinking_tags(text), "fix: y")

    def test_untagged_text_is_only_trimmed(self):
        self.assertEqual(strip_thinking_tags("  docs: z  \n"), "docs: z")

    def test_unclosed_tag_is_kept(self):
        self.assertIn("<think>", strip_thinking_tags("<think>never closed"))


class TestThinkingFilterInClient(unittest.TestCase):
    """Replies from a provider come back without the thinking block."""

    def test_ollama_reply_is_filtered(self):
        client = OllamaClient(model="test-model")

        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {
            "message": {
                "role": "assistant",
                "content": "<think>Let me analyze this code...</think>feat: add new feature\n\nThis adds a new feature.",
            }
        }

        with patch("requests.post", return_value=mock_response):
            result = client.generate("system", "user")

        self.assertNotIn("<think>", result)
        self.assertNotIn("Let me analyze", result)
        self.assertTrue(result.startswith("feat: add new feature"))
        self.assertIn("This adds a new feature", result)


if __name__ == "__main__":
    unittest.main()
