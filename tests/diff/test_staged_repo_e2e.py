"""End-to-end checks against a real, throw-away Git repository."""

import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path

from commit_drafter.analysis.categorizer import FileCategory
from commit_drafter.analysis.models import FileOperation, SuggestedType
from commit_drafter.diff.collector import collect_changes
from commit_drafter.diff.renderer import ELLIPSIS, TRUNCATION_MARKER, get_staged_changes
from commit_drafter.vcs.git_client import GitClient, NothingStagedError


def git(repo: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=repo, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)


@unittest.skipIf(shutil.which("git") is None, "git is not installed")
class StagedRepoTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.repo = Path(self._tmp.name)
        git(self.repo, "init", "-q")
        git(self.repo, "config", "user.name", "Test User")
        git(self.repo, "config", "user.email", "test@example.com")
        git(self.repo, "config", "commit.gpgsign", "false")
        git(self.repo, "config", "core.hooksPath", str(self.repo / "no-hooks"))
        self.client = GitClient(self.repo)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write(self, rel: str, content: str) -> None:
        path = self.repo / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def stage(self, *paths: str) -> None:
        git(self.repo, "add", "--", *paths)

    def render(self, **overrides) -> str:
        options = dict(context_lines=20, max_lines_per_file=2000, max_line_width=500)
        options.update(overrides)
        return get_staged_changes(self.client, **options).diff_text


class TestStagedAnalysis(StagedRepoTestCase):
    def test_docs_only_in_unborn_repository(self) -> None:
        self.write("README.md", "# Project\n\nHello.\n")
        self.stage("README.md")
        analysis = collect_changes(self.client)
        self.assertEqual(analysis.total_files, 1)
        self.assertEqual(analysis.files[0].category, FileCategory.DOCS)
        self.assertEqual(analysis.files[0].operation, FileOperation.ADDED)
        self.assertEqual(analysis.files[0].insertions, 3)
        self.assertEqual(analysis.suggested_type, SuggestedType.strong("docs"))

    def test_mixed_categories(self) -> None:
        self.write("src/main.rs", "fn main() {}\n")
        self.write("README.md", "# Project\n")
        self.stage("src/main.rs", "README.md")
        analysis = collect_changes(self.client)
        self.assertEqual(set(analysis.category_stats), {FileCategory.SOURCE, FileCategory.DOCS})
        self.assertNotEqual(analysis.suggested_type, SuggestedType.strong("docs"))

    def test_lock_files_are_not_counted(self) -> None:
        self.write("Cargo.lock", "x\n" * 50)
        self.write("src/lib.rs", "pub fn f() {}\n")
        self.stage("Cargo.lock", "src/lib.rs")
        analysis = collect_changes(self.client)
        self.assertEqual(analysis.total_files, len(analysis.files))
        self.assertEqual([f.path for f in analysis.files], ["src/lib.rs"])
        self.assertEqual(analysis.total_insertions, 1)

    def test_rename_is_detected(self) -> None:
        self.write("src/old_name.py", "".join(f"value_{i} = {i}\n" for i in range(30)))
        self.stage("src/old_name.py")
        self.client.commit("chore: initial")
        git(self.repo, "mv", "src/old_name.py", "src/new_name.py")
        analysis = collect_changes(self.client)
        self.assertEqual(len(analysis.files), 1)
        change = analysis.files[0]
        self.assertEqual(change.operation, FileOperation.RENAMED)
        self.assertEqual(change.old_path, "src/old_name.py")
        self.assertEqual(change.path, "src/new_name.py")
        self.assertEqual(analysis.suggested_type, SuggestedType.strong("refactor"))

    def test_counts_ignore_user_prefix_settings(self) -> None:
        self.write("src/a.py", "a = 1\nb = 2\nc = 3\n")
        self.write("src/b.py", "d = 4\n")
        self.stage("src/a.py", "src/b.py")
        for key in ("diff.mnemonicPrefix", "diff.noprefix"):
            with self.subTest(setting=key):
                git(self.repo, "config", key, "true")
                analysis = collect_changes(self.client)
                counts = {f.path: f.insertions for f in analysis.files}
                self.assertEqual(counts, {"src/a.py": 3, "src/b.py": 1})
                self.assertIn("+++ b/src/b.py", self.render())
                git(self.repo, "config", "--unset", key)


class TestStagedRendering(StagedRepoTestCase):
    def test_per_file_cap(self) -> None:
        self.write("data.py", "".join(f"Line {i}\n" for i in range(600)))
        self.stage("data.py")
        lines = self.render(max_lines_per_file=10).splitlines()
        self.assertIn("+Line 9", lines)
        self.assertNotIn("+Line 10", lines)
        self.assertIn(TRUNCATION_MARKER, lines)

    def test_line_width_cap(self) -> None:
        long_line = "".join(chr(ord("a") + i % 26) for i in range(400))
        self.write("wide.py", long_line + "\n")
        self.stage("wide.py")
        text = self.render(max_line_width=100)
        self.assertIn("+" + long_line[:100] + ELLIPSIS + "\n", text)
        self.assertNotIn(long_line, text)

    def test_rendering_is_repeatable(self) -> None:
        self.write("src/a.py", "print('a')\n")
        self.write("docs/b.md", "b\n" * 40)
        self.stage("src/a.py", "docs/b.md")
        first = self.render(max_lines_per_file=10, max_line_width=20)
        second = self.render(max_lines_per_file=10, max_line_width=20)
        self.assertEqual(first, second)

    def test_nothing_staged(self) -> None:
        self.write("untracked.py", "x = 1\n")
        with self.assertRaises(NothingStagedError):
            self.render()


class TestGitClientAgainstRepository(StagedRepoTestCase):
    def test_commit_and_history(self) -> None:
        self.assertEqual(self.client.recent_commits(5), "")
        self.write("a.txt", "a\n")
        self.stage("a.txt")
        oid = self.client.commit("docs: add a\n\nFirst file.")
        self.assertGreaterEqual(len(oid), 7)
        self.assertTrue(self.client.has_head())
        self.assertEqual(self.client.recent_commits(5), f"{oid} docs: add a")

    def test_unstaged_changes(self) -> None:
        self.write("a.txt", "a\n")
        self.stage("a.txt")
        self.client.commit("docs: add a")
        self.assertFalse(self.client.has_unstaged_changes())
        self.write("a.txt", "changed\n")
        self.assertTrue(self.client.has_unstaged_changes())

    def test_find_repo_root(self) -> None:
        nested = self.repo / "x" / "y"
        nested.mkdir(parents=True)
        self.assertEqual(GitClient.find_repo_root(nested), self.repo.resolve())


if __name__ == "__main__":
    unittest.main()
