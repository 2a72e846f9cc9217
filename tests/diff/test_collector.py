import unittest
from pathlib import Path

from commit_drafter.analysis.categorizer import FileCategory
from commit_drafter.analysis.models import FileOperation
from commit_drafter.diff.collector import collect_changes, is_lock_file
from commit_drafter.vcs.git_client import Delta, DiffStats, GitClient


class FakeClient(GitClient):
    def __init__(self, deltas, patch_text: str, stats: DiffStats = DiffStats()) -> None:
        super().__init__(Path("/repo"))
        self.deltas = deltas
        self.patch_text = patch_text
        self.stats = stats
        self.stats_calls = 0

    def list_staged_deltas(self):
        return list(self.deltas)

    def staged_patch(self, context_lines: int) -> str:
        assert context_lines == 0
        return self.patch_text

    def staged_stats(self) -> DiffStats:
        self.stats_calls += 1
        return self.stats


def section(path: str, added: int, removed: int) -> str:
    body = "".join("+a\n" for _ in range(added)) + "".join("-r\n" for _ in range(removed))
    return (
        f"diff --git a/{path} b/{path}\n"
        f"--- a/{path}\n"
        f"+++ b/{path}\n"
        f"@@ -1,{removed} +1,{added} @@\n"
        f"{body}"
    )


class TestCollectChanges(unittest.TestCase):
    def test_counts_and_classification(self) -> None:
        client = FakeClient(
            [Delta("M", "src/app.py"), Delta("A", "docs/intro.md")],
            section("src/app.py", 3, 2) + section("docs/intro.md", 10, 0),
        )
        analysis = collect_changes(client)
        self.assertEqual([f.path for f in analysis.files], ["src/app.py", "docs/intro.md"])
        app, intro = analysis.files
        self.assertEqual((app.insertions, app.deletions, app.operation), (3, 2, FileOperation.MODIFIED))
        self.assertEqual((intro.insertions, intro.deletions, intro.operation), (10, 0, FileOperation.ADDED))
        self.assertEqual(intro.category, FileCategory.DOCS)
        self.assertEqual((analysis.total_insertions, analysis.total_deletions), (13, 2))
        self.assertEqual(analysis.stats_for(FileCategory.SOURCE).modified, 1)
        self.assertTrue(analysis.suggested_type.is_unknown)
        self.assertEqual(client.stats_calls, 0)

    def test_lock_files_are_excluded_everywhere(self) -> None:
        client = FakeClient(
            [Delta("M", "Cargo.lock"), Delta("M", "README.md")],
            section("Cargo.lock", 100, 100) + section("README.md", 1, 1),
        )
        analysis = collect_changes(client)
        self.assertEqual([f.path for f in analysis.files], ["README.md"])
        self.assertEqual((analysis.total_insertions, analysis.total_deletions), (1, 1))
        self.assertEqual(str(analysis.suggested_type), "Strong(docs)")

    def test_renames_keep_old_path(self) -> None:
        client = FakeClient(
            [Delta("R", "src/new.py", old_path="src/old.py"), Delta("C", "src/copy.py", old_path="src/orig.py")],
            section("src/new.py", 1, 0) + section("src/copy.py", 2, 0),
        )
        analysis = collect_changes(client)
        renamed, copied = analysis.files
        self.assertEqual(renamed.operation, FileOperation.RENAMED)
        self.assertEqual(renamed.old_path, "src/old.py")
        self.assertEqual(copied.operation, FileOperation.COPIED)
        self.assertEqual(copied.old_path, "src/orig.py")

    def test_unknown_status_is_modified(self) -> None:
        client = FakeClient([Delta("T", "run.sh")], section("run.sh", 1, 0))
        self.assertEqual(collect_changes(client).files[0].operation, FileOperation.MODIFIED)

    def test_zero_count_files_use_averaged_totals(self) -> None:
        client = FakeClient(
            [Delta("A", "img/logo.bin"), Delta("A", "img/icon.bin"), Delta("M", "poetry.lock")],
            "diff --git a/img/logo.bin b/img/logo.bin\nBinary files differ\n",
            DiffStats(files_changed=3, insertions=10, deletions=7),
        )
        analysis = collect_changes(client)
        # divided by all three deltas, the lock file included
        self.assertEqual([(f.insertions, f.deletions) for f in analysis.files], [(3, 2), (3, 2)])
        self.assertEqual((analysis.total_insertions, analysis.total_deletions), (6, 4))
        self.assertEqual(client.stats_calls, 1)

    def test_empty_change_set(self) -> None:
        analysis = collect_changes(FakeClient([], ""))
        self.assertEqual(analysis.files, [])
        self.assertEqual(analysis.total_files, 0)

    def test_is_lock_file(self) -> None:
        self.assertTrue(is_lock_file("Cargo.lock"))
        self.assertTrue(is_lock_file("sub/Poetry.LOCK"))
        self.assertFalse(is_lock_file("package-lock.json"))
        self.assertFalse(is_lock_file("lock.py"))


if __name__ == "__main__":
    unittest.main()
