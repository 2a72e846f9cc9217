import unittest

from commit_drafter.analysis.categorizer import FileCategory, categorize


class TestCategorize(unittest.TestCase):
    def test_test_patterns_win_regardless_of_extension(self) -> None:
        for path in (
            "pkg/server_test.go",
            "src/parser_test.rs",
            "web/button.test.tsx",
            "web/button.spec.js",
            "lib/widget_spec.rb",
            "test_utils.py",
            "app/tests/helpers.py",
            "tests/fixtures/data.json",
            "docs/example.test.js",
        ):
            with self.subTest(path=path):
                self.assertEqual(categorize(path), FileCategory.TEST)

    def test_ci_precedes_config(self) -> None:
        # dotfile with a config extension, but under a CI directory
        self.assertEqual(categorize(".github/workflows/.release.yml"), FileCategory.CI)
        self.assertEqual(categorize(".github/dependabot.yml"), FileCategory.CI)
        self.assertEqual(categorize(".gitlab-ci.yml"), FileCategory.CI)
        self.assertEqual(categorize("Jenkinsfile"), FileCategory.CI)
        self.assertEqual(categorize("scripts/ci/deploy.sh"), FileCategory.CI)

    def test_docs(self) -> None:
        for path in ("README.md", "docs/guide.rst", "api/doc/index.html", "CHANGELOG", "LICENSE", "notes.txt"):
            with self.subTest(path=path):
                self.assertEqual(categorize(path), FileCategory.DOCS)
        # the .txt rule is checked before build file names
        self.assertEqual(categorize("CMakeLists.txt"), FileCategory.DOCS)

    def test_build(self) -> None:
        for path in ("Dockerfile", "Makefile", "build.rs", "deploy/app.dockerfile", "docker-compose.yml"):
            with self.subTest(path=path):
                self.assertEqual(categorize(path), FileCategory.BUILD)

    def test_config(self) -> None:
        for path in ("Cargo.toml", "package.json", ".gitignore", "config/settings.yaml", "setup.cfg", "go.mod"):
            with self.subTest(path=path):
                self.assertEqual(categorize(path), FileCategory.CONFIG)

    def test_source_and_other(self) -> None:
        self.assertEqual(categorize("src/main.rs"), FileCategory.SOURCE)
        self.assertEqual(categorize("app/models/user.py"), FileCategory.SOURCE)
        self.assertEqual(categorize("SRC/Main.RS"), FileCategory.SOURCE)
        self.assertEqual(categorize("assets/logo.png"), FileCategory.OTHER)
        self.assertEqual(categorize("LICENSE-THIRD-PARTY.bin"), FileCategory.OTHER)

    def test_declared_order(self) -> None:
        self.assertEqual(
            [category.value for category in FileCategory],
            ["source", "test", "docs", "config", "ci", "build", "other"],
        )


if __name__ == "__main__":
    unittest.main()
