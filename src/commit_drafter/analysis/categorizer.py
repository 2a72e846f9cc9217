"""
Path based file categorization.

Every changed path is assigned exactly one :class:`FileCategory`. The
rules only look at the path string, the file name and the extension, so
the function is pure and needs no repository access. Rules are evaluated
in a fixed order and the first match wins:

    ci > test > docs > build > config > source > other
"""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath


class FileCategory(str, Enum):
    """Category of a changed file, in display order."""

    SOURCE = "source"
    TEST = "test"
    DOCS = "docs"
    CONFIG = "config"
    CI = "ci"
    BUILD = "build"
    OTHER = "other"


_CI_PREFIXES = (".github/", ".gitlab", ".circleci/", ".travis")
_CI_FILE_NAMES = {".travis.yml", "azure-pipelines.yml", "jenkinsfile"}
_CI_FRAGMENTS = ("ci/", "ci-")

_TEST_FRAGMENTS = ("/tests/", "/test/", "_test.", ".test.", "_spec.", ".spec.")
_TEST_PREFIXES = ("tests/", "test/")
_TEST_SUFFIXES = (
    "_test.rs",
    "_test.go",
    "_test.py",
    ".test.js",
    ".test.ts",
    ".spec.js",
    ".spec.ts",
)

_DOCS_PREFIXES = ("docs/", "doc/")
_DOCS_FRAGMENTS = ("/docs/", "/doc/")
_DOCS_FILE_NAMES = {
    "readme.md",
    "readme.rst",
    "readme.txt",
    "readme",
    "changelog.md",
    "changelog",
    "history.md",
    "contributing.md",
    "license",
    "license.md",
    "license.txt",
}
_DOCS_EXTENSIONS = {"md", "rst", "txt"}

_BUILD_FILE_NAMES = {
    "dockerfile",
    "makefile",
    "cmakelists.txt",
    "build.gradle",
    "build.gradle.kts",
    "pom.xml",
    "build.rs",
    "build.zig",
}

_CONFIG_FILE_NAMES = {
    "cargo.toml",
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pyproject.toml",
    "setup.py",
    "setup.cfg",
    "requirements.txt",
    "go.mod",
    "go.sum",
    "tsconfig.json",
    "eslintrc.json",
    ".eslintrc",
    ".prettierrc",
    "rustfmt.toml",
    ".rustfmt.toml",
    "clippy.toml",
    ".clippy.toml",
}
_CONFIG_EXTENSIONS = {"toml", "yaml", "yml", "json", "ini", "cfg"}

SOURCE_EXTENSIONS = frozenset(
    {
        "rs", "go", "py", "js", "ts", "tsx", "jsx", "java", "kt", "scala",
        "c", "cpp", "cc", "cxx", "h", "hpp", "cs", "rb", "php", "swift",
        "m", "mm", "zig", "nim", "lua", "r", "sql", "sh", "bash", "zsh",
        "fish", "ps1", "pl", "pm", "ex", "exs", "erl", "hrl", "hs", "ml",
        "mli", "fs", "fsi", "fsx", "clj", "cljs", "cljc", "elm", "vue",
        "svelte",
    }
)


def _split_path(path: str):
    lowered = path.lower()
    name = PurePosixPath(lowered).name
    suffix = PurePosixPath(lowered).suffix
    return lowered, name, suffix[1:] if suffix else ""


def categorize(path: str) -> FileCategory:
    """Return the category of ``path``.

    Parameters
    ----------
    path : str
        Repository relative path using forward slashes.

    Returns
    -------
    FileCategory
        The first category whose rule matches. Never raises.
    """
    path_str, file_name, extension = _split_path(path)

    if (
        path_str.startswith(_CI_PREFIXES)
        or file_name in _CI_FILE_NAMES
        or any(fragment in path_str for fragment in _CI_FRAGMENTS)
    ):
        return FileCategory.CI

    if (
        any(fragment in path_str for fragment in _TEST_FRAGMENTS)
        or path_str.startswith(_TEST_PREFIXES)
        or file_name.startswith("test_")
        or file_name.endswith(_TEST_SUFFIXES)
    ):
        return FileCategory.TEST

    if (
        path_str.startswith(_DOCS_PREFIXES)
        or any(fragment in path_str for fragment in _DOCS_FRAGMENTS)
        or file_name in _DOCS_FILE_NAMES
        or extension in _DOCS_EXTENSIONS
    ):
        return FileCategory.DOCS

    if (
        file_name in _BUILD_FILE_NAMES
        or file_name.endswith(".dockerfile")
        or "docker-compose" in path_str
    ):
        return FileCategory.BUILD

    if (
        file_name in _CONFIG_FILE_NAMES
        or file_name.startswith(".")
        or extension in _CONFIG_EXTENSIONS
    ):
        return FileCategory.CONFIG

    if extension in SOURCE_EXTENSIONS:
        return FileCategory.SOURCE

    return FileCategory.OTHER
