"""
Configuration loader for commit_drafter.

Settings are layered, later sources winning over earlier ones:

1. built-in defaults (:class:`Config`),
2. the global file ``~/.config/cmt/config.toml``,
3. the project file ``.cmt.toml``, found by walking up from the working
   directory,
4. command line options (merged in by the CLI).

Files may be TOML or JSON, chosen by extension. A malformed file, an
unknown extension or a value of the wrong type raises
:class:`ConfigError`.

Provider credentials never live in these files; they are read from the
environment once by :func:`load_provider_settings`.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings in environments
# where logging is not configured. Propagation stays enabled so that the
# CLI's logging configuration applies.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


PROJECT_CONFIG_FILENAME = ".cmt.toml"
GLOBAL_CONFIG_DIRNAME = Path(".config") / "cmt"
GLOBAL_CONFIG_FILENAME = "config.toml"

AVAILABLE_PROVIDERS = ("claude", "openai", "gemini", "ollama")
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"


class ConfigError(Exception):
    """Raised when a configuration file is unreadable or invalid."""

    pass


@dataclass
class Config:
    """Effective settings for one invocation."""

    message_only: bool = False
    no_diff_stats: bool = False
    show_raw_diff: bool = False
    context_lines: int = 20
    max_lines_per_file: int = 2000
    max_line_width: int = 500
    provider: str = "gemini"
    model: Optional[str] = None
    temperature: Optional[float] = None
    include_recent_commits: bool = True
    recent_commits_count: int = 10
    template: Optional[str] = None
    hint: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], source: str = "<dict>") -> "Config":
        """Build a config from a mapping, validating value types.

        Unknown keys are ignored with a warning.
        """
        known = {f.name: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown configuration key '%s' in %s", key, source)
                continue
            values[key] = _check_type(key, value, _FIELD_TYPES[key], source)
        return cls(**values)

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load a configuration file (``.toml`` or ``.json``)."""
        suffix = path.suffix.lower()
        try:
            if suffix == ".toml":
                with open(path, "rb") as handle:
                    data = tomllib.load(handle)
            elif suffix == ".json":
                data = json.loads(path.read_text(encoding="utf-8"))
            else:
                raise ConfigError(f"Unsupported file format: {path.name}")
        except (OSError, tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Failed to parse {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a table/object at the top level")
        logger.debug("Loaded configuration from %s", path)
        return cls.from_dict(data, source=str(path))

    def merge(self, other: "Config") -> "Config":
        """Copy every value of ``other`` that differs from the default.

        A value explicitly set back to its default in ``other`` therefore
        does not override ``self``.
        """
        defaults = Config()
        for f in fields(self):
            value = getattr(other, f.name)
            if value != getattr(defaults, f.name):
                setattr(self, f.name, value)
        return self


_FIELD_TYPES = {
    "message_only": bool,
    "no_diff_stats": bool,
    "show_raw_diff": bool,
    "context_lines": int,
    "max_lines_per_file": int,
    "max_line_width": int,
    "provider": str,
    "model": (str, type(None)),
    "temperature": (float, int, type(None)),
    "include_recent_commits": bool,
    "recent_commits_count": int,
    "template": (str, type(None)),
    "hint": (str, type(None)),
}


def _check_type(key: str, value: Any, expected: Any, source: str) -> Any:
    # bool is an int subclass, reject it for numeric fields
    if isinstance(value, bool) and expected is not bool:
        raise ConfigError(f"'{key}' in {source} has an invalid type")
    if not isinstance(value, expected):
        raise ConfigError(f"'{key}' in {source} has an invalid type")
    if key == "temperature" and value is not None:
        return float(value)
    if key == "provider" and value.lower() not in AVAILABLE_PROVIDERS:
        raise ConfigError(
            f"Unknown provider '{value}' in {source}. Options: {', '.join(AVAILABLE_PROVIDERS)}"
        )
    return value


def global_config_file(home: Optional[Path] = None) -> Path:
    return (home or Path.home()) / GLOBAL_CONFIG_DIRNAME / GLOBAL_CONFIG_FILENAME


def find_project_config(start: Optional[Path] = None) -> Optional[Path]:
    """Walk up from ``start`` looking for ``.cmt.toml``."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / PROJECT_CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def load_config(start: Optional[Path] = None, home: Optional[Path] = None) -> Config:
    """Load defaults, then the global file, then the project file.

    Raises
    ------
    ConfigError
        If one of the discovered files is invalid.
    """
    config = Config()
    global_path = global_config_file(home)
    if global_path.is_file():
        config.merge(Config.from_file(global_path))
    project_path = find_project_config(start)
    if project_path is not None:
        config.merge(Config.from_file(project_path))
    return config


def example_config() -> str:
    """Return the commented example written by ``--init-config``."""
    defaults = Config()

    def _toml_bool(value: bool) -> str:
        return "true" if value else "false"

    return (
        "# cmt configuration file\n"
        "\n"
        "# General options\n"
        f"message_only = {_toml_bool(defaults.message_only)}\n"
        f"no_diff_stats = {_toml_bool(defaults.no_diff_stats)}\n"
        f"show_raw_diff = {_toml_bool(defaults.show_raw_diff)}\n"
        f"context_lines = {defaults.context_lines}\n"
        f"max_lines_per_file = {defaults.max_lines_per_file}\n"
        f"max_line_width = {defaults.max_line_width}\n"
        "\n"
        "# AI provider options\n"
        f'provider = "{defaults.provider}"  # Options: {", ".join(AVAILABLE_PROVIDERS)}\n'
        '# model = "gemini-3-flash-preview"  # Uncomment to set a specific model\n'
        "# temperature = 0.3  # Uncomment to set a specific temperature\n"
        "\n"
        "# Git options\n"
        f"include_recent_commits = {_toml_bool(defaults.include_recent_commits)}\n"
        f"recent_commits_count = {defaults.recent_commits_count}\n"
        "\n"
        "# Template options\n"
        '# template = "conventional"  # Uncomment to use a specific template\n'
        "\n"
        "# You can add a default hint that will be used for all commits\n"
        '# hint = "Focus on the technical details"\n'
    )


def create_config_file(path: Optional[Path] = None) -> Path:
    """Write :func:`example_config` to ``path`` (default ``./.cmt.toml``).

    Raises
    ------
    ConfigError
        If the file already exists or cannot be written.
    """
    config_path = Path(path) if path is not None else Path(PROJECT_CONFIG_FILENAME)
    if config_path.exists():
        raise ConfigError(f"Configuration file already exists at {config_path}")
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(example_config(), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to write {config_path}: {exc}") from exc
    return config_path


@dataclass(frozen=True)
class ProviderSettings:
    """Credentials and endpoint for one provider."""

    api_key: Optional[str] = None
    base_url: Optional[str] = None


def load_provider_settings(environ: Optional[Mapping[str, str]] = None) -> Dict[str, ProviderSettings]:
    """Read provider credentials from the environment.

    Parameters
    ----------
    environ : Mapping[str, str], optional
        Defaults to ``os.environ``. ``.env`` files are loaded into the
        process environment by the CLI before this is called.
    """
    env = os.environ if environ is None else environ

    def _get(name: str) -> Optional[str]:
        value = env.get(name)
        return value.strip() if value and value.strip() else None

    return {
        "claude": ProviderSettings(_get("ANTHROPIC_API_KEY"), _get("ANTHROPIC_API_BASE")),
        "openai": ProviderSettings(_get("OPENAI_API_KEY"), _get("OPENAI_API_BASE")),
        "gemini": ProviderSettings(
            _get("GEMINI_API_KEY") or _get("GOOGLE_API_KEY"),
            _get("GEMINI_API_BASE"),
        ),
        "ollama": ProviderSettings(None, _get("OLLAMA_API_BASE") or DEFAULT_OLLAMA_BASE_URL),
    }
