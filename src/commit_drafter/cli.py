"""
Command line interface for the commit_drafter tool.

This module defines the ``main`` function which is used as the entry
point when executing the ``cmt`` command. It orchestrates configuration
loading, reading and analysing the staged change-set, generating a
commit message with the configured LLM provider, rendering it through a
template and, after confirmation, creating the commit. Exit codes are
listed below and mirrored in the README.
"""

from __future__ import annotations

import contextlib
import logging
import time
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from commit_drafter import __version__
from commit_drafter.config.loader import (
    AVAILABLE_PROVIDERS,
    Config,
    ConfigError,
    create_config_file,
    load_config,
    load_provider_settings,
)
from commit_drafter.diff.collector import collect_changes
from commit_drafter.diff.renderer import DiffStats, get_staged_changes
from commit_drafter.llm.commit_message_generator import CommitMessageGenerator, GenerationResult
from commit_drafter.llm.providers import LLMError, create_client, default_model
from commit_drafter.pricing import PricingCache, calculate_cost, format_cost
from commit_drafter.templates.manager import DEFAULT_TEMPLATE, TemplateError, TemplateManager
from commit_drafter.vcs.git_client import CommitError, GitClient, GitError, NothingStagedError

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_NO_REPO = 3
EXIT_NO_CHANGES = 4
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_LLM_FAILURE = 7
EXIT_COMMIT_CANCELLED = 8

# Recent commit history is dropped for large diffs and trimmed for medium ones.
MEDIUM_DIFF_FILES = 25
MEDIUM_DIFF_LINES = 2000
MEDIUM_DIFF_RECENT_COMMITS = 3

PRICING_WAIT_SECS = 0.5


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Simple progress indicator for user feedback."""

    def __init__(self, message: str, show_spinner: bool = True):
        self.message = message
        self.show_spinner = show_spinner
        self.spinner_chars = ['⠋', '⠙', '⠹', '⠸', '⠼', '⠴', '⠦', '⠧', '⠇', '⠏']
        self.start_time = None
        self.elapsed = 0.0

    def __enter__(self):
        self.start_time = time.time()
        if self.show_spinner:
            click.echo(f"{self.spinner_chars[0]} {self.message}...", nl=False)
        else:
            click.echo(f"→ {self.message}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.time() - self.start_time
        if self.show_spinner:
            click.echo(f"\r✓ {self.message} (took {self.elapsed:.1f}s)")
        else:
            click.echo(f"  ✓ Done ({self.elapsed:.1f}s)")
        return False


def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=False)


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✓ {message}", err=False)


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    prefix = "  " * indent
    click.echo(f"{prefix}⚠ {message}", err=True)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


def print_diff_stats(stats: DiffStats):
    click.echo(click.style("Diff Statistics:", fg="blue", bold=True))
    click.echo(f"  Files changed: {stats.files_changed}")
    click.echo(f"  Insertions: {stats.insertions}")
    click.echo(f"  Deletions: {stats.deletions}")
    if stats.is_large:
        print_info("Large change-set: context and lines per file were reduced", indent=1)


# ---------------------------------------------------------------------------
# Core functionality
# ---------------------------------------------------------------------------

def recent_commit_budget(stats: DiffStats, config: Config) -> int:
    """Return how many recent commits to include in the prompt."""
    if not config.include_recent_commits or stats.is_large:
        return 0
    if stats.files_changed > MEDIUM_DIFF_FILES or stats.insertions + stats.deletions > MEDIUM_DIFF_LINES:
        return min(config.recent_commits_count, MEDIUM_DIFF_RECENT_COMMITS)
    return config.recent_commits_count


def resolve_config(config_path: Optional[Path], cli_config: Config) -> Config:
    """Load file configuration and merge the command line values on top.

    An explicitly given file must be valid; auto-discovered files that
    fail to load only produce a warning.
    """
    if config_path is not None:
        config = Config().merge(Config.from_file(config_path))
    else:
        try:
            config = load_config()
        except ConfigError as exc:
            print_warning(f"Failed to load configuration: {exc}")
            config = Config()
    return config.merge(cli_config)


def prompt_commit_action() -> str:
    """Ask what to do with the generated message; returns y, n or h."""
    try:
        answer = click.prompt(
            click.style("[y]es to commit, [n]o to cancel, [h]int to regenerate", fg="cyan"),
            default="",
            show_default=False,
        )
    except click.Abort:
        return "n"
    answer = answer.strip().lower()
    if answer in ("y", "yes"):
        return "y"
    if answer in ("h", "hint"):
        return "h"
    return "n"


def handle_template_commands(
    list_templates: bool,
    show_template: Optional[str],
    create_template: Optional[str],
    template_content: Optional[str],
) -> None:
    manager = TemplateManager()
    if list_templates:
        click.echo(click.style("Available templates:", fg="green", bold=True))
        for name in manager.list_templates():
            click.echo(f"- {name}")
        raise click.exceptions.Exit(EXIT_SUCCESS)

    if show_template:
        content = manager.get_template(show_template)
        click.echo(click.style(f"Template '{show_template}':", fg="green", bold=True))
        click.echo(content)
        raise click.exceptions.Exit(EXIT_SUCCESS)

    if create_template:
        if template_content is None:
            print_error("--template-content is required when creating a template")
            click.echo(
                'Example: cmt --create-template my-template '
                '--template-content "{{ type }}: {{ subject }}"',
                err=True,
            )
            raise click.exceptions.Exit(EXIT_INVALID_USAGE)
        path = manager.save_template(create_template, template_content)
        print_success(f"Template '{create_template}' created successfully at {path}")
        click.echo(f"You can use it with: cmt --template {create_template}")
        raise click.exceptions.Exit(EXIT_SUCCESS)


def list_provider_models(config: Config) -> None:
    settings = load_provider_settings()
    provider = config.provider.lower()
    client = create_client(provider, settings[provider], config.model)
    models = sorted(client.list_models())
    click.echo(click.style(f"Available models for {provider}:", fg="green", bold=True))
    default = default_model(provider)
    for model in models:
        if model == default:
            click.echo(f"- {click.style(model, fg='cyan')} (default)")
        else:
            click.echo(f"- {model}")


@click.command()
@click.option("-m", "--message-only", is_flag=True, help="Only print the generated message, without formatting.")
@click.option("--no-diff-stats", is_flag=True, help="Do not show diff statistics.")
@click.option("--show-raw-diff", is_flag=True, help="Show the diff and analysis sent to the model.")
@click.option("--context-lines", type=click.IntRange(min=0), default=Config.context_lines, show_default=True,
              help="Context lines around each change.")
@click.option("--max-lines-per-file", type=click.IntRange(min=1), default=Config.max_lines_per_file,
              show_default=True, help="Maximum diff lines sent per file.")
@click.option("--max-line-width", type=click.IntRange(min=1), default=Config.max_line_width, show_default=True,
              help="Maximum width of a diff line.")
@click.option("--provider", type=click.Choice(AVAILABLE_PROVIDERS, case_sensitive=False),
              default=Config.provider, show_default=True, help="LLM provider.")
@click.option("--model", default=None, help="Model to use (defaults to the provider's default model).")
@click.option("-t", "--temperature", type=click.FloatRange(0.0, 2.0), default=None,
              help="Sampling temperature (0.0 to 2.0).")
@click.option("--hint", default=None, help="Extra context for the model, e.g. why the change was made.")
@click.option("--template", "template_name", default=None, help="Template used to format the message.")
@click.option("--no-recent-commits", is_flag=True, help="Do not include recent commits in the prompt.")
@click.option("--recent-commits-count", type=click.IntRange(min=0), default=Config.recent_commits_count,
              show_default=True, help="Number of recent commits to include.")
@click.option("--init-config", is_flag=True, help="Write an example configuration file and exit.")
@click.option("--config-path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Configuration file to create with --init-config, or to load instead of the defaults.")
@click.option("--list-templates", is_flag=True, help="List available templates and exit.")
@click.option("--show-template", default=None, metavar="NAME", help="Print a template and exit.")
@click.option("--create-template", default=None, metavar="NAME", help="Create a custom template and exit.")
@click.option("--template-content", default=None, help="Content for --create-template.")
@click.option("--list-models", is_flag=True, help="List the provider's models and exit.")
@click.option("-y", "--yes", "yes", is_flag=True, help="Commit without asking for confirmation.")
@click.option("--no-commit", is_flag=True, help="Only show the message, do not offer to commit.")
@click.option("--no-verify", is_flag=True, help="Skip pre-commit and commit-msg hooks.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="cmt")
def main(
    message_only: bool,
    no_diff_stats: bool,
    show_raw_diff: bool,
    context_lines: int,
    max_lines_per_file: int,
    max_line_width: int,
    provider: str,
    model: Optional[str],
    temperature: Optional[float],
    hint: Optional[str],
    template_name: Optional[str],
    no_recent_commits: bool,
    recent_commits_count: int,
    init_config: bool,
    config_path: Optional[Path],
    list_templates: bool,
    show_template: Optional[str],
    create_template: Optional[str],
    template_content: Optional[str],
    list_models: bool,
    yes: bool,
    no_commit: bool,
    no_verify: bool,
    verbose: bool,
) -> None:
    """Draft a commit message for the staged changes with an LLM."""
    # Use force=True to ensure handlers are reconfigured on subsequent
    # invocations (important for tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )
    load_dotenv()

    try:
        if init_config:
            try:
                path = create_config_file(config_path)
            except ConfigError as exc:
                print_error(f"Error creating configuration file: {exc}")
                raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
            print_success(f"Configuration file created: {path}")
            raise click.exceptions.Exit(EXIT_SUCCESS)

        try:
            handle_template_commands(list_templates, show_template, create_template, template_content)
        except TemplateError as exc:
            print_error(str(exc))
            raise click.exceptions.Exit(EXIT_INVALID_USAGE)

        cli_config = Config(
            message_only=message_only,
            no_diff_stats=no_diff_stats,
            show_raw_diff=show_raw_diff,
            context_lines=context_lines,
            max_lines_per_file=max_lines_per_file,
            max_line_width=max_line_width,
            provider=provider.lower(),
            model=model,
            temperature=temperature,
            include_recent_commits=not no_recent_commits,
            recent_commits_count=recent_commits_count,
            template=template_name,
            hint=hint,
        )
        try:
            config = resolve_config(config_path, cli_config)
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
        logger.debug("Effective configuration: %s", config)

        if list_models:
            try:
                list_provider_models(config)
            except LLMError as exc:
                print_error(f"Error fetching models for {config.provider}: {exc}")
                raise click.exceptions.Exit(EXIT_LLM_FAILURE)
            raise click.exceptions.Exit(EXIT_SUCCESS)

        run(config, yes=yes, no_commit=no_commit, no_verify=no_verify)
        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        # Click uses its own Exit exception; re-raise to let Click handle it
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        raise click.exceptions.Exit(EXIT_GENERIC_ERROR)


def run(config: Config, yes: bool = False, no_commit: bool = False, no_verify: bool = False) -> None:
    """Generate a message for the staged changes and optionally commit it."""
    quiet = config.message_only

    repo_root = GitClient.find_repo_root(Path.cwd())
    if repo_root is None:
        print_error("Not inside a Git repository.")
        raise click.exceptions.Exit(EXIT_NO_REPO)
    client = GitClient(repo_root)

    try:
        staged = get_staged_changes(
            client, config.context_lines, config.max_lines_per_file, config.max_line_width
        )
    except NothingStagedError as exc:
        print_error(str(exc))
        if not quiet:
            print_info("Stage files with 'git add' first", indent=1)
        raise click.exceptions.Exit(EXIT_NO_CHANGES)
    except GitError as exc:
        print_error(f"Git error: {exc}")
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)

    try:
        if client.has_unstaged_changes() and not quiet:
            print_warning("There are unstaged changes; they will not be part of this commit.")
    except GitError as exc:
        logger.debug("Could not check for unstaged changes: %s", exc)

    recent_count = recent_commit_budget(staged.stats, config)
    if config.include_recent_commits and staged.stats.is_large and not quiet:
        print_warning("Skipping recent commits for this large diff to reduce prompt size.")
    recent_commits = ""
    if recent_count:
        try:
            recent_commits = client.recent_commits(recent_count)
        except GitError as exc:
            print_warning(f"Failed to get recent commits: {exc}")

    try:
        analysis = collect_changes(client)
    except GitError as exc:
        print_error(f"Failed to analyze diff: {exc}")
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)

    if config.show_raw_diff:
        click.echo(click.style("Raw diff:", fg="cyan", bold=True))
        click.echo(staged.diff_text)
        click.echo(click.style("Diff analysis:", fg="cyan", bold=True))
        click.echo(analysis.summary())

    try:
        llm_client = create_client(
            config.provider,
            load_provider_settings()[config.provider],
            config.model,
            config.temperature,
        )
    except LLMError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(EXIT_LLM_FAILURE)

    templates = TemplateManager()
    template_name = config.template or DEFAULT_TEMPLATE
    generator = CommitMessageGenerator(llm_client)
    pricing = PricingCache() if not quiet else None

    if not quiet and not config.no_diff_stats:
        print_diff_stats(staged.stats)

    def _generate(hint: Optional[str]) -> tuple:
        progress = (
            contextlib.nullcontext()
            if quiet
            else ProgressIndicator(f"Generating commit message with {llm_client.model}")
        )
        started = time.time()
        with progress:
            result: GenerationResult = generator.generate(staged.diff_text, analysis, recent_commits, hint)
        if result.used_fallback and not quiet:
            print_warning("The model did not return a usable message; using one derived from the diff analysis.")
        try:
            message = templates.render(template_name, result.template)
        except TemplateError as exc:
            print_error(f"Template error: {exc}")
            raise click.exceptions.Exit(EXIT_INVALID_USAGE)
        return message, time.time() - started

    message, elapsed = _generate(config.hint)

    if quiet:
        click.echo(message)
        return

    click.echo(click.style("Commit message:", fg="green", bold=True))
    click.echo(message)

    # rough estimate: ~4 characters per token
    input_tokens = (len(staged.diff_text) + len(recent_commits)) // 4
    output_tokens = len(message) // 4
    cost = ""
    if pricing is not None:
        pricing.wait_get(PRICING_WAIT_SECS)
        model_pricing = pricing.get_model_pricing(config.provider, llm_client.model)
        if model_pricing is not None:
            estimate = calculate_cost(model_pricing, input_tokens, output_tokens)
            if estimate is not None:
                cost = f", {format_cost(estimate)}"
    click.echo(click.style(f"~{input_tokens + output_tokens} tokens, {elapsed:.1f}s{cost}", dim=True))

    if no_commit:
        return

    while True:
        action = "y" if yes else prompt_commit_action()
        if action == "y":
            try:
                oid = client.commit(message, no_verify=no_verify)
            except CommitError as exc:
                if exc.kind in ("pre-commit", "commit-msg"):
                    print_error(f"{exc.kind} hook failed:")
                    click.echo(str(exc), err=True)
                    print_info("Fix the reported issues or rerun with --no-verify", indent=1)
                else:
                    print_error(f"Error creating commit: {exc}")
                raise click.exceptions.Exit(EXIT_VCS_FAILURE)
            print_success(f"Created commit: {oid}")
            return
        if action == "n":
            print_warning("Commit cancelled.")
            raise click.exceptions.Exit(EXIT_COMMIT_CANCELLED)

        try:
            new_hint = click.prompt(click.style("Enter hint", fg="cyan"), default="", show_default=False).strip()
        except click.Abort:
            new_hint = ""
        if not new_hint:
            continue
        message, elapsed = _generate(new_hint)
        click.echo("")
        click.echo(click.style("Commit message:", fg="green", bold=True))
        click.echo(message)


if __name__ == "__main__":  # pragma: no cover
    main()
