"""
Commit message templates.

The LLM reply is parsed into a :class:`CommitTemplate`; the final commit
text is produced by rendering that data through a Jinja2 template. Three
templates are built in (``conventional``, ``simple`` and ``detailed``);
users can add their own as ``<name>.j2`` files in the template
directory, which shadow built-ins of the same name.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import jinja2


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEFAULT_TEMPLATE = "conventional"
TEMPLATE_SUFFIX = ".j2"

_TEMPLATE_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class TemplateError(Exception):
    """Raised when a template is missing, invalid or fails to render."""

    pass


class CommitType(str, Enum):
    FEAT = "feat"
    FIX = "fix"
    REFACTOR = "refactor"
    CHORE = "chore"
    DOCS = "docs"
    STYLE = "style"
    TEST = "test"
    BUILD = "build"
    CI = "ci"
    PERF = "perf"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


@dataclass
class CommitTemplate:
    """Structured commit message data."""

    type: str
    subject: str
    details: Optional[str] = None
    issues: Optional[str] = None
    breaking: Optional[str] = None
    scope: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


BUILTIN_TEMPLATES: Dict[str, str] = {
    "conventional": (
        "{{ type }}{% if scope %}({{ scope }}){% endif %}: {{ subject }}"
        "{% if details %}\n\n{{ details }}{% endif %}"
    ),
    "simple": "{{ subject }}{% if details %}\n\n{{ details }}{% endif %}",
    "detailed": (
        "{{ type }}{% if scope %}({{ scope }}){% endif %}: {{ subject }}"
        "{% if details %}\n\n{{ details }}{% endif %}"
        "{% if issues %}\n\nFixes: {{ issues }}{% endif %}"
        "{% if breaking %}\n\nBREAKING CHANGE: {{ breaking }}{% endif %}"
    ),
}


def default_template_dir() -> Path:
    return Path.home() / ".config" / "cmt" / "templates"


class TemplateManager:
    """Look up, store and render commit message templates.

    Parameters
    ----------
    template_dir : Path, optional
        Directory holding custom ``*.j2`` templates. Defaults to
        ``~/.config/cmt/templates``. It is only created when a template
        is saved.
    """

    def __init__(self, template_dir: Optional[Path] = None) -> None:
        self.template_dir = template_dir or default_template_dir()
        self.env = jinja2.Environment(autoescape=False, keep_trailing_newline=False)

    def _custom_path(self, name: str) -> Path:
        if not _TEMPLATE_NAME_RE.match(name):
            raise TemplateError(f"Invalid template name: {name!r}")
        return self.template_dir / f"{name}{TEMPLATE_SUFFIX}"

    def _custom_names(self) -> List[str]:
        if not self.template_dir.is_dir():
            return []
        return [path.stem for path in self.template_dir.glob(f"*{TEMPLATE_SUFFIX}") if path.is_file()]

    def list_templates(self) -> List[str]:
        """Return the names of all available templates, sorted."""
        return sorted(set(BUILTIN_TEMPLATES) | set(self._custom_names()))

    def get_template(self, name: str) -> str:
        """Return the source of template ``name``.

        Raises
        ------
        TemplateError
            If no template with that name exists.
        """
        path = self._custom_path(name)
        if path.is_file():
            try:
                return path.read_text(encoding="utf-8")
            except OSError as exc:
                raise TemplateError(f"IO error: {exc}") from exc
        if name in BUILTIN_TEMPLATES:
            return BUILTIN_TEMPLATES[name]
        raise TemplateError(f"Template not found: {name}")

    def save_template(self, name: str, content: str) -> Path:
        """Validate and store a custom template, returning its path."""
        path = self._custom_path(name)
        try:
            self.env.parse(content)
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateError(f"Invalid template syntax: {exc}") from exc
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise TemplateError(f"IO error: {exc}") from exc
        logger.debug("Saved template %s to %s", name, path)
        return path

    def delete_template(self, name: str) -> None:
        """Delete a custom template. Built-in templates cannot be deleted."""
        path = self._custom_path(name)
        if not path.is_file():
            if name in BUILTIN_TEMPLATES:
                raise TemplateError(f"Cannot delete built-in template: {name}")
            raise TemplateError(f"Template not found: {name}")
        try:
            path.unlink()
        except OSError as exc:
            raise TemplateError(f"IO error: {exc}") from exc

    def render(self, name: str, template: CommitTemplate) -> str:
        """Render ``template`` with the template called ``name``."""
        source = self.get_template(name)
        try:
            compiled = self.env.from_string(source)
            rendered = compiled.render(**template.to_dict())
        except jinja2.TemplateError as exc:
            raise TemplateError(f"Render error: {exc}") from exc
        # collapse runs of blank lines left by empty optional blocks
        rendered = re.sub(r"\n{3,}", "\n\n", rendered)
        return rendered.strip()
