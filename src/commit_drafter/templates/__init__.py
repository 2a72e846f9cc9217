"""
Commit message templates rendered with Jinja2.

See :mod:`commit_drafter.templates.manager`.
"""

from .manager import (  # noqa: F401
    BUILTIN_TEMPLATES,
    DEFAULT_TEMPLATE,
    CommitTemplate,
    CommitType,
    TemplateError,
    TemplateManager,
)
