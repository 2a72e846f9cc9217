"""
Language model integration for commit_drafter.

This package contains the provider clients (:mod:`.providers`), prompt
construction (:mod:`.prompts`), reply parsing (:mod:`.response_parser`)
and the :class:`CommitMessageGenerator` tying them together.
"""

from .providers import (  # noqa: F401
    PROVIDERS,
    LLMError,
    ProviderClient,
    create_client,
    default_model,
)
from .commit_message_generator import CommitMessageGenerator, GenerationResult  # noqa: F401
