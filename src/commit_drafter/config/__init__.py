"""
Configuration loading for commit_drafter.

Layered TOML/JSON configuration files and environment based provider
settings. See :mod:`commit_drafter.config.loader` for implementation
details.
"""

from .loader import (  # noqa: F401
    Config,
    ConfigError,
    ProviderSettings,
    create_config_file,
    load_config,
    load_provider_settings,
)
