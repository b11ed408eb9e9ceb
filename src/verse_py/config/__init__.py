"""Configuration management for verse-py."""

from __future__ import annotations

from verse_py.config.loader import find_config_file, load_config
from verse_py.config.models import (
    DEFAULT_COMMIT_TYPES,
    ChangelogConfig,
    DependencyRules,
    GitConfig,
    VerseConfig,
    VersionConfig,
)
from verse_py.config.validator import ConfigurationValidator, validate_config

__all__ = [
    "DEFAULT_COMMIT_TYPES",
    "ChangelogConfig",
    "ConfigurationValidator",
    "DependencyRules",
    "GitConfig",
    "VerseConfig",
    "VersionConfig",
    "find_config_file",
    "load_config",
    "validate_config",
]
