"""Configuration discovery and loading.

Search order, starting at the project directory and walking up to the
filesystem root:

1. ``verse.toml``
2. ``.verse.json``
3. ``pyproject.toml`` with a ``[tool.verse]`` table

User values are deep-merged over the defaults, validated, and parsed into a
:class:`VerseConfig`.
"""

from __future__ import annotations

import json
import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from verse_py.config.models import VerseConfig
from verse_py.config.validator import ConfigurationValidator, normalize_keys
from verse_py.exceptions import ConfigError, ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("verse.toml", ".verse.json")
PYPROJECT = "pyproject.toml"
TOOL_KEY = "verse"


def load_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def load_json(path: Path) -> dict[str, Any]:
    """Read a JSON object from a file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigError: If the file is not a JSON object
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}")
    return data


def extract_verse_config(pyproject: Mapping[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.verse]`` table, or an empty dict."""
    return dict(pyproject.get("tool", {}).get(TOOL_KEY, {}))


def read_config_file(path: Path) -> dict[str, Any]:
    """Read the verse settings held by ``path``, whatever its format."""
    if path.suffix == ".json":
        return load_json(path)
    data = load_toml(path)
    if path.name == PYPROJECT:
        return extract_verse_config(data)
    return data


def find_config_file(start: Path | None = None) -> Path | None:
    """Find the nearest configuration file at or above ``start``."""
    current = (start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent

    for directory in (current, *current.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate

        pyproject = directory / PYPROJECT
        if pyproject.is_file() and extract_verse_config(load_toml(pyproject)):
            return pyproject

    return None


def merge_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into ``base``.

    Nested tables merge key by key; any other value, lists included,
    replaces the base value.
    """
    merged = dict(base)
    for key, value in override.items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config(existing, value)
        else:
            merged[key] = value
    return merged


def load_config(
    project_path: Path | None = None,
    config_path: Path | None = None,
    validator: ConfigurationValidator | None = None,
) -> VerseConfig:
    """Load, merge, and validate the configuration for a project.

    Args:
        project_path: Directory to start searching from (defaults to cwd)
        config_path: Explicit configuration file; relative paths are taken
            from ``project_path``. Discovery is used if it does not exist.
        validator: Validator to run on the merged mapping

    Returns:
        The effective configuration; defaults when no file is found

    Raises:
        ConfigError: If a configuration file cannot be read
        ConfigValidationError: If the configuration is invalid
    """
    root = project_path or Path.cwd()
    source: Path | None = None

    if config_path is not None:
        candidate = config_path if config_path.is_absolute() else root / config_path
        if candidate.is_file():
            source = candidate
        else:
            logger.info(
                "Specified config file not found at %s, searching for config files...",
                config_path,
            )

    if source is None:
        source = find_config_file(root)

    if source is None:
        logger.info("No configuration found, using defaults")
        return VerseConfig()

    user_config = normalize_keys(read_config_file(source))
    logger.info("Configuration loaded from %s", source)

    defaults = VerseConfig().model_dump(mode="json")
    # Commit type mappings merge with the defaults key by key.
    merged = merge_config(defaults, user_config)

    (validator or ConfigurationValidator()).validate(merged)

    try:
        return VerseConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration in {source}:\n{e}") from e
