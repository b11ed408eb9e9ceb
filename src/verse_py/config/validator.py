"""Fail-fast structural validation of verse-py configuration.

The validator runs on the merged configuration mapping before it is turned
into a :class:`~verse_py.config.models.VerseConfig`, so a typo in a config
file is reported with the offending key instead of a generic model error.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from verse_py.config.models import VerseConfig
from verse_py.exceptions import ConfigValidationError

VALID_BUMP_TYPES = frozenset({"major", "minor", "patch", "none", "ignore"})
"""Allowed for ``default_bump`` and ``commit_types`` values."""

VALID_DEPENDENCY_BUMP_TYPES = frozenset({"major", "minor", "patch", "none"})
"""Allowed for dependency rules; ``ignore`` only makes sense for commits."""

DEPENDENCY_RULE_FIELDS = (
    "on_major_of_dependency",
    "on_minor_of_dependency",
    "on_patch_of_dependency",
)

# Keys whose children are user data (commit type names, adapter ids) and
# must not be renamed.
_OPAQUE_KEYS = frozenset({"commit_types", "adapters"})

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_snake_case(key: str) -> str:
    """``onMajorOfDependency`` -> ``on_major_of_dependency``."""
    return _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()


def normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with structural keys in snake_case."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        name = to_snake_case(str(key))
        if name in _OPAQUE_KEYS and isinstance(value, Mapping):
            result[name] = dict(value)
        elif isinstance(value, Mapping):
            result[name] = normalize_keys(value)
        else:
            result[name] = value
    return result


def _is_valid(value: Any, allowed: frozenset[str]) -> bool:
    return isinstance(value, str) and value in allowed


class ConfigurationValidator:
    """Validates the bump-related parts of a configuration.

    Validation stops at the first problem found: configuration must be
    entirely valid before any commit or module is looked at.
    """

    def validate(self, config: VerseConfig | Mapping[str, Any]) -> None:
        """Validate ``config``.

        Args:
            config: A model instance or a raw (possibly camelCase) mapping

        Raises:
            ConfigValidationError: On the first invalid value
        """
        if isinstance(config, VerseConfig):
            data = config.model_dump(mode="json")
        else:
            data = normalize_keys(config)

        if "default_bump" in data:
            default_bump = data["default_bump"]
            if not _is_valid(default_bump, VALID_BUMP_TYPES):
                raise ConfigValidationError(f"Invalid default_bump: {default_bump!r}")

        commit_types = data.get("commit_types", {})
        if not isinstance(commit_types, Mapping):
            raise ConfigValidationError(
                f"commit_types must be a table of commit type to bump type, got {commit_types!r}"
            )
        for commit_type, bump_type in commit_types.items():
            if not _is_valid(bump_type, VALID_BUMP_TYPES):
                raise ConfigValidationError(
                    f"Invalid bump type for commit type '{commit_type}': {bump_type!r}"
                )

        rules = data.get("dependency_rules", {})
        if not isinstance(rules, Mapping):
            raise ConfigValidationError(f"dependency_rules must be a table, got {rules!r}")
        for field in DEPENDENCY_RULE_FIELDS:
            if field in rules and not _is_valid(rules[field], VALID_DEPENDENCY_BUMP_TYPES):
                raise ConfigValidationError(f"Invalid {field}: {rules[field]!r}")


def validate_config(config: VerseConfig | Mapping[str, Any]) -> None:
    """Validate ``config`` with a default :class:`ConfigurationValidator`."""
    ConfigurationValidator().validate(config)
