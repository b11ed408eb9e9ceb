"""Bump resolution rules.

Two pure lookups drive every version decision:

- :func:`get_bump_type_for_commit` turns a classified commit into the bump
  it implies for its own module.
- :func:`get_dependency_bump_type` turns a dependency's resolved bump into
  the bump it implies for a dependent module.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verse_py.core.version import IGNORE, BumpType

if TYPE_CHECKING:
    from verse_py.config.models import DependencyRules, VerseConfig


def get_bump_type_for_commit(
    commit_type: str,
    is_breaking: bool,
    config: VerseConfig,
) -> BumpType:
    """Determine the bump a single commit implies.

    Breaking changes always force MAJOR, whatever the commit type maps to.
    A type mapped to ``ignore`` contributes nothing; an unmapped type
    (including the empty type of a non-conventional commit) falls back to
    ``default_bump``.

    Args:
        commit_type: Conventional commit type (``"feat"``, ``"fix"``, ...)
        is_breaking: Whether the commit declares a breaking change
        config: Configuration holding the commit type mappings

    Returns:
        The bump for this commit, never ``ignore``
    """
    if is_breaking:
        return BumpType.MAJOR

    configured = config.commit_types.get(commit_type)
    if configured is None:
        configured = config.default_bump

    if configured == IGNORE:
        return BumpType.NONE
    return BumpType(configured)


def get_dependency_bump_type(
    dependency_bump_type: BumpType,
    config: VerseConfig | DependencyRules,
) -> BumpType:
    """Determine the bump a dependent needs when one of its dependencies is bumped.

    Args:
        dependency_bump_type: Resolved bump of the dependency
        config: Full configuration, or just its dependency rules

    Returns:
        The cascade bump; NONE when the dependency is not bumped
    """
    rules = getattr(config, "dependency_rules", config)

    if dependency_bump_type == BumpType.MAJOR:
        return BumpType(rules.on_major_of_dependency)
    if dependency_bump_type == BumpType.MINOR:
        return BumpType(rules.on_minor_of_dependency)
    if dependency_bump_type == BumpType.PATCH:
        return BumpType(rules.on_patch_of_dependency)
    return BumpType.NONE
