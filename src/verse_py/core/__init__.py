"""Core business logic for verse-py.

This module contains the fundamental building blocks:
- Semantic version parsing and bump arithmetic
- Conventional commit parsing
- Module graph storage and dependency cascade
- Version planning and changelog generation
"""

from __future__ import annotations

from verse_py.core.bump import get_bump_type_for_commit, get_dependency_bump_type
from verse_py.core.cascade import compute_final_bumps
from verse_py.core.changelog import generate_module_changelog, update_changelog_file
from verse_py.core.commits import (
    CommitInfo,
    calculate_bump,
    format_commit_for_changelog,
    get_breaking_changes,
    group_commits_by_type,
    parse_commit,
    parse_commits,
)
from verse_py.core.planner import ChangeReason, ModuleChange, plan_version_changes
from verse_py.core.registry import Module, ModuleRegistry, ProjectInformation
from verse_py.core.version import IGNORE, BumpType, Version, max_bump, parse_version

__all__ = [
    # Version
    "IGNORE",
    "BumpType",
    # Planning
    "ChangeReason",
    # Commits
    "CommitInfo",
    # Registry
    "Module",
    "ModuleChange",
    "ModuleRegistry",
    "ProjectInformation",
    "Version",
    "calculate_bump",
    # Cascade
    "compute_final_bumps",
    "format_commit_for_changelog",
    # Changelog
    "generate_module_changelog",
    "get_breaking_changes",
    # Bump rules
    "get_bump_type_for_commit",
    "get_dependency_bump_type",
    "group_commits_by_type",
    "max_bump",
    "parse_commit",
    "parse_commits",
    "parse_version",
    "plan_version_changes",
    "update_changelog_file",
]
