"""Configuration models for verse-py.

Configuration is read from ``verse.toml``, ``.verse.json`` or the
``[tool.verse]`` table of ``pyproject.toml``:

    [tool.verse]
    default_bump = "patch"

    [tool.verse.commit_types]
    feat = "minor"
    fix = "patch"
    docs = "ignore"

    [tool.verse.dependency_rules]
    on_major_of_dependency = "major"
    on_minor_of_dependency = "minor"
    on_patch_of_dependency = "patch"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from verse_py.core.version import BumpType, CommitBump

DEFAULT_COMMIT_TYPES: dict[str, CommitBump] = {
    "feat": BumpType.MINOR,
    "fix": BumpType.PATCH,
    "perf": BumpType.PATCH,
    "refactor": BumpType.PATCH,
    "docs": "ignore",
    "test": "ignore",
    "chore": "ignore",
    "style": "ignore",
    "ci": "ignore",
    "build": "ignore",
}


class DependencyRules(BaseModel):
    """How a module is bumped when one of its dependencies is bumped."""

    model_config = ConfigDict(frozen=True)

    on_major_of_dependency: BumpType = BumpType.MAJOR
    on_minor_of_dependency: BumpType = BumpType.MINOR
    on_patch_of_dependency: BumpType = BumpType.PATCH


class VersionConfig(BaseModel):
    """Options that shape the computed version strings."""

    model_config = ConfigDict(frozen=True)

    prerelease_mode: bool = False
    prerelease_id: str = "alpha"
    timestamp_versions: bool = False
    bump_unchanged: bool = False
    """In prerelease mode, also move unchanged modules to a new prerelease."""
    add_build_metadata: bool = False
    append_snapshot: bool = False


class ChangelogConfig(BaseModel):
    """Per-module changelog generation."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    filename: Path = Path("CHANGELOG.md")
    include_scope: bool = True
    include_sha: bool = False


class GitConfig(BaseModel):
    """Committing and tagging after versions are written."""

    model_config = ConfigDict(frozen=True)

    commit: bool = True
    """Commit the written manifests and changelogs before tagging."""
    commit_message: str = "chore(release): bump versions"
    create_tags: bool = True
    push_tags: bool = False
    root_tag_prefix: str = "v"
    allow_dirty: bool = False


class VerseConfig(BaseModel):
    """Root configuration for verse-py."""

    model_config = ConfigDict(frozen=True)

    default_bump: CommitBump = BumpType.PATCH
    commit_types: dict[str, CommitBump] = Field(
        default_factory=lambda: dict(DEFAULT_COMMIT_TYPES)
    )
    dependency_rules: DependencyRules = Field(default_factory=DependencyRules)

    adapter: str | None = None
    """Adapter id to use; auto-detected when unset."""
    adapters: dict[str, dict[str, Any]] = Field(default_factory=dict)

    version: VersionConfig = Field(default_factory=VersionConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    git: GitConfig = Field(default_factory=GitConfig)

    def get_adapter_config(self, adapter_id: str) -> dict[str, Any]:
        """Adapter-specific settings, or an empty dict."""
        return dict(self.adapters.get(adapter_id, {}))
