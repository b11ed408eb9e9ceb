"""Turning commits and the module graph into concrete version changes.

The planner is where the pure bump computation meets the version options
of the configuration: it resolves local bumps, runs the cascade, and then
works out the new version string for every module that needs one.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from verse_py.core.cascade import compute_final_bumps
from verse_py.core.commits import calculate_bump
from verse_py.core.version import BumpType, timestamp_prerelease_id

if TYPE_CHECKING:
    from verse_py.config.models import VerseConfig
    from verse_py.core.commits import CommitInfo
    from verse_py.core.registry import Module, ModuleRegistry
    from verse_py.core.version import Version

logger = logging.getLogger(__name__)


class ChangeReason(StrEnum):
    """Why a module's version changes."""

    COMMITS = "commits"
    CASCADE = "cascade"
    PRERELEASE_UNCHANGED = "prerelease-unchanged"
    BUILD_METADATA = "build-metadata"
    SNAPSHOT = "snapshot"


@dataclass(frozen=True)
class ModuleChange:
    """A planned version change for one module."""

    module: Module
    from_version: Version
    to_version: str
    bump_type: BumpType
    reason: ChangeReason

    @property
    def module_id(self) -> str:
        return self.module.id


def calculate_local_bumps(
    registry: ModuleRegistry,
    module_commits: Mapping[str, Sequence[CommitInfo]],
    config: VerseConfig,
) -> dict[str, BumpType]:
    """Bump implied by each module's own commits."""
    return {
        module_id: calculate_bump(module_commits.get(module_id, ()), config)
        for module_id in registry.get_module_ids()
    }


def plan_version_changes(
    registry: ModuleRegistry,
    module_commits: Mapping[str, Sequence[CommitInfo]],
    config: VerseConfig,
    *,
    short_sha: str | None = None,
    now: datetime | None = None,
    supports_snapshots: bool = True,
) -> list[ModuleChange]:
    """Compute the version changes for a run.

    Args:
        registry: Module graph
        module_commits: Commits attributed to each module id
        config: Validated configuration
        short_sha: Commit SHA used as build metadata when enabled
        now: Clock for timestamped prerelease ids
        supports_snapshots: Whether the build system understands
            ``-SNAPSHOT`` versions

    Returns:
        Changes for modules that need an update, in registry order
    """
    options = config.version

    prerelease_id = options.prerelease_id
    if options.prerelease_mode and options.timestamp_versions:
        prerelease_id = timestamp_prerelease_id(prerelease_id, now)
        logger.info("Using timestamped prerelease id %s", prerelease_id)

    local_bumps = calculate_local_bumps(registry, module_commits, config)
    final_bumps = compute_final_bumps(local_bumps, registry, config.dependency_rules)

    changes: list[ModuleChange] = []
    for module in registry:
        local = local_bumps[module.id]
        bump = final_bumps[module.id]

        reason: ChangeReason | None = None
        if bump != BumpType.NONE:
            reason = ChangeReason.COMMITS if local == bump else ChangeReason.CASCADE
        elif options.prerelease_mode and options.bump_unchanged:
            reason = ChangeReason.PRERELEASE_UNCHANGED
        elif options.add_build_metadata:
            reason = ChangeReason.BUILD_METADATA

        new_version = module.version
        if reason is not None:
            if options.prerelease_mode and reason != ChangeReason.BUILD_METADATA:
                new_version = new_version.bump_prerelease(bump, prerelease_id)
            else:
                new_version = new_version.bump(bump)
            if options.add_build_metadata and short_sha:
                new_version = new_version.with_build_metadata(short_sha)

        to_version = str(new_version)
        if options.append_snapshot and supports_snapshots:
            snapshot = new_version.with_snapshot()
            if reason is None and snapshot != to_version:
                reason = ChangeReason.SNAPSHOT
            to_version = snapshot

        if reason is None:
            continue

        changes.append(
            ModuleChange(
                module=module,
                from_version=module.version,
                to_version=to_version,
                bump_type=bump,
                reason=reason,
            )
        )

    logger.info("Calculated versions for %d module(s) requiring updates", len(changes))
    return changes
