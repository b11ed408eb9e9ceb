"""Adapter interfaces.

An adapter connects verse-py to one build system. It can tell whether it
understands a repository, read the module graph out of the repository's
manifests, and write new versions back into them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from verse_py.core.registry import ModuleRegistry


@dataclass(frozen=True)
class AdapterCapabilities:
    supports_snapshots: bool = False


@dataclass(frozen=True)
class AdapterMetadata:
    """Static description of an adapter."""

    id: str
    name: str
    capabilities: AdapterCapabilities = field(default_factory=AdapterCapabilities)


@runtime_checkable
class ModuleDetector(Protocol):
    """Reads the module graph of a repository."""

    repo_root: Path

    def detect(self) -> ModuleRegistry:
        """Return the registry of every module in the repository.

        Raises:
            ModuleDetectionError: If the manifests cannot be read
        """
        ...


@runtime_checkable
class VersionUpdateStrategy(Protocol):
    """Persists new versions into build manifests."""

    def write_version_updates(self, module_versions: Mapping[str, str]) -> list[Path]:
        """Write ``module id -> new version``; return the files changed."""
        ...


@runtime_checkable
class Adapter(Protocol):
    """A build-system adapter."""

    metadata: AdapterMetadata

    def accept(self, project_root: Path) -> bool:
        """Whether this adapter understands the repository at ``project_root``."""
        ...

    def create_detector(
        self, repo_root: Path, options: Mapping[str, Any] | None = None
    ) -> ModuleDetector: ...

    def create_update_strategy(
        self, repo_root: Path, registry: ModuleRegistry
    ) -> VersionUpdateStrategy: ...
