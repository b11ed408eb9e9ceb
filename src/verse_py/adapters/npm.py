"""npm / yarn / pnpm workspaces.

The root ``package.json`` lists workspace globs under ``workspaces`` (or
``workspaces.packages``). Every matched directory with a ``package.json``
is a module identified by its package name. Dependencies on other
workspace packages become graph edges; third-party packages are left out.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from verse_py.adapters.base import AdapterCapabilities, AdapterMetadata
from verse_py.core.registry import ROOT_PATH, Module, ModuleRegistry, ProjectInformation
from verse_py.core.version import Version
from verse_py.exceptions import ModuleDetectionError, ProjectError, VersionError
from verse_py.project.package_json import (
    PACKAGE_JSON,
    load_package_json,
    update_package_json_version,
)

logger = logging.getLogger(__name__)

DEPENDENCY_FIELDS = ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies")

MANIFEST_ATTRIBUTE = "manifest"


def _workspace_patterns(manifest: Mapping[str, Any]) -> list[str]:
    workspaces = manifest.get("workspaces")
    if isinstance(workspaces, Mapping):
        workspaces = workspaces.get("packages")
    if not isinstance(workspaces, list):
        return []
    return [str(p) for p in workspaces]


def _expand_workspaces(root: Path, patterns: list[str]) -> list[Path]:
    excluded = {
        path.resolve()
        for pattern in patterns
        if pattern.startswith("!")
        for path in root.glob(pattern[1:])
    }
    found: dict[Path, None] = {}
    for pattern in patterns:
        if pattern.startswith("!"):
            continue
        for path in sorted(root.glob(pattern)):
            if (path / PACKAGE_JSON).is_file() and path.resolve() not in excluded:
                found[path] = None
    return list(found)


def _parse_version(raw: Any, where: Path) -> tuple[Version, bool]:
    if raw is None:
        return Version(0, 0, 0), False
    try:
        return Version.parse(str(raw)), True
    except VersionError as e:
        raise ModuleDetectionError(f"Invalid version in {where}: {e}") from e


class NpmModuleDetector:
    """Reads modules from an npm workspace."""

    def __init__(self, repo_root: Path, options: Mapping[str, Any] | None = None) -> None:
        self.repo_root = repo_root
        self.options = dict(options or {})

    def detect(self) -> ModuleRegistry:
        try:
            root_manifest = load_package_json(self.repo_root)
        except ProjectError as e:
            raise ModuleDetectionError(str(e)) from e

        packages: list[tuple[str, Path, dict[str, Any]]] = []
        for directory in _expand_workspaces(self.repo_root, _workspace_patterns(root_manifest)):
            manifest = load_package_json(directory)
            name = manifest.get("name")
            if not name:
                logger.warning("Skipping workspace without a name: %s", directory)
                continue
            packages.append((str(name), directory, manifest))

        workspace_names = {name for name, _, _ in packages}
        modules = []

        root_version, root_declared = _parse_version(
            root_manifest.get("version"), self.repo_root / PACKAGE_JSON
        )
        root_id = str(root_manifest.get("name") or "root")
        if root_id in workspace_names:
            raise ModuleDetectionError(f"Root package name {root_id} clashes with a workspace")
        if self.options.get("include_root", True):
            modules.append(
                Module(
                    id=root_id,
                    name=root_id,
                    path=ROOT_PATH,
                    version=root_version,
                    type="root",
                    declared_version=root_declared,
                    dependencies=frozenset(
                        self._internal_dependencies(root_manifest, workspace_names)
                    ),
                    attributes={MANIFEST_ATTRIBUTE: PACKAGE_JSON},
                )
            )

        for name, directory, manifest in packages:
            manifest_path = directory / PACKAGE_JSON
            version, declared = _parse_version(manifest.get("version"), manifest_path)
            relative = directory.relative_to(self.repo_root).as_posix()
            modules.append(
                Module(
                    id=name,
                    name=name,
                    path=relative,
                    version=version,
                    type="module",
                    declared_version=declared,
                    dependencies=frozenset(
                        self._internal_dependencies(manifest, workspace_names - {name})
                    ),
                    attributes={MANIFEST_ATTRIBUTE: f"{relative}/{PACKAGE_JSON}"},
                )
            )

        logger.info("Detected %d npm module(s)", len(modules))
        return ModuleRegistry(ProjectInformation.from_modules(modules))

    @staticmethod
    def _internal_dependencies(manifest: Mapping[str, Any], workspace_names: set[str]) -> set[str]:
        names: set[str] = set()
        for field_name in DEPENDENCY_FIELDS:
            declared = manifest.get(field_name) or {}
            if isinstance(declared, Mapping):
                names.update(n for n in declared if n in workspace_names)
        return names


class NpmVersionUpdateStrategy:
    """Writes versions into each module's package.json."""

    def __init__(self, repo_root: Path, registry: ModuleRegistry) -> None:
        self.repo_root = repo_root
        self.registry = registry

    def write_version_updates(self, module_versions: Mapping[str, str]) -> list[Path]:
        written = []
        for module_id, version in module_versions.items():
            module = self.registry.get_module(module_id)
            manifest = self.repo_root / module.attributes.get(
                MANIFEST_ATTRIBUTE, f"{module.path}/{PACKAGE_JSON}"
            )
            written.append(update_package_json_version(manifest, version))
            logger.debug("Wrote %s %s to %s", module_id, version, manifest)
        return written


class NpmAdapter:
    metadata = AdapterMetadata(id="npm", name="npm workspaces", capabilities=AdapterCapabilities())

    def accept(self, project_root: Path) -> bool:
        manifest = project_root / PACKAGE_JSON
        if not manifest.is_file():
            return False
        return bool(_workspace_patterns(load_package_json(manifest)))

    def create_detector(
        self, repo_root: Path, options: Mapping[str, Any] | None = None
    ) -> NpmModuleDetector:
        return NpmModuleDetector(repo_root, options)

    def create_update_strategy(
        self, repo_root: Path, registry: ModuleRegistry
    ) -> NpmVersionUpdateStrategy:
        return NpmVersionUpdateStrategy(repo_root, registry)
