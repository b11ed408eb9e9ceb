"""Maven multi-module builds.

The module tree is read from the ``<modules>`` of the root ``pom.xml``,
recursively. Module ids follow the path (``":"`` for the root,
``":services:api"`` for ``services/api``). Each module depends on every
aggregator above it and on the sibling modules named in its
``<dependencies>``. A module without its own ``<version>`` inherits the
parent's and is not written directly; only its ``<parent><version>`` is kept
in step.
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
from verse_py.project.pom import POM_XML, Pom, load_pom, update_pom_versions

logger = logging.getLogger(__name__)

MANIFEST_ATTRIBUTE = "manifest"
GROUP_ID_ATTRIBUTE = "group_id"
ARTIFACT_ID_ATTRIBUTE = "artifact_id"
PARENT_ATTRIBUTE = "parent"

_GROUP_ID_PROPERTIES = ("${project.groupId}", "${project.parent.groupId}", "${groupId}")


def module_id_for(relative: str) -> str:
    """``"."`` -> ``":"``, ``"services/api"`` -> ``":services:api"``."""
    if relative == ROOT_PATH:
        return ":"
    return ":" + relative.replace("/", ":")


def _normalize(relative: Path) -> str:
    return relative.as_posix().strip("/") or ROOT_PATH


class MavenModuleDetector:
    """Reads modules from a Maven reactor."""

    def __init__(self, repo_root: Path, options: Mapping[str, Any] | None = None) -> None:
        self.repo_root = repo_root
        self.options = dict(options or {})

    def _load(self, relative: str) -> Pom:
        try:
            return load_pom(self.repo_root / relative / POM_XML)
        except ProjectError as e:
            raise ModuleDetectionError(str(e)) from e

    def detect(self) -> ModuleRegistry:
        # path -> (pom, ids of the aggregators above it)
        found: dict[str, tuple[Pom, tuple[str, ...]]] = {}
        pending: list[tuple[str, tuple[str, ...]]] = [(ROOT_PATH, ())]
        while pending:
            relative, ancestors = pending.pop(0)
            if relative in found:
                continue
            pom = self._load(relative)
            found[relative] = (pom, ancestors)
            for child in pom.modules:
                child_path = _normalize(Path(relative) / child)
                pending.append((child_path, (*ancestors, module_id_for(relative))))

        by_coordinate: dict[str, str] = {}
        for relative, (pom, _) in found.items():
            group_id = pom.group_id or (pom.parent.group_id if pom.parent else None)
            if not group_id or not pom.artifact_id:
                raise ModuleDetectionError(
                    f"Invalid pom.xml (missing groupId/artifactId): {relative}/{POM_XML}"
                )
            by_coordinate[f"{group_id}:{pom.artifact_id}"] = module_id_for(relative)

        included = [
            relative
            for relative in found
            if relative != ROOT_PATH or self.options.get("include_root", True)
        ]
        known_ids = {module_id_for(relative) for relative in included}
        modules = [
            self._module(relative, *found[relative], by_coordinate, known_ids)
            for relative in included
        ]

        logger.info("Detected %d Maven module(s)", len(modules))
        return ModuleRegistry(ProjectInformation.from_modules(modules))

    def _module(
        self,
        relative: str,
        pom: Pom,
        ancestors: tuple[str, ...],
        by_coordinate: Mapping[str, str],
        known_ids: set[str],
    ) -> Module:
        module_id = module_id_for(relative)
        manifest = POM_XML if relative == ROOT_PATH else f"{relative}/{POM_XML}"
        parent = pom.parent
        group_id = pom.group_id or (parent.group_id if parent else None) or ""
        artifact_id = pom.artifact_id or ""

        raw_version = pom.version or (parent.version if parent else None)
        try:
            version = Version.parse(raw_version) if raw_version else Version(0, 0, 0)
        except VersionError as e:
            raise ModuleDetectionError(f"Invalid version in {manifest}: {e}") from e

        dependencies = set(ancestors)
        for dependency in pom.dependencies:
            dependency_group = dependency.group_id
            if dependency_group in _GROUP_ID_PROPERTIES:
                dependency_group = group_id
            target = by_coordinate.get(f"{dependency_group}:{dependency.artifact_id}")
            if target and target != module_id:
                dependencies.add(target)

        attributes = {
            MANIFEST_ATTRIBUTE: manifest,
            GROUP_ID_ATTRIBUTE: group_id,
            ARTIFACT_ID_ATTRIBUTE: artifact_id,
        }
        if parent and parent.coordinate:
            attributes[PARENT_ATTRIBUTE] = parent.coordinate

        return Module(
            id=module_id,
            name=artifact_id,
            path=relative,
            version=version,
            type="root" if relative == ROOT_PATH else "module",
            declared_version=pom.version is not None,
            dependencies=frozenset(dependencies & known_ids),
            attributes=attributes,
        )


class MavenVersionUpdateStrategy:
    """Writes ``<version>`` and ``<parent><version>`` into POMs.

    Every POM whose parent is released gets the parent's new version, even
    when the module itself is not in ``module_versions``.
    """

    def __init__(self, repo_root: Path, registry: ModuleRegistry) -> None:
        self.repo_root = repo_root
        self.registry = registry

    def write_version_updates(self, module_versions: Mapping[str, str]) -> list[Path]:
        released: dict[str, str] = {}
        for module_id, version in module_versions.items():
            module = self.registry.get_module(module_id)
            group_id = module.attributes.get(GROUP_ID_ATTRIBUTE)
            artifact_id = module.attributes.get(ARTIFACT_ID_ATTRIBUTE)
            if group_id and artifact_id:
                released[f"{group_id}:{artifact_id}"] = version

        written = []
        for module in self.registry:
            project_version = module_versions.get(module.id) if module.declared_version else None
            parent_version = released.get(module.attributes.get(PARENT_ATTRIBUTE, ""))
            if project_version is None and parent_version is None:
                continue

            manifest = self.repo_root / module.attributes.get(
                MANIFEST_ATTRIBUTE, f"{module.path}/{POM_XML}"
            )
            written.append(update_pom_versions(manifest, project_version, parent_version))
            logger.debug(
                "Wrote %s (version=%s, parent=%s) to %s",
                module.id,
                project_version,
                parent_version,
                manifest,
            )
        return written


class MavenAdapter:
    metadata = AdapterMetadata(
        id="maven",
        name="Maven multi-module",
        capabilities=AdapterCapabilities(supports_snapshots=True),
    )

    def accept(self, project_root: Path) -> bool:
        manifest = project_root / POM_XML
        if not manifest.is_file():
            return False
        return bool(load_pom(manifest).modules)

    def create_detector(
        self, repo_root: Path, options: Mapping[str, Any] | None = None
    ) -> MavenModuleDetector:
        return MavenModuleDetector(repo_root, options)

    def create_update_strategy(
        self, repo_root: Path, registry: ModuleRegistry
    ) -> MavenVersionUpdateStrategy:
        return MavenVersionUpdateStrategy(repo_root, registry)
