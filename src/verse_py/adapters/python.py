"""uv workspaces.

The root ``pyproject.toml`` lists member globs under
``[tool.uv.workspace].members`` (with optional ``exclude`` globs). Each
member directory holding a ``pyproject.toml`` with a ``[project]`` table is
a module, identified by its normalized distribution name. Requirements on
other members, in ``dependencies`` or any ``optional-dependencies`` group,
become graph edges.
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from verse_py.adapters.base import AdapterCapabilities, AdapterMetadata
from verse_py.core.registry import ROOT_PATH, Module, ModuleRegistry, ProjectInformation
from verse_py.core.version import Version
from verse_py.exceptions import ModuleDetectionError, VersionError
from verse_py.project.pyproject import PYPROJECT, update_pyproject_version

logger = logging.getLogger(__name__)

MANIFEST_ATTRIBUTE = "manifest"


def _load_pyproject(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ModuleDetectionError(f"Cannot read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ModuleDetectionError(f"Invalid TOML in {path}: {e}") from e


def _workspace_table(data: Mapping[str, Any]) -> Mapping[str, Any] | None:
    workspace = data.get("tool", {}).get("uv", {}).get("workspace")
    return workspace if isinstance(workspace, Mapping) else None


def _requirement_names(project: Mapping[str, Any]) -> set[str]:
    raw: list[str] = list(project.get("dependencies", []))
    for group in project.get("optional-dependencies", {}).values():
        raw.extend(group)

    names = set()
    for entry in raw:
        try:
            names.add(canonicalize_name(Requirement(entry).name))
        except InvalidRequirement:
            logger.debug("Ignoring unparsable requirement: %s", entry)
    return names


class PythonModuleDetector:
    """Reads modules from a uv workspace."""

    def __init__(self, repo_root: Path, options: Mapping[str, Any] | None = None) -> None:
        self.repo_root = repo_root
        self.options = dict(options or {})

    def _member_directories(self, workspace: Mapping[str, Any]) -> list[Path]:
        excluded = {
            path.resolve()
            for pattern in workspace.get("exclude", [])
            for path in self.repo_root.glob(pattern)
        }
        found: dict[Path, None] = {}
        for pattern in workspace.get("members", []):
            for path in sorted(self.repo_root.glob(pattern)):
                if (path / PYPROJECT).is_file() and path.resolve() not in excluded:
                    found[path] = None
        return list(found)

    def detect(self) -> ModuleRegistry:
        root_data = _load_pyproject(self.repo_root / PYPROJECT)
        workspace = _workspace_table(root_data) or {}

        # (id, relative path, [project] table)
        entries: list[tuple[str, str, Mapping[str, Any]]] = []
        for directory in self._member_directories(workspace):
            project = _load_pyproject(directory / PYPROJECT).get("project")
            if not project or not project.get("name"):
                logger.warning("Skipping workspace member without [project].name: %s", directory)
                continue
            relative = directory.relative_to(self.repo_root).as_posix()
            entries.append((canonicalize_name(project["name"]), relative, project))

        root_project = root_data.get("project")
        if root_project and root_project.get("name") and self.options.get("include_root", True):
            entries.insert(0, (canonicalize_name(root_project["name"]), ROOT_PATH, root_project))

        member_ids = {module_id for module_id, _, _ in entries}
        modules = [
            self._module(module_id, relative, project, member_ids)
            for module_id, relative, project in entries
        ]
        logger.info("Detected %d Python module(s)", len(modules))
        return ModuleRegistry(ProjectInformation.from_modules(modules))

    def _module(
        self, module_id: str, relative: str, project: Mapping[str, Any], member_ids: set[str]
    ) -> Module:
        manifest = PYPROJECT if relative == ROOT_PATH else f"{relative}/{PYPROJECT}"
        raw_version = project.get("version")
        try:
            version = Version.parse(str(raw_version)) if raw_version else Version(0, 0, 0)
        except VersionError as e:
            raise ModuleDetectionError(f"Invalid version in {manifest}: {e}") from e

        return Module(
            id=module_id,
            name=str(project["name"]),
            path=relative,
            version=version,
            type="root" if relative == ROOT_PATH else "module",
            declared_version=raw_version is not None,
            dependencies=frozenset(_requirement_names(project) & (member_ids - {module_id})),
            attributes={MANIFEST_ATTRIBUTE: manifest},
        )


class PythonVersionUpdateStrategy:
    """Writes versions into each module's ``[project].version``."""

    def __init__(self, repo_root: Path, registry: ModuleRegistry) -> None:
        self.repo_root = repo_root
        self.registry = registry

    def write_version_updates(self, module_versions: Mapping[str, str]) -> list[Path]:
        written = []
        for module_id, version in module_versions.items():
            module = self.registry.get_module(module_id)
            manifest = self.repo_root / module.attributes.get(
                MANIFEST_ATTRIBUTE, f"{module.path}/{PYPROJECT}"
            )
            written.append(update_pyproject_version(manifest, version))
            logger.debug("Wrote %s %s to %s", module_id, version, manifest)
        return written


class PythonAdapter:
    metadata = AdapterMetadata(
        id="python", name="uv workspaces", capabilities=AdapterCapabilities()
    )

    def accept(self, project_root: Path) -> bool:
        manifest = project_root / PYPROJECT
        if not manifest.is_file():
            return False
        workspace = _workspace_table(_load_pyproject(manifest))
        return bool(workspace and workspace.get("members"))

    def create_detector(
        self, repo_root: Path, options: Mapping[str, Any] | None = None
    ) -> PythonModuleDetector:
        return PythonModuleDetector(repo_root, options)

    def create_update_strategy(
        self, repo_root: Path, registry: ModuleRegistry
    ) -> PythonVersionUpdateStrategy:
        return PythonVersionUpdateStrategy(repo_root, registry)
