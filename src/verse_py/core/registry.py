"""Module graph storage.

:class:`ModuleRegistry` owns every :class:`Module` of a run, indexed by id.
Dependency edges are plain id strings resolved through the registry, so the
graph may contain cycles, and may reference ids the registry does not hold
(external or unpublished coordinates). Reverse edges are computed once at
construction.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

from verse_py.core.version import Version
from verse_py.exceptions import ModuleDetectionError, ModuleNotFoundError, VersionError

ModuleKind = Literal["root", "module"]

ROOT_PATH = "."


@dataclass(frozen=True)
class Module:
    """A versioned unit of the repository.

    Attributes:
        id: Unique id within the run (e.g. ``":core"`` or ``"@acme/core"``)
        name: Display name, used for module-scoped tags
        path: Path relative to the repository root, ``"."`` for the root
        type: ``"root"`` or ``"module"``
        version: Current version from the build manifest
        declared_version: Whether the manifest declares the version itself
            (as opposed to inheriting it)
        dependencies: Ids of modules this module depends on
        attributes: Opaque adapter data for version writers
    """

    id: str
    name: str
    path: str
    version: Version
    type: ModuleKind = "module"
    declared_version: bool = True
    dependencies: frozenset[str] = frozenset()
    attributes: Mapping[str, str] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def is_root(self) -> bool:
        return self.type == "root"


@dataclass(frozen=True)
class ProjectInformation:
    """Snapshot of a project's modules as produced by a module detector."""

    modules: Mapping[str, Module]
    root_module: str | None = None

    @classmethod
    def from_modules(cls, modules: Iterable[Module]) -> ProjectInformation:
        """Build a snapshot from modules, rejecting duplicate ids."""
        by_id: dict[str, Module] = {}
        root: str | None = None
        for module in modules:
            if module.id in by_id:
                raise ModuleDetectionError(f"Duplicate module id: {module.id}")
            by_id[module.id] = module
            if module.is_root and root is None:
                root = module.id
        return cls(modules=by_id, root_module=root)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Mapping[str, Any]]) -> ProjectInformation:
        """Build a snapshot from the raw JSON shape build-tool scripts emit.

        Each entry maps a module id to ``name``, ``path``, ``version``,
        ``type`` and ``declaredVersion``. Edges are given either forwards
        (``dependencies``: what the module depends on) or backwards
        (``affectedModules``: which modules depend on it).

        Raises:
            ModuleDetectionError: If an entry is malformed
        """
        forward: dict[str, set[str]] = {module_id: set() for module_id in raw}
        for module_id, entry in raw.items():
            forward[module_id].update(entry.get("dependencies", ()))
            for dependent in entry.get("affectedModules", ()):
                forward.setdefault(dependent, set()).add(module_id)

        modules = []
        for module_id, entry in raw.items():
            try:
                version = Version.parse(str(entry.get("version") or "0.0.0"))
                kind = entry.get("type", "module")
                if kind not in ("root", "module"):
                    raise ModuleDetectionError(f"Invalid module type for {module_id}: {kind!r}")
                modules.append(
                    Module(
                        id=module_id,
                        name=str(entry.get("name", module_id)),
                        path=str(entry.get("path", ROOT_PATH)),
                        version=version,
                        type=kind,
                        declared_version=bool(entry.get("declaredVersion", True)),
                        dependencies=frozenset(forward[module_id]),
                        attributes=dict(entry.get("attributes", {})),
                    )
                )
            except (TypeError, ValueError, VersionError) as e:
                raise ModuleDetectionError(f"Malformed module entry {module_id}: {e}") from e
        return cls.from_modules(modules)


class ModuleRegistry:
    """Id-indexed, read-only view of a project's module graph.

    Lookups are O(1). Direct dependencies and dependents of a module are
    available without scanning, which keeps repeated cascade passes cheap.
    """

    def __init__(self, project: ProjectInformation | Iterable[Module]) -> None:
        if not isinstance(project, ProjectInformation):
            project = ProjectInformation.from_modules(project)

        self._modules: Mapping[str, Module] = MappingProxyType(dict(project.modules))
        self._root_module = project.root_module

        dependents: dict[str, list[str]] = {module_id: [] for module_id in self._modules}
        for module in self._modules.values():
            for dependency in sorted(module.dependencies):
                if dependency in dependents:
                    dependents[dependency].append(module.id)
        self._dependents = {k: tuple(v) for k, v in dependents.items()}

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules

    @property
    def root_module(self) -> str | None:
        return self._root_module

    def get_module(self, module_id: str) -> Module:
        """Return the module with ``module_id``.

        Raises:
            ModuleNotFoundError: If the registry has no such module
        """
        try:
            return self._modules[module_id]
        except KeyError:
            raise ModuleNotFoundError(module_id) from None

    def has_module(self, module_id: str) -> bool:
        return module_id in self._modules

    def get_modules(self) -> Mapping[str, Module]:
        return self._modules

    def get_module_ids(self) -> list[str]:
        return list(self._modules)

    def get_dependencies(self, module_id: str) -> frozenset[str]:
        """Declared dependency ids of a module, including unknown ones."""
        return self.get_module(module_id).dependencies

    def get_dependents(self, module_id: str) -> tuple[str, ...]:
        """Ids of registered modules that declare a dependency on ``module_id``."""
        if module_id not in self._dependents:
            raise ModuleNotFoundError(module_id)
        return self._dependents[module_id]

    def find_child_module_paths(self, module_id: str) -> list[str]:
        """Paths of modules nested below ``module_id``'s directory.

        The root path ``"."`` is the parent of every other path. ``core2``
        is not a child of ``core``.
        """
        parent = self.get_module(module_id).path
        return [
            other.path
            for other in self._modules.values()
            if other.id != module_id and _is_child_path(other.path, parent)
        ]


def _is_child_path(child: str, parent: str) -> bool:
    if parent == ROOT_PATH:
        return child != ROOT_PATH
    return child.startswith(parent.rstrip("/") + "/")
