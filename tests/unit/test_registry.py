"""Tests for module graph storage."""

from __future__ import annotations

import pytest

from conftest import make_module, make_registry
from verse_py.core.registry import Module, ModuleRegistry, ProjectInformation
from verse_py.core.version import Version
from verse_py.exceptions import ModuleDetectionError, ModuleNotFoundError


class TestModuleRegistry:
    """Tests for ModuleRegistry lookups."""

    def test_get_module(self):
        registry = make_registry({"core": [], "api": ["core"]})

        assert registry.get_module("api").dependencies == frozenset({"core"})
        assert registry.has_module("core")
        assert "core" in registry
        assert len(registry) == 2

    def test_unknown_module(self):
        """Looking up an unknown id raises with the id in the message."""
        registry = make_registry({"core": []})

        with pytest.raises(ModuleNotFoundError, match="Module ghost not found"):
            registry.get_module("ghost")
        assert not registry.has_module("ghost")

    def test_iteration_order_is_insertion_order(self):
        registry = make_registry({"b": [], "a": [], "c": []})
        assert registry.get_module_ids() == ["b", "a", "c"]
        assert [m.id for m in registry] == ["b", "a", "c"]

    def test_modules_view_is_read_only(self):
        registry = make_registry({"core": []})
        with pytest.raises(TypeError):
            registry.get_modules()["other"] = make_module("other")  # type: ignore[index]

    def test_module_attributes_are_read_only(self):
        """Adapter attributes cannot be changed once a module is built."""
        source = {"manifest": "core/package.json"}
        module = Module(
            id="core", name="core", path="core", version=Version(1, 0, 0), attributes=source
        )
        source["manifest"] = "elsewhere"

        assert module.attributes["manifest"] == "core/package.json"
        with pytest.raises(TypeError):
            module.attributes["manifest"] = "other"  # type: ignore[index]

    def test_dependents(self, diamond_registry: ModuleRegistry):
        """Reverse edges are available without scanning."""
        assert set(diamond_registry.get_dependents("base")) == {"left", "right"}
        assert diamond_registry.get_dependents("app") == ()

    def test_dependents_of_unknown_module(self):
        registry = make_registry({"core": []})
        with pytest.raises(ModuleNotFoundError):
            registry.get_dependents("ghost")

    def test_dangling_dependency_kept_but_not_indexed(self):
        """Edges to unknown ids stay on the module but get no reverse entry."""
        registry = make_registry({"api": ["external:lib"]})

        assert registry.get_dependencies("api") == frozenset({"external:lib"})
        assert "external:lib" not in registry

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ModuleDetectionError, match="Duplicate module id"):
            ModuleRegistry([make_module("core"), make_module("core")])

    def test_root_module(self):
        registry = ModuleRegistry(
            [make_module("root", path=".", kind="root"), make_module("core")]
        )
        assert registry.root_module == "root"
        assert registry.get_module("root").is_root


class TestFindChildModulePaths:
    """Tests for ModuleRegistry.find_child_module_paths()."""

    def test_root_is_parent_of_everything(self):
        registry = ModuleRegistry(
            [
                make_module("root", path=".", kind="root"),
                make_module("core", path="core"),
                make_module("api", path="services/api"),
            ]
        )
        assert registry.find_child_module_paths("root") == ["core", "services/api"]

    def test_nested_paths(self):
        registry = ModuleRegistry(
            [
                make_module("core", path="core"),
                make_module("core-util", path="core/util"),
                make_module("core2", path="core2"),
            ]
        )
        assert registry.find_child_module_paths("core") == ["core/util"]
        assert registry.find_child_module_paths("core2") == []


class TestProjectInformationFromRaw:
    """Tests for ProjectInformation.from_raw()."""

    def test_forward_dependencies(self):
        info = ProjectInformation.from_raw(
            {
                ":": {"path": ".", "type": "root", "version": "1.0.0"},
                ":core": {"path": "core", "version": "2.1.0", "dependencies": []},
                ":api": {"path": "api", "version": "2.1.0", "dependencies": [":core"]},
            }
        )

        assert info.root_module == ":"
        assert info.modules[":api"].dependencies == frozenset({":core"})
        assert info.modules[":core"].version == Version(2, 1, 0)

    def test_affected_modules_are_inverted(self):
        """affectedModules lists dependents; they become forward edges."""
        info = ProjectInformation.from_raw(
            {
                ":core": {"path": "core", "affectedModules": [":api"]},
                ":api": {"path": "api"},
            }
        )
        assert info.modules[":api"].dependencies == frozenset({":core"})

    def test_defaults(self):
        info = ProjectInformation.from_raw({":core": {"path": "core"}})
        module = info.modules[":core"]

        assert module.name == ":core"
        assert module.version == Version(0, 0, 0)
        assert module.declared_version

    def test_declared_version_flag(self):
        info = ProjectInformation.from_raw({":core": {"path": "core", "declaredVersion": False}})
        assert not info.modules[":core"].declared_version

    def test_invalid_version(self):
        with pytest.raises(ModuleDetectionError, match=":core"):
            ProjectInformation.from_raw({":core": {"version": "one"}})

    def test_invalid_type(self):
        with pytest.raises(ModuleDetectionError, match="Invalid module type"):
            ProjectInformation.from_raw({":core": {"type": "library"}})
