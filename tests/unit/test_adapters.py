"""Tests for build-system adapters."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from verse_py.adapters import (
    Adapter,
    AdapterRegistry,
    ModuleDetector,
    VersionUpdateStrategy,
    default_registry,
    resolve_adapter,
)
from verse_py.adapters.maven import MavenAdapter
from verse_py.adapters.npm import NpmAdapter
from verse_py.adapters.python import PythonAdapter
from verse_py.core.version import Version
from verse_py.exceptions import (
    ModuleDetectionError,
    UnsupportedAdapterError,
    VersionNotFoundError,
)
from verse_py.project.package_json import update_package_json_version
from verse_py.project.pom import load_pom, update_pom_versions
from verse_py.project.pyproject import update_pyproject_version


class TestNpmAdapter:
    """Tests for the npm workspaces adapter."""

    def test_accept(self, npm_workspace: Path, tmp_path: Path):
        adapter = NpmAdapter()

        assert adapter.accept(npm_workspace)
        assert not adapter.accept(tmp_path / "empty")

    def test_accept_requires_workspaces(self, tmp_path: Path):
        (tmp_path / "package.json").write_text('{"name": "single", "version": "1.0.0"}')
        assert not NpmAdapter().accept(tmp_path)

    def test_detect(self, npm_workspace: Path):
        registry = NpmAdapter().create_detector(npm_workspace).detect()

        assert registry.get_module_ids() == ["acme", "@acme/app", "@acme/core"]
        assert registry.root_module == "acme"

        app = registry.get_module("@acme/app")
        assert app.path == "packages/app"
        assert app.version == Version(0, 4, 1)
        # Third-party packages are not graph edges.
        assert app.dependencies == frozenset({"@acme/core"})
        assert registry.get_dependents("@acme/core") == ("@acme/app",)

    def test_detect_without_root(self, npm_workspace: Path):
        detector = NpmAdapter().create_detector(npm_workspace, {"include_root": False})
        assert "acme" not in detector.detect()

    def test_workspaces_object_form_and_excludes(self, npm_workspace: Path):
        manifest = npm_workspace / "package.json"
        data = json.loads(manifest.read_text())
        data["workspaces"] = {"packages": ["packages/*", "!packages/app"]}
        manifest.write_text(json.dumps(data))

        registry = NpmAdapter().create_detector(npm_workspace).detect()
        assert registry.get_module_ids() == ["acme", "@acme/core"]

    def test_missing_version_defaults(self, npm_workspace: Path):
        (npm_workspace / "packages" / "core" / "package.json").write_text('{"name": "@acme/core"}')

        core = NpmAdapter().create_detector(npm_workspace).detect().get_module("@acme/core")

        assert core.version == Version(0, 0, 0)
        assert not core.declared_version

    def test_invalid_version(self, npm_workspace: Path):
        (npm_workspace / "packages" / "core" / "package.json").write_text(
            '{"name": "@acme/core", "version": "one"}'
        )
        with pytest.raises(ModuleDetectionError, match="Invalid version"):
            NpmAdapter().create_detector(npm_workspace).detect()

    def test_write_version_updates(self, npm_workspace: Path):
        adapter = NpmAdapter()
        registry = adapter.create_detector(npm_workspace).detect()
        strategy = adapter.create_update_strategy(npm_workspace, registry)

        written = strategy.write_version_updates({"@acme/app": "0.5.0", "acme": "1.1.0"})

        app_manifest = npm_workspace / "packages" / "app" / "package.json"
        assert written == [app_manifest, npm_workspace / "package.json"]
        data = json.loads(app_manifest.read_text())
        assert data["version"] == "0.5.0"
        # Dependency ranges are left untouched.
        assert data["dependencies"]["@acme/core"] == "^1.2.0"
        assert json.loads((npm_workspace / "package.json").read_text())["version"] == "1.1.0"

    def test_write_preserves_formatting(self, tmp_path: Path):
        """Only the top-level version string changes."""
        (tmp_path / "package.json").write_text(
            '{\n    "name": "x",\n    "version": "1.0.0",\n'
            '    "config": {\n        "version": "keep"\n    }\n}\n'
        )
        update_package_json_version(tmp_path, "2.0.0")

        assert (tmp_path / "package.json").read_text() == (
            '{\n    "name": "x",\n    "version": "2.0.0",\n'
            '    "config": {\n        "version": "keep"\n    }\n}\n'
        )


class TestPythonAdapter:
    """Tests for the uv workspace adapter."""

    def test_accept(self, uv_workspace: Path, tmp_path: Path):
        assert PythonAdapter().accept(uv_workspace)

        plain = tmp_path / "plain"
        plain.mkdir()
        (plain / "pyproject.toml").write_text('[project]\nname = "x"\nversion = "1.0.0"\n')
        assert not PythonAdapter().accept(plain)

    def test_detect(self, uv_workspace: Path):
        registry = PythonAdapter().create_detector(uv_workspace).detect()

        assert set(registry.get_module_ids()) == {"acme", "acme-core", "acme-cli"}
        assert registry.root_module == "acme"

        cli = registry.get_module("acme-cli")
        assert cli.path == "libs/cli"
        assert cli.name == "acme-cli"
        # Names are normalised before matching siblings.
        assert cli.dependencies == frozenset({"acme-core"})
        assert registry.get_module("acme-core").version == Version(2, 0, 0)

    def test_optional_dependencies_are_edges(self, uv_workspace: Path):
        core = uv_workspace / "libs" / "core" / "pyproject.toml"
        core.write_text(
            '[project]\nname = "acme_core"\nversion = "2.0.0"\n\n'
            '[project.optional-dependencies]\ncli = ["acme-cli"]\n'
        )
        registry = PythonAdapter().create_detector(uv_workspace).detect()
        assert registry.get_dependencies("acme-core") == frozenset({"acme-cli"})

    def test_exclude(self, uv_workspace: Path):
        root = uv_workspace / "pyproject.toml"
        root.write_text(
            root.read_text().replace(
                'members = ["libs/*"]', 'members = ["libs/*"]\nexclude = ["libs/cli"]'
            )
        )
        registry = PythonAdapter().create_detector(uv_workspace).detect()
        assert "acme-cli" not in registry

    def test_invalid_toml(self, uv_workspace: Path):
        (uv_workspace / "libs" / "core" / "pyproject.toml").write_text("[project\n")
        with pytest.raises(ModuleDetectionError, match="Invalid TOML"):
            PythonAdapter().create_detector(uv_workspace).detect()

    def test_write_version_updates(self, uv_workspace: Path):
        adapter = PythonAdapter()
        registry = adapter.create_detector(uv_workspace).detect()
        strategy = adapter.create_update_strategy(uv_workspace, registry)

        strategy.write_version_updates({"acme-core": "2.1.0"})

        assert (uv_workspace / "libs" / "core" / "pyproject.toml").read_text() == (
            '[project]\nname = "acme_core"\nversion = "2.1.0"\n# pinned by release tooling\n'
        )

    def test_write_only_touches_project_table(self, tmp_path: Path):
        (tmp_path / "pyproject.toml").write_text(
            '[tool.other]\nversion = "9.9.9"\n\n[project]\nname = "x"\nversion = \'1.0.0\'\n'
        )

        update_pyproject_version(tmp_path, "1.0.1")

        assert (tmp_path / "pyproject.toml").read_text() == (
            '[tool.other]\nversion = "9.9.9"\n\n[project]\nname = "x"\nversion = \'1.0.1\'\n'
        )

    def test_write_without_version(self, tmp_path: Path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\ndynamic = ["version"]\n')
        with pytest.raises(VersionNotFoundError):
            update_pyproject_version(tmp_path, "1.0.0")


class TestMavenAdapter:
    """Tests for the Maven reactor adapter."""

    def test_accept(self, maven_reactor: Path, tmp_path: Path):
        assert MavenAdapter().accept(maven_reactor)

        single = tmp_path / "single"
        single.mkdir()
        (single / "pom.xml").write_text(
            "<project><groupId>g</groupId><artifactId>a</artifactId></project>"
        )
        assert not MavenAdapter().accept(single)

    def test_detect(self, maven_reactor: Path):
        registry = MavenAdapter().create_detector(maven_reactor).detect()

        assert registry.get_module_ids() == [":", ":core", ":app"]
        assert registry.root_module == ":"

        core = registry.get_module(":core")
        assert core.name == "acme-core"
        assert core.version == Version(1, 2, 0)
        assert core.attributes["parent"] == "com.acme:acme-parent"
        # Aggregated modules depend on their aggregator.
        assert core.dependencies == frozenset({":"})

    def test_inherited_version(self, maven_reactor: Path):
        """A module without <version> takes the parent's and is marked undeclared."""
        app = MavenAdapter().create_detector(maven_reactor).detect().get_module(":app")

        assert app.version == Version(1, 0, 0)
        assert not app.declared_version
        assert app.dependencies == frozenset({":", ":core"})

    def test_detect_without_root(self, maven_reactor: Path):
        registry = MavenAdapter().create_detector(maven_reactor, {"include_root": False}).detect()

        assert registry.get_module_ids() == [":core", ":app"]
        assert registry.get_dependencies(":core") == frozenset()

    def test_nested_module_ids(self, maven_reactor: Path):
        services = maven_reactor / "services"
        (services / "api").mkdir(parents=True)
        (services / "pom.xml").write_text(
            "<project><groupId>com.acme</groupId><artifactId>services</artifactId>"
            "<version>1.0.0</version><modules><module>api</module></modules></project>"
        )
        (services / "api" / "pom.xml").write_text(
            "<project><groupId>com.acme</groupId><artifactId>api</artifactId>"
            "<version>0.1.0</version></project>"
        )
        root_pom = maven_reactor / "pom.xml"
        root_pom.write_text(
            root_pom.read_text().replace(
                "<module>app</module>", "<module>app</module>\n    <module>services</module>"
            )
        )

        registry = MavenAdapter().create_detector(maven_reactor).detect()

        api = registry.get_module(":services:api")
        assert api.path == "services/api"
        assert api.dependencies == frozenset({":", ":services"})

    def test_missing_module_pom(self, maven_reactor: Path):
        (maven_reactor / "app" / "pom.xml").unlink()
        with pytest.raises(ModuleDetectionError, match="pom.xml not found"):
            MavenAdapter().create_detector(maven_reactor).detect()

    def test_missing_artifact_id(self, maven_reactor: Path):
        core_pom = maven_reactor / "core" / "pom.xml"
        core_pom.write_text(core_pom.read_text().replace("<artifactId>acme-core</artifactId>", ""))
        with pytest.raises(ModuleDetectionError, match="missing groupId/artifactId"):
            MavenAdapter().create_detector(maven_reactor).detect()

    def test_invalid_xml(self, maven_reactor: Path):
        (maven_reactor / "core" / "pom.xml").write_text("<project>")
        with pytest.raises(ModuleDetectionError, match="Invalid XML"):
            MavenAdapter().create_detector(maven_reactor).detect()

    def test_write_version_updates(self, maven_reactor: Path):
        """Parent references follow the released parent; inherited versions stay absent."""
        adapter = MavenAdapter()
        registry = adapter.create_detector(maven_reactor).detect()
        strategy = adapter.create_update_strategy(maven_reactor, registry)

        written = strategy.write_version_updates({":": "1.1.0", ":core": "1.3.0"})

        assert written == [
            maven_reactor / "pom.xml",
            maven_reactor / "core" / "pom.xml",
            maven_reactor / "app" / "pom.xml",
        ]
        root = load_pom(maven_reactor)
        assert root.version == "1.1.0"
        core = load_pom(maven_reactor / "core")
        assert core.version == "1.3.0"
        assert core.parent is not None and core.parent.version == "1.1.0"
        assert core.dependencies[0].version == "4.13.2"
        app = load_pom(maven_reactor / "app")
        assert app.version is None
        assert app.parent is not None and app.parent.version == "1.1.0"
        assert app.dependencies[0].version == "1.2.0"

    def test_write_preserves_comments(self, maven_reactor: Path):
        update_pom_versions(maven_reactor, project_version="2.0.0")

        content = (maven_reactor / "pom.xml").read_text()
        assert "<!-- released as <version>0.9.0</version> before the split -->" in content
        assert "  <version>2.0.0</version>\n  <packaging>pom</packaging>" in content

    def test_write_missing_version(self, maven_reactor: Path):
        with pytest.raises(VersionNotFoundError, match="project/version"):
            update_pom_versions(maven_reactor / "app", project_version="1.0.1")


class TestAdapterRegistry:
    """Tests for adapter lookup and resolution."""

    def test_protocols(self, npm_workspace: Path):
        adapter = NpmAdapter()
        detector = adapter.create_detector(npm_workspace)

        assert isinstance(adapter, Adapter)
        assert isinstance(detector, ModuleDetector)
        assert isinstance(
            adapter.create_update_strategy(npm_workspace, detector.detect()),
            VersionUpdateStrategy,
        )

    def test_default_registry(self):
        assert default_registry().get_supported_adapters() == ["npm", "python", "maven"]

    def test_explicit_id_is_case_insensitive(self, tmp_path: Path):
        adapter = resolve_adapter(default_registry(), tmp_path, "NPM")
        assert adapter.metadata.id == "npm"

    def test_unknown_id(self, tmp_path: Path):
        with pytest.raises(
            UnsupportedAdapterError, match="Supported adapters: npm, python, maven"
        ) as e:
            resolve_adapter(default_registry(), tmp_path, "gradle")
        assert e.value.supported == ["npm", "python", "maven"]

    def test_auto_detect(self, uv_workspace: Path):
        assert resolve_adapter(default_registry(), uv_workspace).metadata.id == "python"

    def test_nothing_detected(self, tmp_path: Path):
        with pytest.raises(UnsupportedAdapterError, match="auto-detected"):
            resolve_adapter(default_registry(), tmp_path)

    def test_failing_adapter_is_skipped(self, uv_workspace: Path):
        """An adapter whose check raises does not stop detection."""
        (uv_workspace / "package.json").write_text("{broken")
        assert resolve_adapter(default_registry(), uv_workspace).metadata.id == "python"

    def test_first_accepting_adapter_wins(self, npm_workspace: Path):
        (npm_workspace / "pyproject.toml").write_text('[tool.uv.workspace]\nmembers = ["x"]\n')

        registry = AdapterRegistry([PythonAdapter(), NpmAdapter()])

        assert resolve_adapter(registry, npm_workspace).metadata.id == "python"
