"""Shared fixtures for verse-py tests."""

from __future__ import annotations

import json
import subprocess
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

import pytest

from verse_py.config.models import VerseConfig
from verse_py.core.registry import Module, ModuleRegistry
from verse_py.core.version import Version


def make_module(
    module_id: str,
    dependencies: Iterable[str] = (),
    version: str = "1.0.0",
    path: str | None = None,
    kind: str = "module",
) -> Module:
    """Build a module whose name and path derive from its id."""
    return Module(
        id=module_id,
        name=module_id,
        path=path if path is not None else module_id,
        version=Version.parse(version),
        type=kind,  # type: ignore[arg-type]
        dependencies=frozenset(dependencies),
    )


def make_registry(graph: Mapping[str, Iterable[str]]) -> ModuleRegistry:
    """Registry from an ``id -> dependency ids`` mapping."""
    return ModuleRegistry(make_module(module_id, deps) for module_id, deps in graph.items())


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


@pytest.fixture
def default_config() -> VerseConfig:
    return VerseConfig()


@pytest.fixture
def diamond_registry() -> ModuleRegistry:
    """``app`` depends on ``left`` and ``right``, which both depend on ``base``."""
    return make_registry(
        {
            "base": [],
            "left": ["base"],
            "right": ["base"],
            "app": ["left", "right"],
        }
    )


@pytest.fixture
def chain_registry() -> ModuleRegistry:
    """``c`` depends on ``b``, which depends on ``a``."""
    return make_registry({"a": [], "b": ["a"], "c": ["b"]})


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Path:
    """An empty git repository with a committer identity."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q", "-b", "main")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test User")
    git(repo, "config", "commit.gpgsign", "false")
    git(repo, "config", "tag.gpgsign", "false")
    return repo


@pytest.fixture
def commit_file(temp_git_repo: Path) -> Callable[[str, str], str]:
    """Write a file, commit it with ``message``, return the commit SHA."""
    counter = {"n": 0}

    def _commit(relative: str, message: str) -> str:
        counter["n"] += 1
        target = temp_git_repo / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f"change {counter['n']}\n", encoding="utf-8")
        git(temp_git_repo, "add", "-A")
        git(temp_git_repo, "commit", "-q", "-m", message)
        return git(temp_git_repo, "rev-parse", "HEAD")

    return _commit


@pytest.fixture
def npm_workspace(temp_git_repo: Path) -> Path:
    """An npm workspace: ``@acme/app`` depends on ``@acme/core``."""
    (temp_git_repo / "package.json").write_text(
        json.dumps(
            {
                "name": "acme",
                "version": "1.0.0",
                "private": True,
                "workspaces": ["packages/*"],
            },
            indent=2,
        )
        + "\n",
        encoding="utf-8",
    )
    packages = {
        "core": {"name": "@acme/core", "version": "1.2.0"},
        "app": {
            "name": "@acme/app",
            "version": "0.4.1",
            "dependencies": {"@acme/core": "^1.2.0", "left-pad": "^1.0.0"},
        },
    }
    for directory, manifest in packages.items():
        package_dir = temp_git_repo / "packages" / directory
        package_dir.mkdir(parents=True)
        (package_dir / "package.json").write_text(
            json.dumps(manifest, indent=2) + "\n", encoding="utf-8"
        )
    git(temp_git_repo, "add", "-A")
    git(temp_git_repo, "commit", "-q", "-m", "chore: initial layout")
    return temp_git_repo


@pytest.fixture
def uv_workspace(tmp_path: Path) -> Path:
    """A uv workspace: ``acme-cli`` depends on ``acme_core``."""
    root = tmp_path / "uvws"
    root.mkdir()
    (root / "pyproject.toml").write_text(
        '[project]\nname = "acme"\nversion = "0.1.0"\n\n'
        '[tool.uv.workspace]\nmembers = ["libs/*"]\n',
        encoding="utf-8",
    )
    (root / "libs" / "core").mkdir(parents=True)
    (root / "libs" / "core" / "pyproject.toml").write_text(
        '[project]\nname = "acme_core"\nversion = "2.0.0"\n# pinned by release tooling\n',
        encoding="utf-8",
    )
    (root / "libs" / "cli").mkdir(parents=True)
    (root / "libs" / "cli" / "pyproject.toml").write_text(
        "[project]\n"
        'name = "acme-cli"\n'
        'version = "1.1.0"\n'
        'dependencies = ["Acme.Core>=2.0", "rich>=13"]\n\n'
        "[project.optional-dependencies]\n"
        'dev = ["pytest"]\n',
        encoding="utf-8",
    )
    return root



ROOT_POM = """\
<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <!-- released as <version>0.9.0</version> before the split -->
  <groupId>com.acme</groupId>
  <artifactId>acme-parent</artifactId>
  <version>1.0.0</version>
  <packaging>pom</packaging>
  <modules>
    <module>core</module>
    <module>app</module>
  </modules>
</project>
"""

CORE_POM = """\
<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <parent>
    <groupId>com.acme</groupId>
    <artifactId>acme-parent</artifactId>
    <version>1.0.0</version>
  </parent>
  <artifactId>acme-core</artifactId>
  <version>1.2.0</version>
  <dependencies>
    <dependency>
      <groupId>junit</groupId>
      <artifactId>junit</artifactId>
      <version>4.13.2</version>
    </dependency>
  </dependencies>
</project>
"""

APP_POM = """\
<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <parent>
    <groupId>com.acme</groupId>
    <artifactId>acme-parent</artifactId>
    <version>1.0.0</version>
  </parent>
  <artifactId>acme-app</artifactId>
  <dependencies>
    <dependency>
      <groupId>${project.groupId}</groupId>
      <artifactId>acme-core</artifactId>
      <version>1.2.0</version>
    </dependency>
  </dependencies>
</project>
"""


@pytest.fixture
def maven_reactor(temp_git_repo: Path) -> Path:
    """A Maven reactor: ``acme-app`` inherits its version and depends on ``acme-core``."""
    (temp_git_repo / "pom.xml").write_text(ROOT_POM, encoding="utf-8")
    for directory, pom in (("core", CORE_POM), ("app", APP_POM)):
        (temp_git_repo / directory).mkdir()
        (temp_git_repo / directory / "pom.xml").write_text(pom, encoding="utf-8")
    git(temp_git_repo, "add", "-A")
    git(temp_git_repo, "commit", "-q", "-m", "chore: initial layout")
    return temp_git_repo
