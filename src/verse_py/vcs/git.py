"""Git operations via the ``git`` command line.

Commits are read per module with pathspec filters, so each module only
sees commits touching its own directory. Parent modules exclude the paths
of their child modules, which keeps a commit from being counted twice in a
nested layout.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from verse_py.core.commits import CommitInfo, parse_commit
from verse_py.exceptions import GitError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from verse_py.core.registry import Module, ModuleRegistry

logger = logging.getLogger(__name__)

COMMIT_SEPARATOR = "---COMMIT-END---"
LOG_FORMAT = f"--format=%H%n%s%n%b%n{COMMIT_SEPARATOR}"

_MODULE_TAG = re.compile(r"^(?P<module>.+)@(?P<version>.+)$")
_VERSION_TAG = re.compile(r"^v?(?P<version>\d+\.\d+\.\d+.*)$")


@dataclass(frozen=True)
class GitTag:
    """A tag, with the module and version decoded from its name when possible."""

    name: str
    hash: str
    module: str | None = None
    version: str | None = None


def parse_tag_name(tag_name: str) -> tuple[str | None, str | None]:
    """Split a tag name into ``(module, version)``.

    ``core@1.2.0`` -> ``("core", "1.2.0")``, ``v1.2.0`` -> ``(None, "1.2.0")``.
    """
    match = _MODULE_TAG.match(tag_name)
    if match:
        return match.group("module"), match.group("version")
    match = _VERSION_TAG.match(tag_name)
    if match:
        return None, match.group("version")
    return None, None


def parse_git_log(output: str, module: str | None = None) -> list[CommitInfo]:
    """Parse ``git log`` output written with :data:`LOG_FORMAT`."""
    commits = []
    for block in output.split(COMMIT_SEPARATOR):
        lines = block.strip().split("\n")
        if len(lines) < 2:
            continue
        sha, subject, *body = lines
        message = subject + "\n\n" + "\n".join(body)
        commits.append(parse_commit(message, sha.strip(), module=module))
    return commits


class GitRepository:
    """A git working tree."""

    def __init__(self, path: Path) -> None:
        self.path = path.resolve()
        try:
            inside = self._run("rev-parse", "--is-inside-work-tree")
        except GitError as e:
            raise GitError(f"Not a git repository: {self.path}", stderr=e.stderr) from e
        if inside != "true":
            raise GitError(f"Not a git working tree: {self.path}")

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"git {' '.join(args)} failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e
        return result.stdout.strip()

    def is_dirty(self) -> bool:
        return bool(self._run("status", "--porcelain"))

    def get_short_sha(self, ref: str = "HEAD") -> str:
        return self._run("rev-parse", "--short", ref)

    def get_commits_in_range(
        self,
        revision_range: str = "",
        path_filter: str | None = None,
        exclude_paths: Sequence[str] = (),
        module: str | None = None,
    ) -> list[CommitInfo]:
        """Commits in ``revision_range`` (all history when empty), newest first.

        Failures are logged and yield an empty list.
        """
        args = ["log", LOG_FORMAT]
        if revision_range.strip():
            args.append(revision_range)

        excludes = [f":(exclude){p}" for p in exclude_paths if p and p != "."]
        if path_filter and path_filter != ".":
            args.extend(["--", path_filter, *excludes])
        elif excludes:
            args.extend(["--", ".", *excludes])

        try:
            output = self._run(*args)
        except GitError as e:
            logger.warning("Failed to get git commits: %s", e.stderr or e)
            return []
        return parse_git_log(output, module=module)

    def get_last_tag_for_module(self, module_name: str, module_type: str) -> str | None:
        """Newest ``<name>@*`` tag of a module, else the nearest tag on HEAD."""
        if module_type != "root":
            try:
                output = self._run("tag", "-l", f"{module_name}@*", "--sort=-version:refname")
            except GitError:
                output = ""
            if output:
                return output.splitlines()[0]

        try:
            return self._run("describe", "--tags", "--abbrev=0", "HEAD") or None
        except GitError:
            return None

    def get_commits_since_last_tag(
        self,
        module: Module,
        exclude_paths: Sequence[str] = (),
    ) -> list[CommitInfo]:
        last_tag = self.get_last_tag_for_module(module.name, module.type)
        revision_range = f"{last_tag}..HEAD" if last_tag else ""
        return self.get_commits_in_range(
            revision_range, module.path, exclude_paths, module=module.id
        )

    def get_all_tags(self) -> list[GitTag]:
        try:
            output = self._run("tag", "-l", "--format=%(refname:short) %(objectname)")
        except GitError as e:
            logger.warning("Failed to list tags: %s", e.stderr or e)
            return []

        tags = []
        for line in output.splitlines():
            if not line.strip():
                continue
            name, _, sha = line.partition(" ")
            module, version = parse_tag_name(name)
            tags.append(GitTag(name=name, hash=sha, module=module, version=version))
        return tags

    def add_files(self, paths: Sequence[Path]) -> None:
        """Stage ``paths``, given absolute or relative to the working tree."""
        if paths:
            self._run("add", "--", *(str(p) for p in paths))

    def has_staged_changes(self) -> bool:
        return bool(self._run("diff", "--cached", "--name-only"))

    def commit(self, message: str) -> str:
        """Commit the staged changes and return the new commit's SHA."""
        self._run("commit", "-m", message)
        return self._run("rev-parse", "HEAD")

    def create_tag(self, tag_name: str, message: str) -> None:
        self._run("tag", "-a", tag_name, "-m", message)

    def push_tags(self, remote: str = "origin") -> None:
        self._run("push", remote, "--tags")


def analyze_module_commits(
    repo: GitRepository,
    registry: ModuleRegistry,
) -> dict[str, list[CommitInfo]]:
    """Collect each module's commits since its last release.

    A parent module excludes the directories of its nested modules, so each
    commit is attributed to the most specific module it touches.
    """
    logger.info("Analyzing commits since last release...")

    module_commits: dict[str, list[CommitInfo]] = {}
    for module in registry:
        child_paths = registry.find_child_module_paths(module.id)
        if child_paths:
            logger.debug(
                "Module %s excludes %d child module(s): %s",
                module.id,
                len(child_paths),
                ", ".join(child_paths),
            )
        module_commits[module.id] = repo.get_commits_since_last_tag(module, child_paths)

    total = sum(len(c) for c in module_commits.values())
    logger.info("Analyzed %d commits across %d modules", total, len(module_commits))
    return module_commits
