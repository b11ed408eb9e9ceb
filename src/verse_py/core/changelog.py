"""Per-module changelog generation.

Each module gets its own section listing the commits that caused its
version change. Modules bumped only through the cascade get a short note
instead of an empty section.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from verse_py.core.commits import format_commit_for_changelog, group_commits_by_type
from verse_py.core.planner import ChangeReason

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from verse_py.core.commits import CommitInfo
    from verse_py.core.planner import ModuleChange

CHANGELOG_TITLE = "# Changelog"

TYPE_LABELS = {
    "feat": "### Features",
    "fix": "### Bug Fixes",
    "perf": "### Performance",
    "refactor": "### Refactoring",
    "docs": "### Documentation",
    "test": "### Tests",
    "build": "### Build",
    "ci": "### CI",
    "style": "### Style",
    "chore": "### Chores",
    "other": "### Other",
}


def generate_module_changelog(
    change: ModuleChange,
    commits: Sequence[CommitInfo],
    when: datetime | None = None,
    *,
    include_scope: bool = True,
    include_sha: bool = False,
) -> str:
    """Render the changelog section for one module change.

    Args:
        change: The planned change for the module
        commits: Commits attributed to the module
        when: Release date (defaults to now, UTC)
        include_scope: Show commit scopes
        include_sha: Show short SHAs

    Returns:
        Markdown section, ending without a trailing newline
    """
    date = (when or datetime.now(UTC)).strftime("%Y-%m-%d")
    lines = [f"## [{change.to_version}] - {date}", ""]

    # Breaking changes first
    breaking = [c for c in commits if c.breaking]
    if breaking:
        lines.append("### ⚠️ Breaking Changes")
        lines.append("")
        for commit in breaking:
            lines.append(
                format_commit_for_changelog(
                    commit, include_scope=include_scope, include_sha=include_sha
                ).replace("- [BREAKING] ", "- ", 1)
            )
        lines.append("")

    grouped = group_commits_by_type(c for c in commits if not c.breaking)
    for commit_type, label in TYPE_LABELS.items():
        entries = grouped.pop(commit_type, [])
        if entries:
            lines.extend(_section(label, entries, include_scope, include_sha))

    # Custom commit types, in first-seen order
    for commit_type, entries in grouped.items():
        title = f"### {commit_type.capitalize()}"
        lines.extend(_section(title, entries, include_scope, include_sha))

    if change.reason == ChangeReason.CASCADE and not commits:
        lines.append("### Dependencies")
        lines.append("")
        lines.append("- Version bumped because a dependency changed")
        lines.append("")

    return "\n".join(lines).rstrip()


def _section(
    label: str,
    commits: Sequence[CommitInfo],
    include_scope: bool,
    include_sha: bool,
) -> list[str]:
    lines = [label, ""]
    lines.extend(
        format_commit_for_changelog(c, include_scope=include_scope, include_sha=include_sha)
        for c in commits
    )
    lines.append("")
    return lines


def update_changelog_file(path: Path, section: str) -> None:
    """Insert ``section`` at the top of a changelog, below its title.

    The file is created with a ``# Changelog`` title when missing.
    """
    if path.exists():
        existing = path.read_text(encoding="utf-8")
    else:
        existing = CHANGELOG_TITLE + "\n"

    head, _, rest = existing.partition("\n")
    if head.startswith("# "):
        body = rest.lstrip("\n")
        content = f"{head}\n\n{section}\n\n{body}" if body else f"{head}\n\n{section}\n"
    else:
        content = f"{CHANGELOG_TITLE}\n\n{section}\n\n{existing}"

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
