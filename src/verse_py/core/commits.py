"""Conventional commit parsing.

Parses commit messages following the Conventional Commits specification:
https://www.conventionalcommits.org/

Format: <type>[optional scope][!]: <description>

    [optional body]

    [optional footer(s)]

Parsing never fails: a header that does not follow the convention yields a
:class:`CommitInfo` with an empty ``type``, which the bump resolver maps
through the configured default bump.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from verse_py.core.bump import get_bump_type_for_commit
from verse_py.core.version import BumpType, max_bump

if TYPE_CHECKING:
    from verse_py.config.models import VerseConfig

# <type>(<scope>)!: <description>
HEADER_PATTERN = re.compile(
    r"^(?P<type>[A-Za-z][\w-]*)"
    r"(?:\((?P<scope>[^()\r\n]*)\))?"
    r"(?P<breaking>!)?"
    r":[ \t]+(?P<subject>\S.*)$"
)

BREAKING_FOOTER_PATTERN = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)


@dataclass(frozen=True)
class CommitInfo:
    """A classified commit.

    Attributes:
        hash: Full commit SHA
        type: Lowercased commit type, or ``""`` for a non-conventional header
        subject: Description after ``type:``, or the raw header when malformed
        scope: Optional scope from ``type(scope):``
        body: Everything after the header, or None
        breaking: Whether the commit declares a breaking change
        module: Id of the module the commit was attributed to, if known
    """

    hash: str
    type: str
    subject: str
    scope: str | None = None
    body: str | None = None
    breaking: bool = False
    module: str | None = None

    @property
    def is_conventional(self) -> bool:
        return bool(self.type)

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


def parse_commit(raw_message: str, hash: str, module: str | None = None) -> CommitInfo:  # noqa: A002
    """Parse a raw commit message into a :class:`CommitInfo`.

    Args:
        raw_message: Full commit message (header, blank line, body)
        hash: Commit SHA
        module: Optional id of the module this commit belongs to

    Returns:
        Structured commit; malformed headers produce ``type == ""``
    """
    header, _, rest = raw_message.strip().partition("\n")
    header = header.strip()
    body = rest.strip() or None

    footer_breaking = bool(body and BREAKING_FOOTER_PATTERN.search(body))

    match = HEADER_PATTERN.match(header)
    if not match:
        return CommitInfo(
            hash=hash,
            type="",
            subject=header,
            body=body,
            breaking=footer_breaking,
            module=module,
        )

    scope = match.group("scope")
    if scope is not None:
        scope = scope.strip() or None
    return CommitInfo(
        hash=hash,
        type=match.group("type").lower(),
        scope=scope,
        subject=match.group("subject").strip(),
        body=body,
        breaking=bool(match.group("breaking")) or footer_breaking,
        module=module,
    )


def parse_commits(
    messages: Iterable[tuple[str, str]],
    module: str | None = None,
) -> list[CommitInfo]:
    """Parse ``(hash, message)`` pairs, keeping their order."""
    return [parse_commit(message, sha, module=module) for sha, message in messages]


def calculate_bump(commits: Iterable[CommitInfo], config: VerseConfig) -> BumpType:
    """Resolve a module's local bump: the highest bump any of its commits implies.

    Args:
        commits: Commits attributed to the module
        config: Configuration with commit type mappings

    Returns:
        The highest bump, or ``BumpType.NONE`` for no commits
    """
    return max_bump(
        *(get_bump_type_for_commit(c.type, c.breaking, config) for c in commits)
    )


def group_commits_by_type(commits: Iterable[CommitInfo]) -> dict[str, list[CommitInfo]]:
    """Group commits by type; non-conventional commits go under ``"other"``."""
    grouped: dict[str, list[CommitInfo]] = defaultdict(list)
    for commit in commits:
        grouped[commit.type or "other"].append(commit)
    return dict(grouped)


def get_breaking_changes(commits: Iterable[CommitInfo]) -> list[CommitInfo]:
    return [c for c in commits if c.breaking]


def format_commit_for_changelog(
    commit: CommitInfo,
    include_scope: bool = True,
    include_sha: bool = False,
) -> str:
    """Format a commit as a markdown list entry.

    Args:
        commit: Commit to format
        include_scope: Prefix the entry with a bold scope
        include_sha: Append the short SHA

    Returns:
        Formatted string like ``- **api:** add endpoint (abc1234)``
    """
    parts = ["-"]

    if commit.breaking:
        parts.append("[BREAKING]")

    if include_scope and commit.scope:
        parts.append(f"**{commit.scope}:**")

    parts.append(commit.subject)

    if include_sha:
        parts.append(f"({commit.short_hash})")

    return " ".join(parts)
