"""Semantic versions and bump types.

:class:`BumpType` is the four-level lattice the cascade works over
(``none < patch < minor < major``). :class:`Version` implements the
SemVer 2.0 arithmetic used once the final bump of a module is known.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal

from verse_py.exceptions import InvalidVersionError, VersionError


class BumpType(StrEnum):
    """Kind of version bump, totally ordered from NONE to MAJOR."""

    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, BumpType):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, BumpType):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, BumpType):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, BumpType):
            return NotImplemented
        return self.rank >= other.rank


_RANKS = {BumpType.NONE: 0, BumpType.PATCH: 1, BumpType.MINOR: 2, BumpType.MAJOR: 3}

IGNORE = "ignore"
"""Commit-type mapping that makes a commit contribute nothing."""

CommitBump = BumpType | Literal["ignore"]


def max_bump(*bumps: BumpType) -> BumpType:
    """Return the highest bump, or NONE when called without arguments.

    >>> max_bump(BumpType.PATCH, BumpType.MINOR)
    <BumpType.MINOR: 'minor'>
    """
    result = BumpType.NONE
    for bump in bumps:
        if bump > result:
            result = bump
    return result


_SEMVER_RE = re.compile(
    r"""
    ^v?
    (?P<major>0|[1-9]\d*)\.
    (?P<minor>0|[1-9]\d*)\.
    (?P<patch>0|[1-9]\d*)
    (?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    (?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?
    $
    """,
    re.VERBOSE,
)

SNAPSHOT_SUFFIX = "-SNAPSHOT"


def _identifier(part: str) -> str | int:
    if part.isdigit() and (part == "0" or not part.startswith("0")):
        return int(part)
    return part


@dataclass(frozen=True)
class Version:
    """A SemVer 2.0 version.

    Prerelease identifiers are kept as a tuple of ints and strings so that
    numeric counters can be incremented. Build metadata is carried verbatim
    and does not take part in any arithmetic.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str | int, ...] = ()
    build: tuple[str, ...] = ()

    @classmethod
    def parse(cls, version: str) -> Version:
        """Parse a version string, accepting an optional leading ``v``.

        Raises:
            InvalidVersionError: If the string is not a semantic version
        """
        match = _SEMVER_RE.match(version.strip())
        if not match:
            raise InvalidVersionError(f"Invalid semantic version: {version!r}")

        prerelease = match.group("prerelease")
        build = match.group("build")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=tuple(_identifier(p) for p in prerelease.split(".")) if prerelease else (),
            build=tuple(build.split(".")) if build else (),
        )

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(str(p) for p in self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def bump(self, bump_type: BumpType) -> Version:
        """Return the next release version.

        A prerelease is finalised rather than skipped over, so
        ``2.0.0-rc.1`` bumped MAJOR becomes ``2.0.0``.
        """
        if bump_type == BumpType.NONE:
            return self

        if bump_type == BumpType.MAJOR:
            if self.prerelease and self.minor == 0 and self.patch == 0:
                return Version(self.major, 0, 0)
            return Version(self.major + 1, 0, 0)

        if bump_type == BumpType.MINOR:
            if self.prerelease and self.patch == 0:
                return Version(self.major, self.minor, 0)
            return Version(self.major, self.minor + 1, 0)

        if self.prerelease:
            return Version(self.major, self.minor, self.patch)
        return Version(self.major, self.minor, self.patch + 1)

    def bump_prerelease(self, bump_type: BumpType, identifier: str) -> Version:
        """Return the next prerelease version.

        With NONE an existing prerelease counter is incremented, and a
        release version becomes a prerelease of its next patch. Any other
        bump starts a fresh ``<identifier>.0`` prerelease of the bumped
        version.
        """
        if not identifier:
            raise VersionError("Prerelease identifier must not be empty")

        if bump_type == BumpType.NONE:
            if self.prerelease:
                return replace(self, prerelease=self._next_prerelease(identifier), build=())
            return Version(self.major, self.minor, self.patch + 1, (*_split(identifier), 0))

        if bump_type == BumpType.MAJOR:
            target = Version(self.major + 1, 0, 0)
        elif bump_type == BumpType.MINOR:
            target = Version(self.major, self.minor + 1, 0)
        else:
            target = Version(self.major, self.minor, self.patch + 1)
        return replace(target, prerelease=(*_split(identifier), 0))

    def _next_prerelease(self, identifier: str) -> tuple[str | int, ...]:
        prefix = _split(identifier)
        current = self.prerelease
        if current[: len(prefix)] == prefix:
            tail = current[len(prefix) :]
            if tail and isinstance(tail[-1], int):
                return (*current[:-1], tail[-1] + 1)
            return (*current, 0)
        return (*prefix, 0)

    def with_build_metadata(self, metadata: str) -> Version:
        return replace(self, build=tuple(metadata.split(".")))

    def with_snapshot(self) -> str:
        """Render the version with a ``-SNAPSHOT`` suffix, at most once."""
        text = str(self)
        if text.endswith(SNAPSHOT_SUFFIX):
            return text
        return text + SNAPSHOT_SUFFIX


def _split(identifier: str) -> tuple[str | int, ...]:
    return tuple(_identifier(p) for p in identifier.split("."))


def parse_version(version: str) -> Version:
    """Parse a version string. Shortcut for :meth:`Version.parse`."""
    return Version.parse(version)


def timestamp_prerelease_id(base_id: str, when: datetime | None = None) -> str:
    """Build a ``<base>.YYYYMMDD.HHMM`` prerelease identifier in UTC."""
    moment = (when or datetime.now(UTC)).astimezone(UTC)
    return f"{base_id}.{moment:%Y%m%d}.{moment:%H%M}"
