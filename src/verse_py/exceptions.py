"""Exception hierarchy for verse-py.

All errors raised by verse-py derive from :class:`VerseError`, so callers
(the CLI in particular) can catch a single type and report it cleanly.
"""

from __future__ import annotations


class VerseError(Exception):
    """Base class for all verse-py errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(VerseError):
    """Configuration could not be loaded."""


class ConfigNotFoundError(ConfigError):
    """An explicitly requested configuration file does not exist."""


class ConfigValidationError(ConfigError):
    """Configuration contains an invalid value."""


# =============================================================================
# Module graph and cascade
# =============================================================================


class ModuleNotFoundError(VerseError):  # noqa: A001
    """A module id was looked up that the registry does not contain."""

    def __init__(self, module_id: str) -> None:
        self.module_id = module_id
        super().__init__(f"Module {module_id} not found")


class CascadeError(VerseError):
    """The cascade did not reach a fixed point within its iteration cap."""


# =============================================================================
# Versions
# =============================================================================


class VersionError(VerseError):
    """A version could not be computed."""


class InvalidVersionError(VersionError):
    """A version string is not valid semantic versioning."""


# =============================================================================
# Adapters and projects
# =============================================================================


class AdapterError(VerseError):
    """Base class for build-system adapter errors."""


class UnsupportedAdapterError(AdapterError):
    """The requested adapter is unknown, or none could be auto-detected."""

    def __init__(self, message: str, supported: list[str]) -> None:
        self.supported = supported
        super().__init__(f"{message} Supported adapters: {', '.join(supported) or '(none)'}")


class ModuleDetectionError(AdapterError):
    """An adapter failed to read the module structure of a project."""


class ProjectError(VerseError):
    """A build manifest could not be read or updated."""


class VersionNotFoundError(ProjectError):
    """A build manifest does not declare a version."""


# =============================================================================
# Git
# =============================================================================


class GitError(VerseError):
    """A git operation failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        self.stderr = stderr
        super().__init__(message)
