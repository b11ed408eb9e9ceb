"""pyproject.toml version writing.

The ``[project].version`` line is replaced with a targeted regex so comments,
ordering and quoting of the rest of the file survive untouched.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from verse_py.exceptions import ProjectError, VersionNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

PYPROJECT = "pyproject.toml"

# Matches the whole [project] table up to the next table header or EOF
_PROJECT_SECTION = re.compile(r"^\[project\][^\n]*\n.*?(?=^\[|\Z)", re.MULTILINE | re.DOTALL)
_VERSION_LINE = re.compile(r'^(version\s*=\s*)(["\'])([^"\']+)\2', re.MULTILINE)


def update_pyproject_version(path: Path, new_version: str) -> Path:
    """Set ``[project].version`` in a pyproject.toml.

    Args:
        path: Path to pyproject.toml or the directory containing it
        new_version: Version string to write

    Returns:
        Path to the updated file

    Raises:
        VersionNotFoundError: If the [project] table declares no version
        ProjectError: If the file does not exist
    """
    pyproject_path = path / PYPROJECT if path.is_dir() else path
    if not pyproject_path.is_file():
        raise ProjectError(f"pyproject.toml not found: {pyproject_path}")
    content = pyproject_path.read_text(encoding="utf-8")

    section = _PROJECT_SECTION.search(content)
    if not section or not _VERSION_LINE.search(section.group(0)):
        raise VersionNotFoundError(
            f"No [project].version to update in {pyproject_path}"
        )

    updated_section = _VERSION_LINE.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{new_version}{m.group(2)}",
        section.group(0),
        count=1,
    )
    new_content = content[: section.start()] + updated_section + content[section.end() :]
    if new_content != content:
        pyproject_path.write_text(new_content, encoding="utf-8")
    return pyproject_path
