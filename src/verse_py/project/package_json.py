"""package.json version manipulation.

Like the pyproject.toml helpers, the version is replaced in place and the
rest of the file is left byte for byte as it was.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from verse_py.exceptions import ProjectError, VersionNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

PACKAGE_JSON = "package.json"

# A "version" key at the start of a line; the top-level one is picked by indent
_VERSION_KEY = re.compile(r'^([ \t]*"version"\s*:\s*")([^"]*)(")', re.MULTILINE)


def load_package_json(path: Path) -> dict[str, Any]:
    """Read a package.json file (or the one inside a directory).

    Raises:
        ProjectError: If the file is missing or not a JSON object
    """
    manifest = path / PACKAGE_JSON if path.is_dir() else path
    if not manifest.is_file():
        raise ProjectError(f"package.json not found: {manifest}")
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ProjectError(f"Invalid JSON in {manifest}: {e}") from e
    if not isinstance(data, dict):
        raise ProjectError(f"Expected a JSON object in {manifest}")
    return data


def update_package_json_version(path: Path, new_version: str) -> Path:
    """Set the top-level ``"version"`` of a package.json.

    Raises:
        VersionNotFoundError: If the manifest has no version field
        ProjectError: If the file is missing or invalid
    """
    manifest = path / PACKAGE_JSON if path.is_dir() else path
    data = load_package_json(manifest)
    if "version" not in data:
        raise VersionNotFoundError(f"No version field in {manifest}")

    content = manifest.read_text(encoding="utf-8")
    indent = _top_level_indent(content)
    for match in _VERSION_KEY.finditer(content):
        if len(match.group(1)) - len(match.group(1).lstrip()) == indent:
            new_content = (
                content[: match.start(2)] + new_version + content[match.end(2) :]
            )
            manifest.write_text(new_content, encoding="utf-8")
            return manifest

    # Minified or unusual layout: rewrite the document.
    data["version"] = new_version
    manifest.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return manifest


def _top_level_indent(content: str) -> int:
    for line in content.splitlines()[1:]:
        stripped = line.lstrip()
        if stripped.startswith('"'):
            return len(line) - len(stripped)
    return 2
