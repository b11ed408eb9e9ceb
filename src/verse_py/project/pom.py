"""pom.xml reading and version writing.

POMs are parsed with defusedxml to read coordinates, modules and
dependencies. Writing works on the raw text: only the text of
``/project/version`` and ``/project/parent/version`` is replaced, so
comments, formatting and dependency versions are left as they are.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree

from verse_py.exceptions import ProjectError, VersionNotFoundError

if TYPE_CHECKING:
    from pathlib import Path
    from xml.etree.ElementTree import Element

POM_XML = "pom.xml"

PROJECT_VERSION = ("project", "version")
PARENT_VERSION = ("project", "parent", "version")

_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG = re.compile(r"<(/?)([A-Za-z_][\w.:-]*)[^>]*?(/?)>")


@dataclass(frozen=True)
class PomCoordinates:
    group_id: str | None
    artifact_id: str | None
    version: str | None = None

    @property
    def coordinate(self) -> str | None:
        if self.group_id and self.artifact_id:
            return f"{self.group_id}:{self.artifact_id}"
        return None


@dataclass(frozen=True)
class Pom:
    """The parts of a POM the Maven adapter needs."""

    group_id: str | None
    artifact_id: str | None
    version: str | None
    parent: PomCoordinates | None = None
    modules: list[str] = field(default_factory=list)
    dependencies: list[PomCoordinates] = field(default_factory=list)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: Element, name: str) -> Element | None:
    for child in element:
        if isinstance(child.tag, str) and _local_name(child.tag) == name:
            return child
    return None


def _children(element: Element | None, name: str) -> list[Element]:
    if element is None:
        return []
    return [c for c in element if isinstance(c.tag, str) and _local_name(c.tag) == name]


def _text(element: Element | None, name: str) -> str | None:
    if element is None:
        return None
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _coordinates(element: Element) -> PomCoordinates:
    return PomCoordinates(
        group_id=_text(element, "groupId"),
        artifact_id=_text(element, "artifactId"),
        version=_text(element, "version"),
    )


def load_pom(path: Path) -> Pom:
    """Parse a pom.xml (or the one inside a directory).

    Raises:
        ProjectError: If the file is missing or not well-formed XML
    """
    pom_path = path / POM_XML if path.is_dir() else path
    if not pom_path.is_file():
        raise ProjectError(f"pom.xml not found: {pom_path}")
    try:
        root = ElementTree.parse(pom_path).getroot()
    except (ElementTree.ParseError, DefusedXmlException) as e:
        raise ProjectError(f"Invalid XML in {pom_path}: {e}") from e

    parent_element = _child(root, "parent")
    return Pom(
        group_id=_text(root, "groupId"),
        artifact_id=_text(root, "artifactId"),
        version=_text(root, "version"),
        parent=_coordinates(parent_element) if parent_element is not None else None,
        modules=[
            m.text.strip()
            for m in _children(_child(root, "modules"), "module")
            if m.text and m.text.strip()
        ],
        dependencies=[
            _coordinates(d) for d in _children(_child(root, "dependencies"), "dependency")
        ],
    )


def _version_spans(content: str) -> dict[tuple[str, ...], tuple[int, int]]:
    """Text spans of the project and parent ``<version>`` elements."""
    # Comments may contain markup; blank them out without moving offsets
    scan = _COMMENT.sub(lambda m: " " * len(m.group(0)), content)

    stack: list[tuple[str, int]] = []
    spans: dict[tuple[str, ...], tuple[int, int]] = {}
    for match in _TAG.finditer(scan):
        closing, name, self_closing = match.groups()
        name = name.rsplit(":", 1)[-1]
        if self_closing:
            continue
        if not closing:
            stack.append((name, match.end()))
            continue
        if not stack or stack[-1][0] != name:
            continue
        _, start = stack.pop()
        element_path = (*(n for n, _ in stack), name)
        if element_path in (PROJECT_VERSION, PARENT_VERSION):
            spans.setdefault(element_path, (start, match.start()))
    return spans


def update_pom_versions(
    path: Path,
    project_version: str | None = None,
    parent_version: str | None = None,
) -> Path:
    """Set ``/project/version`` and/or ``/project/parent/version``.

    Args:
        path: Path to pom.xml or the directory containing it
        project_version: New version of the project itself
        parent_version: New version of the referenced parent POM

    Returns:
        Path to the updated file

    Raises:
        VersionNotFoundError: If a requested element is not in the POM
        ProjectError: If the file does not exist
    """
    pom_path = path / POM_XML if path.is_dir() else path
    if not pom_path.is_file():
        raise ProjectError(f"pom.xml not found: {pom_path}")
    content = pom_path.read_text(encoding="utf-8")
    spans = _version_spans(content)

    requested = ((PROJECT_VERSION, project_version), (PARENT_VERSION, parent_version))
    replacements = []
    for element_path, new_version in requested:
        if new_version is None:
            continue
        if element_path not in spans:
            raise VersionNotFoundError(f"No <{'/'.join(element_path)}> in {pom_path}")
        replacements.append((*spans[element_path], new_version))

    new_content = content
    for start, end, new_version in sorted(replacements, reverse=True):
        current = new_content[start:end]
        value = current.strip()
        updated = current.replace(value, new_version, 1) if value else new_version
        new_content = new_content[:start] + updated + new_content[end:]

    if new_content != content:
        pom_path.write_text(new_content, encoding="utf-8")
    return pom_path
