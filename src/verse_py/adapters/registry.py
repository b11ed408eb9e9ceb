"""Lookup of build-system adapters by id or by auto-detection."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from verse_py.exceptions import UnsupportedAdapterError, VerseError

if TYPE_CHECKING:
    from pathlib import Path

    from verse_py.adapters.base import Adapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters indexed by id, in registration order."""

    def __init__(self, adapters: Iterable[Adapter]) -> None:
        self._adapters: dict[str, Adapter] = {}
        for adapter in adapters:
            self._adapters[adapter.metadata.id.lower()] = adapter

    def get(self, adapter_id: str) -> Adapter | None:
        return self._adapters.get(adapter_id.lower())

    def get_supported_adapters(self) -> list[str]:
        return list(self._adapters)

    def identify(self, project_root: Path) -> Adapter | None:
        """First adapter that accepts ``project_root``.

        An adapter whose check raises is skipped so one faulty adapter does
        not prevent the others from being tried.
        """
        for adapter_id, adapter in self._adapters.items():
            try:
                if adapter.accept(project_root):
                    return adapter
            except (OSError, ValueError, VerseError) as e:
                logger.debug("Adapter %s failed to inspect %s: %s", adapter_id, project_root, e)
        return None


def resolve_adapter(
    registry: AdapterRegistry,
    project_root: Path,
    adapter_id: str | None = None,
) -> Adapter:
    """Pick the adapter for a project.

    Args:
        registry: Available adapters
        project_root: Repository root used for auto-detection
        adapter_id: Explicit adapter id (case-insensitive)

    Raises:
        UnsupportedAdapterError: If ``adapter_id`` is unknown, or no adapter
            accepts the project
    """
    supported = registry.get_supported_adapters()

    if adapter_id:
        adapter = registry.get(adapter_id)
        if adapter is None:
            raise UnsupportedAdapterError(f"Unsupported adapter '{adapter_id}'.", supported)
        logger.info("Using explicitly provided adapter: %s", adapter.metadata.id)
        return adapter

    adapter = registry.identify(project_root)
    if adapter is None:
        raise UnsupportedAdapterError(
            "No project adapter could be auto-detected. Specify the adapter explicitly.",
            supported,
        )
    logger.info("Auto-detected adapter: %s", adapter.metadata.id)
    return adapter


def default_registry() -> AdapterRegistry:
    """Registry holding the built-in adapters."""
    from verse_py.adapters.maven import MavenAdapter
    from verse_py.adapters.npm import NpmAdapter
    from verse_py.adapters.python import PythonAdapter

    return AdapterRegistry([NpmAdapter(), PythonAdapter(), MavenAdapter()])
