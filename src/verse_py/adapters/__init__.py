"""Build-system adapters."""

from verse_py.adapters.base import (
    Adapter,
    AdapterCapabilities,
    AdapterMetadata,
    ModuleDetector,
    VersionUpdateStrategy,
)
from verse_py.adapters.registry import AdapterRegistry, default_registry, resolve_adapter

__all__ = [
    "Adapter",
    "AdapterCapabilities",
    "AdapterMetadata",
    "AdapterRegistry",
    "ModuleDetector",
    "VersionUpdateStrategy",
    "default_registry",
    "resolve_adapter",
]
