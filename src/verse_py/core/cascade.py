"""Cascade of version bumps across the module dependency graph.

Bumps only ever move up the four-level lattice ``none < patch < minor <
major``, so repeated full passes over the graph reach a fixed point after a
bounded number of passes. Cycles need no special treatment: every module in
a cycle settles once the cycle agrees on the highest bump the rules imply.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from verse_py.core.bump import get_dependency_bump_type
from verse_py.core.version import BumpType
from verse_py.exceptions import CascadeError

if TYPE_CHECKING:
    from verse_py.config.models import DependencyRules, VerseConfig
    from verse_py.core.registry import ModuleRegistry

logger = logging.getLogger(__name__)

LATTICE_HEIGHT = 4


def compute_final_bumps(
    local_bumps: Mapping[str, BumpType],
    registry: ModuleRegistry,
    dependency_rules: DependencyRules | VerseConfig,
) -> dict[str, BumpType]:
    """Propagate local bumps to dependents until nothing changes.

    Args:
        local_bumps: Bump implied by each module's own commits; modules
            missing from the mapping start at NONE
        registry: Module graph
        dependency_rules: Cascade rules, or a configuration holding them

    Returns:
        A new mapping with the final bump of every module. Inputs are
        never modified.

    Raises:
        CascadeError: If no fixed point is reached within
            ``len(registry) * 4`` passes
    """
    result: dict[str, BumpType] = {
        module_id: BumpType(bump) for module_id, bump in local_bumps.items()
    }
    for module_id in registry.get_module_ids():
        result.setdefault(module_id, BumpType.NONE)

    max_passes = max(1, len(registry)) * LATTICE_HEIGHT
    reported: set[tuple[str, str]] = set()

    for passes in range(1, max_passes + 1):
        changed = False

        for module in registry:
            current = result[module.id]
            for dependency in sorted(module.dependencies):
                if dependency not in registry:
                    if (module.id, dependency) not in reported:
                        reported.add((module.id, dependency))
                        logger.debug(
                            "Skipping dependency %s of %s: not a tracked module",
                            dependency,
                            module.id,
                        )
                    continue

                derived = get_dependency_bump_type(result[dependency], dependency_rules)
                if derived > current:
                    logger.debug(
                        "Cascading %s -> %s for %s (dependency %s is %s)",
                        current,
                        derived,
                        module.id,
                        dependency,
                        result[dependency],
                    )
                    current = derived
                    changed = True

            result[module.id] = current

        if not changed:
            logger.debug("Cascade reached a fixed point after %d pass(es)", passes)
            return result

    raise CascadeError(
        f"Cascade did not converge within {max_passes} passes over {len(registry)} modules"
    )
