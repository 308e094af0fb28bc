"""
Domain rule modules for the Zone Scope Engine.

Each module contributes catalog rule definitions and the completeness
checks that go with them.
"""

import copy
from typing import Any

from ..core.catalog import RuleCatalog
from .flooring import FlooringModule
from .interior_repair import InteriorRepairModule
from .roofing import RoofingModule
from .water_mitigation import WaterMitigationModule

ALL_MODULES = [
    WaterMitigationModule,
    InteriorRepairModule,
    FlooringModule,
    RoofingModule,
]

_default_catalog: RuleCatalog | None = None


def default_rule_definitions() -> list[dict[str, Any]]:
    """Rule definitions of every bundled module, in declaration order."""
    rules: list[dict[str, Any]] = []
    for module in ALL_MODULES:
        rules.extend(copy.deepcopy(module.RULES))
    return rules


def default_catalog() -> RuleCatalog:
    """Get the shared catalog built from the bundled modules."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = RuleCatalog(default_rule_definitions(), name="default")
    return _default_catalog


__all__ = [
    "ALL_MODULES",
    "FlooringModule",
    "InteriorRepairModule",
    "RoofingModule",
    "WaterMitigationModule",
    "default_catalog",
    "default_rule_definitions",
]
