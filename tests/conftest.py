"""
Shared fixtures for the Zone Scope Engine tests.
"""

from typing import Any

import pytest

from scope_engine import RuleCatalog, Zone
from scope_engine.core.models import DamageSeverity, Opening, WaterCategory, ZoneType


def water_rules() -> list[dict[str, Any]]:
    """A small water-loss catalog in declaration order."""
    return [
        {
            "code": "WTR-EXTRACT-PORT",
            "description": "Water extraction - portable extractor",
            "unit": "SF",
            "category": "water_extraction",
            "priority": 100,
            "conditions": {"damageType": ["water"], "affectedSurfaces": ["floor", "carpet"]},
            "quantity_formula": "FLOOR_SF",
            "auto_adds": ["WTR-MOIST-INIT", "WTR-DRY-SETUP"],
            "excludes": ["WTR-EXTRACT-TRUCK"],
            "quantity_bound": "FLOOR_SF",
        },
        {
            "code": "WTR-EXTRACT-TRUCK",
            "description": "Water extraction - truck mounted",
            "unit": "SF",
            "category": "water_extraction",
            "priority": 90,
            "conditions": {"damageType": ["water"], "affectedSurfaces": ["floor", "carpet"]},
            "quantity_formula": "FLOOR_SF",
            "excludes": ["WTR-EXTRACT-PORT"],
        },
        {
            "code": "WTR-MOIST-INIT",
            "description": "Initial moisture inspection",
            "unit": "SF",
            "category": "moisture_monitoring",
            "quantity_formula": "FLOOR_SF",
        },
        {
            "code": "WTR-DRY-SETUP",
            "description": "Drying equipment setup",
            "unit": "EA",
            "category": "drying",
            "fixed_quantity": 1,
            "auto_adds": ["WTR-DRY-DEHU"],
        },
        {
            "code": "WTR-DRY-DEHU",
            "description": "Dehumidifier (per day)",
            "unit": "DAY",
            "category": "drying",
            "quantity_formula": "MAX(3, CEIL(FLOOR_SF / 500)) * MAX(1, CEIL(FLOOR_SF / 1000))",
            "requires": ["WTR-DRY-SETUP"],
        },
        {
            "code": "DEM-DRY-FLOOD",
            "description": "Flood cut drywall - 2 ft",
            "unit": "LF",
            "category": "demolition",
            "priority": 60,
            "conditions": {"damageType": ["water"], "affectedSurfaces": ["wall"]},
            "quantity_formula": "PERIMETER_LF",
            "quantity_bound": "PERIMETER_LF",
        },
        {
            "code": "DEM-BASE",
            "description": "Remove baseboard",
            "unit": "LF",
            "category": "demolition",
            "priority": 50,
            "conditions": {"damageType": ["water"], "affectedSurfaces": ["baseboard"]},
            "quantity_formula": "PERIMETER_LF * 0.9",
        },
        {
            "code": "CAB-LOWER-DR",
            "description": "Detach and reset lower cabinets",
            "unit": "LF",
            "category": "cabinetry",
            "priority": 45,
            "conditions": {"affectedSurfaces": ["cabinet"], "damageSeverity": {"min": "severe"}},
            "quantity_formula": "LONG_WALL_SF / HEIGHT_FT",
        },
    ]


@pytest.fixture
def water_definitions() -> list[dict[str, Any]]:
    """Rule definitions of the small water-loss catalog."""
    return water_rules()


@pytest.fixture
def water_catalog(water_definitions: list[dict[str, Any]]) -> RuleCatalog:
    """Catalog built from the small water-loss rule set."""
    return RuleCatalog(water_definitions, name="water-test")


@pytest.fixture
def kitchen_zone() -> Zone:
    """12 x 14 x 9 kitchen with a Category 2 water loss and two openings."""
    return Zone(
        id="zone-kitchen",
        name="Kitchen",
        zone_type=ZoneType.ROOM,
        length_ft=12,
        width_ft=14,
        height_ft=9,
        damage_type="water",
        damage_severity=DamageSeverity.MODERATE,
        water_category=WaterCategory.CATEGORY_2,
        affected_surfaces={"floor", "wall", "baseboard", "cabinet"},
        openings=[
            Opening(width_ft=3, height_ft=7, kind="door"),
            Opening(width_ft=4, height_ft=5.5, kind="window"),
        ],
    )


@pytest.fixture
def roof_zone() -> Zone:
    """40 x 25 roof at a 6/12 pitch with moderate hail damage."""
    return Zone(
        id="zone-roof",
        name="Main Roof",
        zone_type=ZoneType.ROOF,
        length_ft=40,
        width_ft=25,
        pitch="6/12",
        damage_type="hail",
        damage_severity=DamageSeverity.MODERATE,
    )


@pytest.fixture
def unmeasured_zone() -> Zone:
    """Water-damaged room with no recorded dimensions."""
    return Zone(
        id="zone-unmeasured",
        name="Hallway",
        damage_type="water",
        damage_severity=DamageSeverity.MODERATE,
        water_category=WaterCategory.CATEGORY_1,
        affected_surfaces={"floor"},
    )
