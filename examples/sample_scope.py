#!/usr/bin/env python3
"""
Sample Scope Script.
Demonstrates usage of the Zone Scope Engine.
"""

from scope_engine import (
    DamageSeverity,
    ScopeEngine,
    ScopeReportFormatter,
    WaterCategory,
    Zone,
    ZoneType,
    configure_logging,
)
from scope_engine.core.models import Opening


def create_sample_zones() -> list[Zone]:
    """Create sample zones for demonstration."""
    return [
        Zone(
            id="zone-kitchen",
            name="Kitchen",
            length_ft=12,
            width_ft=14,
            height_ft=9,
            damage_type="water",
            damage_severity=DamageSeverity.MODERATE,
            water_category=WaterCategory.CATEGORY_2,
            affected_surfaces=["floor", "wall", "baseboard", "cabinet"],
            openings=[
                Opening(width_ft=3, height_ft=7, kind="door"),
                Opening(width_ft=4, height_ft=5.5, kind="window"),
            ],
        ),
        Zone(
            id="zone-basement",
            name="Basement Family Room",
            length_ft=20,
            width_ft=18,
            height_ft=8,
            damage_type="water",
            damage_severity=DamageSeverity.SEVERE,
            water_category=WaterCategory.CATEGORY_3,  # Sewage backup
            affected_surfaces=["carpet", "drywall", "baseboard"],
        ),
        Zone(
            id="zone-roof",
            name="Main Roof",
            zone_type=ZoneType.ROOF,
            length_ft=40,
            width_ft=25,
            pitch="6/12",
            damage_type="hail",
            damage_severity=DamageSeverity.MODERATE,
        ),
        # No dimensions recorded yet
        Zone(
            id="zone-hall",
            name="Hallway",
            damage_type="water",
            damage_severity=DamageSeverity.MINOR,
            water_category=WaterCategory.CATEGORY_1,
            affected_surfaces=["vinyl"],
        ),
    ]


def main() -> None:
    """Run sample scope demonstration."""
    configure_logging(level="WARNING")

    print("=" * 70)
    print("ZONE SCOPE ENGINE - SAMPLE ESTIMATE")
    print("=" * 70)
    print()

    zones = create_sample_zones()
    print(f"Zones: {len(zones)}")

    # Initialize engine
    engine = ScopeEngine()
    print(f"Enabled Modules: {', '.join(engine.get_enabled_modules())}")
    print(f"Catalog Rules: {len(engine.catalog)}")
    print()

    # Scope and validate every zone
    print("Scoping estimate...")
    result = engine.evaluate_estimate(zones, estimate_id="EST-2024-0117")
    formatter = ScopeReportFormatter(result)

    print()
    print(formatter.to_text())

    # Also save as JSON
    print()
    print("-" * 70)
    print("JSON Output (first 500 chars):")
    print("-" * 70)
    json_output = formatter.to_json()
    print(json_output[:500] + "..." if len(json_output) > 500 else json_output)

    # Demonstrate re-validation after a user edit
    print()
    print("-" * 70)
    print("USER EDIT DEMO")
    print("-" * 70)

    kitchen = zones[0]
    scope = engine.evaluate_zone(kitchen)
    edited = [item for item in scope.suggested_items if item.code != "WTR-DRY-SETUP"]
    validation = engine.validate(edited, kitchen)
    print(f"Removed WTR-DRY-SETUP; valid: {validation.is_valid}")
    for issue in validation.issues:
        print(f"  [{issue.code}] {issue.message}")


if __name__ == "__main__":
    main()
