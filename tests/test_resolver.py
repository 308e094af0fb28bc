"""
Tests for the scope matcher and dependency resolver.
"""

from typing import Any

import pytest

from scope_engine import RuleCatalog, Zone
from scope_engine.core.matcher import ScopeMatcher, match_rules
from scope_engine.core.models import ExclusionKind
from scope_engine.core.resolver import DependencyResolver, resolve
from scope_engine.exceptions import CatalogCycleError

WATER_FLOOR = {"damageType": ["water"], "affectedSurfaces": ["floor"]}


def rule(code: str, **fields: Any) -> dict[str, Any]:
    """Minimal rule definition."""
    return {"code": code, "description": code.title(), **fields}


@pytest.fixture
def floor_zone() -> Zone:
    """Water-damaged room with a wet floor."""
    return Zone(
        id="zone-1",
        length_ft=10,
        width_ft=10,
        height_ft=8,
        damage_type="water",
        damage_severity="moderate",
        affected_surfaces=["floor"],
    )


def scope(rules: list[dict[str, Any]], zone: Zone) -> Any:
    """Match and resolve a zone against an ad-hoc catalog."""
    catalog = RuleCatalog(rules)
    return resolve(match_rules(zone, catalog), catalog)


class TestScopeMatcher:
    """Tests for ScopeMatcher."""

    def test_kitchen_matches(self, water_catalog: RuleCatalog, kitchen_zone: Zone) -> None:
        """Test matching the kitchen against the water catalog."""
        matches = ScopeMatcher(water_catalog).match(kitchen_zone)

        assert [m.code for m in matches] == [
            "WTR-EXTRACT-PORT",
            "WTR-EXTRACT-TRUCK",
            "DEM-DRY-FLOOD",
            "DEM-BASE",
        ]

    def test_reasons_follow_conditions(self, water_catalog: RuleCatalog, kitchen_zone: Zone) -> None:
        """Test that each match carries one reason per condition."""
        match = ScopeMatcher(water_catalog).match(kitchen_zone)[0]

        assert match.matched_conditions == ["Damage type: water", "Affected surfaces: floor"]

    def test_priority_then_declaration_order(self, floor_zone: Zone) -> None:
        """Test ordering by priority with declaration order as tie-break."""
        catalog = RuleCatalog(
            [
                rule("LOW", conditions=WATER_FLOOR, priority=1),
                rule("FIRST", conditions=WATER_FLOOR, priority=5),
                rule("SECOND", conditions=WATER_FLOOR, priority=5),
            ]
        )

        assert [m.code for m in match_rules(floor_zone, catalog)] == ["FIRST", "SECOND", "LOW"]

    def test_rules_without_conditions_never_match(self, floor_zone: Zone) -> None:
        """Test that auto-only rules are skipped."""
        catalog = RuleCatalog([rule("AUTO"), rule("DIRECT", conditions=WATER_FLOOR)])

        assert [m.code for m in match_rules(floor_zone, catalog)] == ["DIRECT"]

    def test_no_matches(self, water_catalog: RuleCatalog) -> None:
        """Test a zone nothing applies to."""
        zone = Zone(id="dry", damage_type="fire", affected_surfaces=["ceiling"])

        assert match_rules(zone, water_catalog) == []


class TestDependencyResolver:
    """Tests for DependencyResolver."""

    def test_kitchen_resolution(self, water_catalog: RuleCatalog, kitchen_zone: Zone) -> None:
        """Test auto-adds and the extractor exclusion for the kitchen."""
        resolution = resolve(match_rules(kitchen_zone, water_catalog), water_catalog)

        assert resolution.codes == [
            "WTR-EXTRACT-PORT",
            "DEM-DRY-FLOOD",
            "DEM-BASE",
            "WTR-MOIST-INIT",
            "WTR-DRY-SETUP",
            "WTR-DRY-DEHU",
        ]
        (excluded,) = resolution.excluded
        assert excluded.code == "WTR-EXTRACT-TRUCK"
        assert excluded.excluded_by == "WTR-EXTRACT-PORT"
        assert excluded.reason == "Excluded by WTR-EXTRACT-PORT"
        assert excluded.kind == ExclusionKind.EXCLUDED

    def test_auto_added_provenance(self, water_catalog: RuleCatalog, kitchen_zone: Zone) -> None:
        """Test that auto-added items record their trigger."""
        resolution = resolve(match_rules(kitchen_zone, water_catalog), water_catalog)
        items = {item.code: item for item in resolution.items}

        assert items["WTR-EXTRACT-PORT"].is_auto_added is False
        assert items["WTR-DRY-SETUP"].is_auto_added is True
        assert items["WTR-DRY-SETUP"].added_by_item == "WTR-EXTRACT-PORT"
        assert items["WTR-DRY-DEHU"].added_by_item == "WTR-DRY-SETUP"
        assert items["WTR-DRY-DEHU"].reasons == ["Auto-added by WTR-DRY-SETUP"]

    def test_no_item_appears_twice(self, floor_zone: Zone) -> None:
        """Test that shared auto-adds are only added once."""
        resolution = scope(
            [
                rule("A", conditions=WATER_FLOOR, auto_adds=["SHARED"]),
                rule("B", conditions=WATER_FLOOR, auto_adds=["SHARED"]),
                rule("SHARED"),
            ],
            floor_zone,
        )

        assert resolution.codes == ["A", "B", "SHARED"]
        assert resolution.items[2].added_by_item == "A"

    def test_direct_match_outranks_auto_add(self, floor_zone: Zone) -> None:
        """Test that an item both matched and auto-added counts as matched."""
        resolution = scope(
            [
                rule("A", conditions=WATER_FLOOR, priority=10, auto_adds=["B"]),
                rule("B", conditions=WATER_FLOOR, priority=5),
            ],
            floor_zone,
        )

        b = resolution.items[1]
        assert b.code == "B"
        assert b.is_auto_added is False
        assert b.added_by_item is None

    def test_matched_pair_conflict_keeps_first(self, floor_zone: Zone) -> None:
        """Test that the earlier of two matched alternatives wins."""
        resolution = scope(
            [
                rule("LATER", conditions=WATER_FLOOR, priority=1),
                rule("EARLIER", conditions=WATER_FLOOR, priority=9, excludes=["LATER"]),
            ],
            floor_zone,
        )

        assert resolution.codes == ["EARLIER"]
        assert resolution.excluded[0].code == "LATER"

    def test_later_item_cannot_evict_direct_match(self, floor_zone: Zone) -> None:
        """Test one-sided exclusion declared by the later item."""
        resolution = scope(
            [
                rule("FIRST", conditions=WATER_FLOOR, priority=9),
                rule("SECOND", conditions=WATER_FLOOR, priority=1, excludes=["FIRST"]),
            ],
            floor_zone,
        )

        assert resolution.codes == ["FIRST"]
        (excluded,) = resolution.excluded
        assert excluded.code == "SECOND"
        assert excluded.kind == ExclusionKind.CONFLICT
        assert excluded.reason == "Conflicts with FIRST, which matched first"

    def test_auto_added_item_evicts_earlier_auto_add(self, floor_zone: Zone) -> None:
        """Test that an arriving auto-add removes a present item it excludes."""
        resolution = scope(
            [
                rule("A", conditions=WATER_FLOOR, priority=9, auto_adds=["GENERIC"]),
                rule("B", conditions=WATER_FLOOR, priority=5, auto_adds=["SPECIFIC"]),
                rule("GENERIC"),
                rule("SPECIFIC", excludes=["GENERIC"]),
            ],
            floor_zone,
        )

        assert resolution.codes == ["A", "B", "SPECIFIC"]
        (excluded,) = resolution.excluded
        assert excluded.code == "GENERIC"
        assert excluded.excluded_by == "SPECIFIC"
        assert excluded.reason == "Excluded by SPECIFIC"
        assert excluded.was_auto_added is True

    def test_excluded_auto_add_is_blocked(self, floor_zone: Zone) -> None:
        """Test that an auto-add excluded by a present item never enters."""
        resolution = scope(
            [
                rule("BLOCKER", conditions=WATER_FLOOR, priority=9, excludes=["EXTRA"]),
                rule("A", conditions=WATER_FLOOR, priority=5, auto_adds=["EXTRA"]),
                rule("EXTRA"),
            ],
            floor_zone,
        )

        assert resolution.codes == ["BLOCKER", "A"]
        assert resolution.excluded[0].reason == "Excluded by BLOCKER"

    def test_replacement(self, floor_zone: Zone) -> None:
        """Test that a superseding item replaces the generic one."""
        resolution = scope(
            [
                rule("GENERIC", conditions=WATER_FLOOR, priority=9),
                rule("SPECIFIC", conditions=WATER_FLOOR, priority=1, replaces=["GENERIC"]),
            ],
            floor_zone,
        )

        assert resolution.codes == ["SPECIFIC"]
        (replaced,) = resolution.excluded
        assert replaced.kind == ExclusionKind.REPLACED
        assert replaced.reason == "Replaced by SPECIFIC"

    def test_replacement_chain_keeps_most_specific(self, floor_zone: Zone) -> None:
        """Test a chain of replacements."""
        resolution = scope(
            [
                rule("BASIC", conditions=WATER_FLOOR, replaced_by=["BETTER"]),
                rule("BETTER", conditions=WATER_FLOOR, replaced_by=["BEST"]),
                rule("BEST", conditions=WATER_FLOOR),
            ],
            floor_zone,
        )

        assert resolution.codes == ["BEST"]
        assert {item.code: item.excluded_by for item in resolution.excluded} == {
            "BASIC": "BETTER",
            "BETTER": "BEST",
        }

    def test_orphans_are_pruned(self, floor_zone: Zone) -> None:
        """Test that auto-adds of a replaced item leave with it."""
        resolution = scope(
            [
                rule("GENERIC", conditions=WATER_FLOOR, priority=9, auto_adds=["HELPER"]),
                rule("SPECIFIC", conditions=WATER_FLOOR, priority=1, replaces=["GENERIC"]),
                rule("HELPER"),
            ],
            floor_zone,
        )

        assert resolution.codes == ["SPECIFIC"]
        orphan = next(item for item in resolution.excluded if item.code == "HELPER")
        assert orphan.kind == ExclusionKind.ORPHANED
        assert orphan.reason == "Trigger GENERIC is no longer in scope"

    def test_orphan_reparented_to_surviving_trigger(self, floor_zone: Zone) -> None:
        """Test that an auto-add with another trigger in scope survives."""
        resolution = scope(
            [
                rule("GENERIC", conditions=WATER_FLOOR, priority=9, auto_adds=["HELPER"]),
                rule("SPECIFIC", conditions=WATER_FLOOR, priority=1, replaces=["GENERIC"], auto_adds=["HELPER"]),
                rule("HELPER"),
            ],
            floor_zone,
        )

        assert resolution.codes == ["SPECIFIC", "HELPER"]
        assert resolution.items[1].added_by_item == "SPECIFIC"

    def test_iteration_cap(self, water_catalog: RuleCatalog, kitchen_zone: Zone) -> None:
        """Test that exceeding the iteration cap raises a cycle error."""
        resolver = DependencyResolver(water_catalog, iteration_cap=2)

        with pytest.raises(CatalogCycleError, match="exceeded 2 iterations"):
            resolver.resolve(match_rules(kitchen_zone, water_catalog))

    def test_zero_iteration_cap_is_kept(self, water_catalog: RuleCatalog, kitchen_zone: Zone) -> None:
        """Test that an explicit cap of zero is not replaced by the configured default."""
        resolver = DependencyResolver(water_catalog, iteration_cap=0)

        assert resolver.iteration_cap == 0
        with pytest.raises(CatalogCycleError, match="exceeded 0 iterations"):
            resolver.resolve(match_rules(kitchen_zone, water_catalog))

    def test_empty_candidates(self, water_catalog: RuleCatalog) -> None:
        """Test that no matches yield an empty resolution."""
        resolution = resolve([], water_catalog)

        assert resolution.items == []
        assert resolution.excluded == []
