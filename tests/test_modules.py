"""
Tests for the bundled domain modules and the default catalog.
"""

import pytest

from scope_engine import ScopeEngine, Zone, default_catalog
from scope_engine.core.check_engine import CheckEngine
from scope_engine.core.models import (
    DamageSeverity,
    ExclusionKind,
    IssueSeverity,
    QuantitySource,
    SuggestedItem,
    ValidationIssue,
    ValidationResult,
    WaterCategory,
    ZoneType,
)
from scope_engine.modules import (
    ALL_MODULES,
    FlooringModule,
    InteriorRepairModule,
    RoofingModule,
    WaterMitigationModule,
    default_rule_definitions,
)


@pytest.fixture
def engine() -> ScopeEngine:
    """Engine on the bundled catalog with every module enabled."""
    return ScopeEngine()


@pytest.fixture
def cat3_kitchen(kitchen_zone: Zone) -> Zone:
    """The kitchen fixture with a Category 3 loss."""
    return kitchen_zone.model_copy(update={"water_category": WaterCategory.CATEGORY_3})


def item(code: str, quantity: float = 1) -> SuggestedItem:
    """Suggested item drawn from the bundled catalog."""
    rule = default_catalog().get(code)
    return SuggestedItem(
        code=code,
        description=rule.description,
        category=rule.category,
        unit=rule.unit,
        quantity=quantity,
        quantity_source=QuantitySource.FORMULA,
        explanation="Entered by adjuster",
    )


def issues_with(result: ValidationResult, code: str) -> list[ValidationIssue]:
    """Issues carrying the given issue code."""
    return [issue for issue in result.issues if issue.code == code]


class TestDefaultCatalog:
    """Tests for the catalog assembled from the modules."""

    def test_every_module_rule_is_loaded(self) -> None:
        """Test that the catalog holds each module's rules in order."""
        catalog = default_catalog()

        assert len(catalog) == sum(len(module.RULES) for module in ALL_MODULES)
        assert catalog.codes == [rule["code"] for rule in default_rule_definitions()]
        assert catalog.name == "default"

    def test_catalog_is_cached(self) -> None:
        """Test that the bundled catalog is built once."""
        assert default_catalog() is default_catalog()

    def test_module_rules_are_copies(self) -> None:
        """Test that callers cannot mutate the class-level rule lists."""
        rules = RoofingModule().rules()
        rules[0]["priority"] = 0
        rules[0]["auto_adds"].append("RFG-EXTRA")
        rules[0]["conditions"][0]["values"].clear()

        assert RoofingModule.RULES[0]["priority"] == 80
        assert RoofingModule.RULES[0]["auto_adds"] == ["RFG-FELT", "RFG-SHINGLE", "RFG-DRIP", "DEM-HAUL"]
        assert RoofingModule.RULES[0]["conditions"][0]["values"] == ["roof"]

    def test_default_definitions_are_copies(self) -> None:
        """Test that the assembled definitions do not share nested lists."""
        definitions = default_rule_definitions()

        assert definitions[0]["conditions"] is not ALL_MODULES[0].RULES[0]["conditions"]


class TestWaterMitigation:
    """Tests for water mitigation scoping and checks."""

    def test_kitchen_scope(self, engine: ScopeEngine, kitchen_zone: Zone) -> None:
        """Test the full item set for a Category 2 kitchen."""
        report = engine.run(kitchen_zone)
        scope = report.scope

        assert set(scope.codes) == {
            "WTR-EXTRACT-PORT",
            "WTR-ANTIMICROB",
            "DEM-DRY-FLOOD",
            "DRY-HTT-12",
            "DEM-BASE",
            "PNT-INT-WALL",
            "WTR-MOIST-INIT",
            "WTR-MOIST-LOG",
            "WTR-MOIST-DAILY",
            "WTR-DRY-SETUP",
            "WTR-DRY-DEHU",
            "WTR-DRY-AIRMOV",
            "DEM-HAUL",
            "PNT-PRIME-STD",
            "TRIM-BASE",
        }
        assert scope.codes[0] == "WTR-EXTRACT-PORT"
        assert scope.get_item("WTR-DRY-AIRMOV").quantity == 3
        assert scope.get_item("WTR-DRY-DEHU").quantity == 3
        assert scope.get_item("WTR-ANTIMICROB").quantity == 593

    def test_kitchen_validation(self, engine: ScopeEngine, kitchen_zone: Zone) -> None:
        """Test that the kitchen scope only lacks cabinet work."""
        validation = engine.run(kitchen_zone).validation

        (issue,) = validation.issues
        assert issue.code == "CMP001"
        assert issue.related_items == ["CAB-LOWER-DR"]
        assert validation.is_valid is True

    def test_category_3_upgrades_flood_cut(self, engine: ScopeEngine, cat3_kitchen: Zone) -> None:
        """Test contaminated water scope."""
        report = engine.run(cat3_kitchen)
        scope = report.scope

        assert "DEM-DRY-FLOOD-4" in scope.codes
        assert "DEM-DRY-FLOOD" not in scope.codes
        for code in ("WTR-DRY-HEPA", "WTR-CONTAIN", "WTR-PPE", "DEM-INSUL", "DEM-HAUL"):
            assert code in scope.codes
        replaced = next(e for e in scope.excluded_items if e.code == "DEM-DRY-FLOOD")
        assert replaced.kind == ExclusionKind.REPLACED
        assert report.validation.error_count == 0

    def test_severe_loss_prefers_truck_mount(self, engine: ScopeEngine, kitchen_zone: Zone) -> None:
        """Test that the higher priority truck mount wins on severe losses."""
        zone = kitchen_zone.model_copy(update={"damage_severity": DamageSeverity.SEVERE})

        scope = engine.evaluate_zone(zone)

        assert "WTR-EXTRACT-TRUCK" in scope.codes
        assert "WTR-EXTRACT-PORT" not in scope.codes
        assert "CAB-LOWER-DR" in scope.codes
        assert scope.get_item("CAB-LOWER-DR").quantity == 14

    def test_extraction_without_drying(self, engine: ScopeEngine, kitchen_zone: Zone) -> None:
        """Test the extraction implies drying check."""
        result = engine.validate([item("WTR-EXTRACT-PORT", 168)], kitchen_zone)

        (issue,) = issues_with(result, "CMP101")
        assert issue.line_item_code == "WTR-EXTRACT-PORT"
        assert issue.severity == IssueSeverity.INFO

    def test_category_3_without_antimicrobial(self, engine: ScopeEngine, cat3_kitchen: Zone) -> None:
        """Test the Category 3 antimicrobial check."""
        result = engine.validate([item("WTR-PPE", 2)], cat3_kitchen)

        (issue,) = issues_with(result, "CMP102")
        assert issue.related_items == ["WTR-ANTIMICROB"]

    def test_category_mismatch(self, engine: ScopeEngine, kitchen_zone: Zone) -> None:
        """Test that Category 3 items on a Category 2 loss are flagged."""
        result = engine.validate([item("WTR-PPE", 2)], kitchen_zone)

        (issue,) = issues_with(result, "CMP103")
        assert issue.severity == IssueSeverity.WARNING
        assert issue.message == (
            "WTR-PPE is scoped for a different water category than this Category 2 loss"
        )


class TestInteriorRepair:
    """Tests for interior repair checks."""

    def test_drywall_without_paint(self, engine: ScopeEngine, kitchen_zone: Zone) -> None:
        """Test the drywall implies paint check."""
        result = engine.validate([item("DEM-DRY-FLOOD", 52), item("DRY-HTT-12", 104)], kitchen_zone)

        (issue,) = issues_with(result, "CMP201")
        assert issue.message == "Drywall replacement (DRY-HTT-12) without finish paint"

    def test_haul_without_demolition(self, engine: ScopeEngine, kitchen_zone: Zone) -> None:
        """Test the haul-off check."""
        result = engine.validate([item("DEM-HAUL")], kitchen_zone)

        (issue,) = issues_with(result, "CMP202")
        assert issue.line_item_code == "DEM-HAUL"

    def test_haul_with_tear_off(self, engine: ScopeEngine, roof_zone: Zone) -> None:
        """Test that roof tear-off counts as a debris source."""
        result = engine.validate([item("RFG-TEAR", 11.18), item("DEM-HAUL")], roof_zone)

        assert issues_with(result, "CMP202") == []

    def test_fire_damage_upgrades_primer(self, engine: ScopeEngine) -> None:
        """Test that stain-blocking primer replaces the standard sealer."""
        zone = Zone(
            id="zone-fire",
            length_ft=10,
            width_ft=12,
            height_ft=8,
            damage_type="fire",
            damage_severity=DamageSeverity.SEVERE,
            affected_surfaces=["wall"],
        )

        scope = engine.evaluate_zone(zone)

        assert "DRY-HTT-58" in scope.codes
        assert "PNT-PRIME-STAIN" in scope.codes
        assert "PNT-PRIME-STD" not in scope.codes
        assert scope.get_item("DRY-HTT-58").quantity == 352


class TestFlooring:
    """Tests for flooring scoping and checks."""

    @pytest.fixture
    def carpet_zone(self) -> Zone:
        """Bedroom with wet carpet."""
        return Zone(
            id="zone-bedroom",
            length_ft=12,
            width_ft=12,
            height_ft=8,
            damage_type="water",
            damage_severity=DamageSeverity.MODERATE,
            water_category=WaterCategory.CATEGORY_2,
            affected_surfaces=["carpet"],
        )

    def test_wet_carpet_is_removed(self, engine: ScopeEngine, carpet_zone: Zone) -> None:
        """Test carpet removal with pad and haul-off."""
        scope = engine.evaluate_zone(carpet_zone)

        for code in ("FLR-CARPET-RMV", "FLR-PAD-RMV", "DEM-HAUL"):
            assert code in scope.codes
        assert "FLR-CARPET-CLEAN" not in scope.codes

    def test_minor_carpet_is_cleaned(self, engine: ScopeEngine, carpet_zone: Zone) -> None:
        """Test in-place cleaning for minor clean losses."""
        zone = carpet_zone.model_copy(update={"damage_severity": DamageSeverity.MINOR})

        scope = engine.evaluate_zone(zone)

        assert "FLR-CARPET-CLEAN" in scope.codes
        assert "FLR-CARPET-RMV" not in scope.codes
        assert scope.get_item("FLR-CARPET-CLEAN").quantity == 144

    def test_carpet_without_pad(self, engine: ScopeEngine, carpet_zone: Zone) -> None:
        """Test the carpet implies pad check."""
        result = engine.validate([item("FLR-CARPET-RMV", 144)], carpet_zone)

        (issue,) = issues_with(result, "CMP301")
        assert issue.related_items == ["FLR-PAD-RMV"]

    def test_category_3_carpet_cleaning(self, engine: ScopeEngine, carpet_zone: Zone) -> None:
        """Test that cleaning Category 3 carpet is a warning."""
        zone = carpet_zone.model_copy(update={"water_category": WaterCategory.CATEGORY_3})

        result = engine.validate([item("FLR-CARPET-CLEAN", 144)], zone)

        (issue,) = issues_with(result, "CMP302")
        assert issue.severity == IssueSeverity.WARNING


class TestRoofing:
    """Tests for roofing scoping and checks."""

    def test_hail_tear_off(self, engine: ScopeEngine, roof_zone: Zone) -> None:
        """Test pitch-adjusted re-roof quantities."""
        report = engine.run(roof_zone)
        scope = report.scope

        assert scope.codes == ["RFG-TEAR", "RFG-FELT", "RFG-SHINGLE", "RFG-DRIP", "DEM-HAUL"]
        assert scope.get_item("RFG-TEAR").quantity == 11.18
        assert scope.get_item("RFG-SHINGLE").quantity == 12.3
        assert scope.get_item("RFG-DRIP").quantity == 130
        assert report.validation.issue_count == 0

    def test_minor_damage_is_a_repair(self, engine: ScopeEngine, roof_zone: Zone) -> None:
        """Test spot repair for minor roof damage."""
        zone = roof_zone.model_copy(update={"damage_severity": DamageSeverity.MINOR})

        assert engine.evaluate_zone(zone).codes == ["RFG-REPAIR"]

    def test_missing_pitch(self, engine: ScopeEngine) -> None:
        """Test the flat roof notice."""
        zone = Zone(id="roof", zone_type=ZoneType.ROOF, length_ft=40, width_ft=25, damage_type="hail")

        result = engine.validate([], zone)

        (issue,) = issues_with(result, "CMP401")
        assert issue.severity == IssueSeverity.INFO


class TestModuleRegistration:
    """Tests for module check registration."""

    @pytest.mark.parametrize(
        ("module", "check_ids"),
        [
            (WaterMitigationModule, ["WTR-001", "WTR-002", "WTR-003"]),
            (InteriorRepairModule, ["GEN-001", "GEN-002"]),
            (FlooringModule, ["FLR-001", "FLR-002"]),
            (RoofingModule, ["RFG-001"]),
        ],
    )
    def test_checks_registered(self, module: type, check_ids: list[str]) -> None:
        """Test that each module registers its checks on the shared engine."""
        check_engine = CheckEngine()
        module(check_engine)

        assert [check["check_id"] for check in check_engine.list_checks()] == check_ids

    def test_disabled_module_checks_are_skipped(self, kitchen_zone: Zone) -> None:
        """Test that a disabled module contributes no checks."""
        engine = ScopeEngine(enable_water_mitigation=False)

        result = engine.validate([item("WTR-EXTRACT-PORT", 168)], kitchen_zone)

        assert issues_with(result, "CMP101") == []
        assert engine.validator.engine.get_check("WTR-001") is None
