"""
Water Mitigation Module (WTR).
Extraction, drying, moisture monitoring and category-driven
antimicrobial/containment scope, plus water completeness checks.
"""

import copy
from typing import Any

from ..core.check_engine import CheckEngine, ValidationCheck, ValidationContext
from ..core.conditions import WaterCategoryCondition
from ..core.models import IssueCategory, IssueSeverity, ValidationIssue, WaterCategory

FLOOR_SURFACES = ["floor", "carpet", "hardwood", "vinyl", "tile", "laminate"]


class WaterMitigationModule:
    """
    Water mitigation rule set and completeness checks.

    Drying equipment follows IICRC S500 rules of thumb: one air mover
    per 50-70 sq ft and dehumidifier days scaled to the affected area.
    """

    NAME = "Water Mitigation (WTR)"

    # Industry standard: 1 air mover per 70 sq ft, minimum 3
    AIR_MOVER_SQFT = 70
    EXTRACTION_CATEGORIES = ("water_extraction",)
    DRYING_CATEGORIES = ("drying",)

    RULES: list[dict[str, Any]] = [
        {
            "code": "WTR-EMERG",
            "description": "Emergency service call - after hours",
            "unit": "HR",
            "category": "emergency_services",
            "priority": 120,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "severity", "values": ["emergency"]},
            ],
            "fixed_quantity": 2,
            "carrier_sensitivity": "medium",
        },
        {
            "code": "WTR-EXTRACT-PORT",
            "description": "Water extraction - portable extractor",
            "unit": "SF",
            "category": "water_extraction",
            "priority": 100,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "surfaces", "any_of": FLOOR_SURFACES},
            ],
            "quantity_formula": "FLOOR_SF",
            "auto_adds": ["WTR-MOIST-INIT", "WTR-DRY-SETUP"],
            "excludes": ["WTR-EXTRACT-TRUCK"],
            "quantity_bound": "FLOOR_SF",
        },
        {
            "code": "WTR-EXTRACT-TRUCK",
            "description": "Water extraction - truck mounted unit",
            "unit": "SF",
            "category": "water_extraction",
            "priority": 105,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "surfaces", "any_of": FLOOR_SURFACES},
                {"kind": "severity", "minimum": "severe"},
            ],
            "quantity_formula": "FLOOR_SF",
            "auto_adds": ["WTR-MOIST-INIT", "WTR-DRY-SETUP"],
            "excludes": ["WTR-EXTRACT-PORT"],
            "quantity_bound": "FLOOR_SF",
            "carrier_sensitivity": "medium",
        },
        {
            "code": "WTR-MOIST-INIT",
            "description": "Initial moisture inspection and mapping",
            "unit": "SF",
            "category": "moisture_monitoring",
            "quantity_formula": "FLOOR_SF",
            "auto_adds": ["WTR-MOIST-LOG"],
        },
        {
            "code": "WTR-MOIST-LOG",
            "description": "Moisture log and drying documentation",
            "unit": "EA",
            "category": "moisture_monitoring",
            "fixed_quantity": 1,
        },
        {
            "code": "WTR-MOIST-DAILY",
            "description": "Daily moisture monitoring",
            "unit": "DAY",
            "category": "moisture_monitoring",
            "fixed_quantity": 3,
            "requires": ["WTR-MOIST-INIT"],
            "carrier_sensitivity": "medium",
        },
        {
            "code": "WTR-DRY-SETUP",
            "description": "Drying equipment setup and takedown",
            "unit": "EA",
            "category": "drying",
            "fixed_quantity": 1,
            "auto_adds": ["WTR-DRY-DEHU", "WTR-DRY-AIRMOV"],
        },
        {
            "code": "WTR-DRY-DEHU",
            "description": "Dehumidifier - large capacity (per day)",
            "unit": "DAY",
            "category": "drying",
            "quantity_formula": "MAX(3, CEIL(FLOOR_SF / 500)) * MAX(1, CEIL(FLOOR_SF / 1000))",
            "requires": ["WTR-DRY-SETUP"],
            "auto_adds": ["WTR-MOIST-DAILY"],
            "replaces": ["WTR-DRY-DEHU-CONV"],
            "carrier_sensitivity": "medium",
        },
        {
            "code": "WTR-DRY-DEHU-CONV",
            "description": "Dehumidifier - conventional (per day)",
            "unit": "DAY",
            "category": "drying",
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "severity", "maximum": "minor"},
            ],
            "quantity_formula": "MAX(3, CEIL(FLOOR_SF / 500))",
        },
        {
            "code": "WTR-DRY-AIRMOV",
            "description": "Air mover (per unit)",
            "unit": "EA",
            "category": "drying",
            "quantity_formula": f"MAX(3, CEIL(FLOOR_SF / {AIR_MOVER_SQFT}))",
            "requires": ["WTR-DRY-SETUP"],
            "carrier_sensitivity": "medium",
        },
        {
            "code": "WTR-ANTIMICROB",
            "description": "Apply antimicrobial agent",
            "unit": "SF",
            "category": "antimicrobial",
            "priority": 80,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "water_category", "minimum": 2},
                {"kind": "surfaces", "any_of": ["wall", "drywall", *FLOOR_SURFACES]},
            ],
            "quantity_formula": "WALL_SF_NET + FLOOR_SF",
            "quantity_bound": "WALLS_CEILING_SF",
            "carrier_sensitivity": "high",
        },
        {
            "code": "WTR-DRY-HEPA",
            "description": "HEPA air scrubber (per day)",
            "unit": "DAY",
            "category": "containment",
            "priority": 75,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "water_category", "values": [3]},
            ],
            "quantity_formula": "MAX(3, CEIL(FLOOR_SF / 500))",
            "auto_adds": ["WTR-CONTAIN"],
            "carrier_sensitivity": "high",
        },
        {
            "code": "WTR-CONTAIN",
            "description": "Containment barrier - poly sheeting",
            "unit": "SF",
            "category": "containment",
            "quantity_formula": "PERIMETER_LF * HEIGHT_FT",
            "carrier_sensitivity": "medium",
        },
        {
            "code": "WTR-PPE",
            "description": "Personal protective equipment - Category 3",
            "unit": "EA",
            "category": "safety",
            "priority": 70,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "water_category", "values": [3]},
            ],
            "fixed_quantity": 2,
            "carrier_sensitivity": "high",
        },
    ]

    def __init__(self, check_engine: CheckEngine | None = None) -> None:
        self.engine = check_engine or CheckEngine()
        self._register_checks()

    def rules(self) -> list[dict[str, Any]]:
        """Rule definitions contributed by this module."""
        return copy.deepcopy(self.RULES)

    def _register_checks(self) -> None:
        """Register all water completeness checks."""
        self.engine.add_check(
            ValidationCheck(
                check_id="WTR-001",
                name="Extraction Without Drying",
                description="Flag water extraction with no drying equipment in scope",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.INFO,
                validator=self._validate_extraction_drying,
            )
        )

        self.engine.add_check(
            ValidationCheck(
                check_id="WTR-002",
                name="Category 3 Antimicrobial",
                description="Category 3 losses should include antimicrobial treatment",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.INFO,
                validator=self._validate_cat3_antimicrobial,
            )
        )

        # Category logic - items meant for other water categories
        self.engine.add_check(
            ValidationCheck(
                check_id="WTR-003",
                name="Water Category Mismatch",
                description="Flag items whose water category conditions do not fit the zone's loss",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.WARNING,
                validator=self._validate_category_items,
            )
        )

    def _validate_extraction_drying(self, context: ValidationContext) -> list[ValidationIssue]:
        """Extraction implies drying."""
        check = self.engine.get_check("WTR-001")
        extraction = context.items_in_category(*self.EXTRACTION_CATEGORIES)
        if not extraction or context.has_category(*self.DRYING_CATEGORIES):
            return []

        return [
            self.engine.create_issue(
                check,
                context,
                code="CMP101",
                message="Water extraction is in scope but no drying equipment is",
                line_item_code=extraction[0].code,
                related_items=["WTR-DRY-SETUP", "WTR-DRY-DEHU", "WTR-DRY-AIRMOV"],
                suggestion="Add WTR-DRY-SETUP with dehumidifiers and air movers",
            )
        ]

    def _validate_cat3_antimicrobial(self, context: ValidationContext) -> list[ValidationIssue]:
        """Category 3 (black water) requires antimicrobial application."""
        check = self.engine.get_check("WTR-002")
        if context.zone.water_category != WaterCategory.CATEGORY_3:
            return []
        if context.has_category("antimicrobial"):
            return []

        return [
            self.engine.create_issue(
                check,
                context,
                code="CMP102",
                message="Category 3 water loss without antimicrobial treatment",
                related_items=["WTR-ANTIMICROB"],
                suggestion="Add WTR-ANTIMICROB for affected wall and floor areas",
            )
        ]

    def _validate_category_items(self, context: ValidationContext) -> list[ValidationIssue]:
        """Items restricted to other water categories, e.g. Cat 3 PPE on a clean water loss."""
        check = self.engine.get_check("WTR-003")
        issues: list[ValidationIssue] = []
        category = context.zone.water_category
        if category is None:
            return issues

        for item in context.items:
            rule = context.rule(item.code)
            if rule is None:
                continue
            for condition in rule.conditions:
                if isinstance(condition, WaterCategoryCondition) and condition.evaluate(context.zone) is None:
                    issues.append(
                        self.engine.create_issue(
                            check,
                            context,
                            code="CMP103",
                            message=(
                                f"{item.code} is scoped for a different water category than this "
                                f"Category {category.value} loss"
                            ),
                            line_item_code=item.code,
                            suggestion="Confirm the water category or remove the item",
                        )
                    )
                    break

        return issues
