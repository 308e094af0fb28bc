"""
Flooring Module (FLR).
Carpet, pad, resilient and hardwood scope with tear-out checks.
"""

import copy
from typing import Any

from ..core.check_engine import CheckEngine, ValidationCheck, ValidationContext
from ..core.models import IssueCategory, IssueSeverity, ValidationIssue, WaterCategory


class FlooringModule:
    """
    Flooring rule set and tear-out checks.

    Category 3 soaked carpet and pad are removed, never cleaned in place.
    """

    NAME = "Flooring (FLR)"

    CARPET_REMOVAL = "FLR-CARPET-RMV"
    PAD_REMOVAL = "FLR-PAD-RMV"
    CARPET_CLEANING = "FLR-CARPET-CLEAN"

    RULES: list[dict[str, Any]] = [
        {
            "code": "FLR-CARPET-RMV",
            "description": "Remove wet carpet",
            "unit": "SF",
            "category": "demolition",
            "priority": 70,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "surfaces", "any_of": ["carpet"]},
                {"kind": "severity", "minimum": "moderate"},
            ],
            "quantity_formula": "FLOOR_SF",
            "auto_adds": ["FLR-PAD-RMV", "DEM-HAUL"],
            "excludes": ["FLR-CARPET-CLEAN"],
            "quantity_bound": "FLOOR_SF",
        },
        {
            "code": "FLR-PAD-RMV",
            "description": "Remove wet carpet pad",
            "unit": "SF",
            "category": "demolition",
            "quantity_formula": "FLOOR_SF",
            "quantity_bound": "FLOOR_SF",
        },
        {
            "code": "FLR-CARPET-CLEAN",
            "description": "Clean and deodorize carpet - in place",
            "unit": "SF",
            "category": "cleaning",
            "priority": 68,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "surfaces", "any_of": ["carpet"]},
                {"kind": "severity", "maximum": "minor"},
                {"kind": "water_category", "maximum": 2},
            ],
            "quantity_formula": "FLOOR_SF",
            "quantity_bound": "FLOOR_SF",
        },
        {
            "code": "FLR-VINYL-RMV",
            "description": "Remove vinyl floor covering",
            "unit": "SF",
            "category": "demolition",
            "priority": 66,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "surfaces", "any_of": ["vinyl", "laminate"]},
                {"kind": "severity", "minimum": "moderate"},
            ],
            "quantity_formula": "FLOOR_SF",
            "auto_adds": ["DEM-HAUL"],
            "quantity_bound": "FLOOR_SF",
        },
        {
            "code": "FLR-HARDWOOD-DRY",
            "description": "Hardwood floor drying system (per day)",
            "unit": "DAY",
            "category": "drying",
            "priority": 64,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "surfaces", "any_of": ["hardwood"]},
            ],
            "quantity_formula": "MAX(3, CEIL(FLOOR_SF / 200))",
            "requires": ["WTR-DRY-SETUP"],
            "carrier_sensitivity": "medium",
        },
    ]

    def __init__(self, check_engine: CheckEngine | None = None) -> None:
        self.engine = check_engine or CheckEngine()
        self._register_checks()

    def rules(self) -> list[dict[str, Any]]:
        """Rule definitions contributed by this module."""
        return copy.deepcopy(self.RULES)

    def _register_checks(self) -> None:
        """Register all flooring checks."""
        self.engine.add_check(
            ValidationCheck(
                check_id="FLR-001",
                name="Carpet Without Pad Tear-Out",
                description="Wet carpet removal normally takes the pad with it",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.INFO,
                validator=self._validate_carpet_pad,
            )
        )

        self.engine.add_check(
            ValidationCheck(
                check_id="FLR-002",
                name="Category 3 Carpet Cleaning",
                description="Carpet soaked by Category 3 water must be removed, not cleaned",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.WARNING,
                validator=self._validate_cat3_carpet,
            )
        )

    def _validate_carpet_pad(self, context: ValidationContext) -> list[ValidationIssue]:
        check = self.engine.get_check("FLR-001")
        if not context.has(self.CARPET_REMOVAL) or context.has(self.PAD_REMOVAL):
            return []

        return [
            self.engine.create_issue(
                check,
                context,
                code="CMP301",
                message="Carpet removal is in scope without pad removal",
                line_item_code=self.CARPET_REMOVAL,
                related_items=[self.PAD_REMOVAL],
                suggestion=f"Add {self.PAD_REMOVAL}",
            )
        ]

    def _validate_cat3_carpet(self, context: ValidationContext) -> list[ValidationIssue]:
        check = self.engine.get_check("FLR-002")
        if context.zone.water_category != WaterCategory.CATEGORY_3:
            return []
        if not context.has(self.CARPET_CLEANING):
            return []

        return [
            self.engine.create_issue(
                check,
                context,
                code="CMP302",
                message="Category 3 carpet cannot be cleaned in place",
                line_item_code=self.CARPET_CLEANING,
                related_items=[self.CARPET_REMOVAL],
                suggestion=f"Replace {self.CARPET_CLEANING} with {self.CARPET_REMOVAL}",
            )
        ]
