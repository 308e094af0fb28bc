"""
Interior Repair Module.
Demolition, drywall, trim, painting and cabinetry scope, plus
trade coordination checks (drywall without paint, haul-off without demo).
"""

import copy
from typing import Any

from ..core.check_engine import CheckEngine, ValidationCheck, ValidationContext
from ..core.models import IssueCategory, IssueSeverity, ValidationIssue

WALL_SURFACES = ["wall", "drywall"]
FINISH_DAMAGE = ["water", "fire", "smoke"]
# Categories whose items produce debris for haul-off
DEBRIS_SOURCES = ("demolition", "roofing")


class InteriorRepairModule:
    """
    Interior repair rule set and trade coordination checks.
    """

    NAME = "Interior Repair"

    RULES: list[dict[str, Any]] = [
        {
            "code": "DEM-DRY-FLOOD",
            "description": "Flood cut drywall - 2 ft",
            "unit": "LF",
            "category": "demolition",
            "priority": 60,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "surfaces", "any_of": WALL_SURFACES},
                {"kind": "severity", "minimum": "moderate"},
            ],
            "quantity_formula": "PERIMETER_LF",
            "auto_adds": ["DEM-HAUL"],
            "quantity_bound": "PERIMETER_LF",
            "carrier_sensitivity": "medium",
        },
        {
            "code": "DEM-DRY-FLOOD-4",
            "description": "Flood cut drywall - 4 ft (contaminated water)",
            "unit": "LF",
            "category": "demolition",
            "priority": 65,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "surfaces", "any_of": WALL_SURFACES},
                {"kind": "water_category", "values": [3]},
            ],
            "quantity_formula": "PERIMETER_LF",
            "auto_adds": ["DEM-HAUL", "DEM-INSUL"],
            "replaces": ["DEM-DRY-FLOOD"],
            "quantity_bound": "PERIMETER_LF",
            "carrier_sensitivity": "medium",
        },
        {
            "code": "DEM-INSUL",
            "description": "Remove wet wall insulation - 4 ft",
            "unit": "SF",
            "category": "demolition",
            "quantity_formula": "PERIMETER_LF * 4",
            "quantity_bound": "WALL_SF_NET",
        },
        {
            "code": "DEM-HAUL",
            "description": "Haul debris - per load",
            "unit": "EA",
            "category": "debris",
            "fixed_quantity": 1,
        },
        {
            "code": "DEM-BASE",
            "description": "Remove baseboard",
            "unit": "LF",
            "category": "demolition",
            "priority": 50,
            "conditions": [
                {"kind": "damage_type", "values": ["water", "fire"]},
                {"kind": "surfaces", "any_of": ["baseboard", "trim"]},
            ],
            "quantity_formula": "PERIMETER_LF * 0.9",
            "auto_adds": ["TRIM-BASE"],
            "quantity_bound": "PERIMETER_LF",
        },
        {
            "code": "TRIM-BASE",
            "description": "Install baseboard - 3 1/4\"",
            "unit": "LF",
            "category": "trim",
            "quantity_formula": "PERIMETER_LF * 0.9",
            "requires": ["DEM-BASE"],
            "quantity_bound": "PERIMETER_LF",
        },
        {
            "code": "DRY-HTT-12",
            "description": "Drywall replacement 1/2\" - hang, tape, texture (2 ft)",
            "unit": "SF",
            "category": "drywall",
            "priority": 55,
            "conditions": [
                {"kind": "damage_type", "values": ["water"]},
                {"kind": "surfaces", "any_of": WALL_SURFACES},
                {"kind": "severity", "minimum": "moderate"},
            ],
            "quantity_formula": "PERIMETER_LF * 2",
            "requires_any": ["DEM-DRY-FLOOD", "DEM-DRY-FLOOD-4"],
            "auto_adds": ["PNT-PRIME-STD"],
            "excludes": ["DRY-HTT-58"],
            "quantity_bound": "WALL_SF_NET",
            "carrier_sensitivity": "medium",
        },
        {
            "code": "DRY-HTT-58",
            "description": "Drywall replacement 5/8\" type X - full height",
            "unit": "SF",
            "category": "drywall",
            "priority": 56,
            "conditions": [
                {"kind": "damage_type", "values": ["fire"]},
                {"kind": "surfaces", "any_of": WALL_SURFACES},
                {"kind": "severity", "minimum": "severe"},
            ],
            "quantity_formula": "WALL_SF_NET",
            "auto_adds": ["PNT-PRIME-STAIN"],
            "quantity_bound": "WALL_SF_NET",
            "carrier_sensitivity": "medium",
        },
        {
            "code": "PNT-PRIME-STD",
            "description": "Prime walls - standard sealer",
            "unit": "SF",
            "category": "priming",
            "quantity_formula": "WALL_SF_NET",
            "quantity_bound": "WALL_SF_NET",
        },
        {
            "code": "PNT-PRIME-STAIN",
            "description": "Prime walls - stain blocking sealer",
            "unit": "SF",
            "category": "priming",
            "priority": 40,
            "conditions": [
                {"kind": "damage_type", "values": ["fire", "smoke"]},
                {"kind": "surfaces", "any_of": ["wall", "drywall", "ceiling"]},
            ],
            "quantity_formula": "WALL_SF_NET",
            "replaces": ["PNT-PRIME-STD"],
            "quantity_bound": "WALL_SF_NET",
        },
        {
            "code": "PNT-INT-WALL",
            "description": "Paint interior walls - 2 coats",
            "unit": "SF",
            "category": "painting",
            "priority": 30,
            "conditions": [
                {"kind": "damage_type", "values": FINISH_DAMAGE},
                {"kind": "surfaces", "any_of": WALL_SURFACES},
                {"kind": "severity", "minimum": "moderate"},
            ],
            "quantity_formula": "WALL_SF_NET",
            "requires_any": ["PNT-PRIME-STD", "PNT-PRIME-STAIN"],
            "quantity_bound": "WALL_SF_NET",
        },
        {
            "code": "PNT-INT-CEIL",
            "description": "Paint ceiling - 2 coats",
            "unit": "SF",
            "category": "painting",
            "priority": 30,
            "conditions": [
                {"kind": "damage_type", "values": FINISH_DAMAGE},
                {"kind": "surfaces", "any_of": ["ceiling"]},
            ],
            "quantity_formula": "CEIL_SF",
            "quantity_bound": "CEIL_SF",
        },
        {
            "code": "CAB-LOWER-DR",
            "description": "Detach and reset lower cabinets",
            "unit": "LF",
            "category": "cabinetry",
            "priority": 45,
            "conditions": [
                {"kind": "surfaces", "any_of": ["cabinet", "cabinets"]},
                {"kind": "severity", "minimum": "severe"},
            ],
            "quantity_formula": "LONG_WALL_SF / HEIGHT_FT",
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
        """Register interior trade coordination checks."""
        self.engine.add_check(
            ValidationCheck(
                check_id="GEN-001",
                name="Drywall Without Paint",
                description="New drywall normally needs finish paint",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.INFO,
                validator=self._validate_drywall_paint,
            )
        )

        self.engine.add_check(
            ValidationCheck(
                check_id="GEN-002",
                name="Haul-Off Without Demolition",
                description="Debris haul-off with nothing in scope that produces debris",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.INFO,
                validator=self._validate_haul_demo,
            )
        )

    def _validate_drywall_paint(self, context: ValidationContext) -> list[ValidationIssue]:
        check = self.engine.get_check("GEN-001")
        drywall = context.items_in_category("drywall")
        if not drywall or context.has_category("painting"):
            return []

        return [
            self.engine.create_issue(
                check,
                context,
                code="CMP201",
                message=f"Drywall replacement ({drywall[0].code}) without finish paint",
                line_item_code=drywall[0].code,
                related_items=["PNT-INT-WALL"],
                suggestion="Add PNT-INT-WALL for the repaired walls",
            )
        ]

    def _validate_haul_demo(self, context: ValidationContext) -> list[ValidationIssue]:
        check = self.engine.get_check("GEN-002")
        haul = context.items_in_category("debris")
        if not haul or context.has_category(*DEBRIS_SOURCES):
            return []

        return [
            self.engine.create_issue(
                check,
                context,
                code="CMP202",
                message="Debris haul-off is in scope without any demolition",
                line_item_code=haul[0].code,
                suggestion="Confirm what is being removed or drop the haul-off",
            )
        ]
