"""
Roofing Module (RFG).
Pitch-adjusted tear-off and re-roof scope for wind and hail damage.
"""

import copy
from typing import Any

from ..core.check_engine import CheckEngine, ValidationCheck, ValidationContext
from ..core.models import IssueCategory, IssueSeverity, ValidationIssue, ZoneType

STORM_DAMAGE = ["wind", "hail"]


class RoofingModule:
    """Roofing rule set and roof geometry checks."""

    NAME = "Roofing (RFG)"

    # Starter, ridge and cut waste on a simple gable
    SHINGLE_WASTE_FACTOR = 1.1

    RULES: list[dict[str, Any]] = [
        {
            "code": "RFG-TEAR",
            "description": "Tear off composition shingles",
            "unit": "SQ",
            "category": "roofing",
            "priority": 80,
            "conditions": [
                {"kind": "zone_type", "values": ["roof"]},
                {"kind": "damage_type", "values": STORM_DAMAGE},
                {"kind": "severity", "minimum": "moderate"},
            ],
            "quantity_formula": "ROOF_SQ",
            "auto_adds": ["RFG-FELT", "RFG-SHINGLE", "RFG-DRIP", "DEM-HAUL"],
            "excludes": ["RFG-REPAIR"],
            "quantity_bound": "ROOF_SQ",
            "carrier_sensitivity": "high",
        },
        {
            "code": "RFG-SHINGLE",
            "description": "Laminated composition shingles",
            "unit": "SQ",
            "category": "roofing",
            "quantity_formula": f"ROUND(ROOF_SQ * {SHINGLE_WASTE_FACTOR}, 2)",
            "requires": ["RFG-TEAR"],
            "quantity_bound": "ROOF_SQ",
            "carrier_sensitivity": "high",
        },
        {
            "code": "RFG-FELT",
            "description": "Roofing felt - 15 lb",
            "unit": "SQ",
            "category": "roofing",
            "quantity_formula": "ROOF_SQ",
            "quantity_bound": "ROOF_SQ",
        },
        {
            "code": "RFG-DRIP",
            "description": "Drip edge",
            "unit": "LF",
            "category": "roofing",
            "quantity_formula": "PERIMETER_LF",
            "quantity_bound": "PERIMETER_LF",
        },
        {
            "code": "RFG-REPAIR",
            "description": "Roof repair - replace individual shingles",
            "unit": "EA",
            "category": "roofing",
            "priority": 78,
            "conditions": [
                {"kind": "zone_type", "values": ["roof"]},
                {"kind": "damage_type", "values": STORM_DAMAGE},
                {"kind": "severity", "maximum": "minor"},
            ],
            "fixed_quantity": 1,
        },
    ]

    def __init__(self, check_engine: CheckEngine | None = None) -> None:
        self.engine = check_engine or CheckEngine()
        self._register_checks()

    def rules(self) -> list[dict[str, Any]]:
        """Rule definitions contributed by this module."""
        return copy.deepcopy(self.RULES)

    def _register_checks(self) -> None:
        self.engine.add_check(
            ValidationCheck(
                check_id="RFG-001",
                name="Roof Pitch Recorded",
                description="Roof quantities assume a flat roof when no pitch is recorded",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.INFO,
                validator=self._validate_pitch,
            )
        )

    def _validate_pitch(self, context: ValidationContext) -> list[ValidationIssue]:
        zone = context.zone
        if zone.zone_type != ZoneType.ROOF or zone.pitch or zone.pitch_multiplier:
            return []

        return [
            self.engine.create_issue(
                self.engine.get_check("RFG-001"),
                context,
                code="CMP401",
                message="Roof pitch not recorded; roof area assumes a flat roof",
                suggestion="Record the pitch (e.g. 6/12) for accurate squares",
            )
        ]
