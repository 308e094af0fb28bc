"""
Core data models for the Zone Scope Engine.
Uses Pydantic for validation and serialization.

Field names are snake_case in Python and serialize to the camelCase
contract names with ``model_dump(by_alias=True)``.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ContractModel(BaseModel):
    """Base model accepting and emitting camelCase contract names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenContractModel(ContractModel):
    """Immutable contract model for engine outputs."""

    model_config = ConfigDict(frozen=True)


class ZoneType(str, Enum):
    """Kinds of inspection zones."""

    ROOM = "room"
    ROOF = "roof"
    ELEVATION = "elevation"
    OTHER = "other"


class DamageSeverity(str, Enum):
    """Ordinal damage severity levels."""

    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"
    EMERGENCY = "emergency"

    @property
    def rank(self) -> int:
        """Ordinal position, minor lowest."""
        return _SEVERITY_RANKS[self]


_SEVERITY_RANKS = {
    DamageSeverity.MINOR: 1,
    DamageSeverity.MODERATE: 2,
    DamageSeverity.SEVERE: 3,
    DamageSeverity.EMERGENCY: 4,
}


class WaterCategory(int, Enum):
    """Water damage categories per IICRC S500 standard."""

    CATEGORY_1 = 1  # Clean water
    CATEGORY_2 = 2  # Gray water
    CATEGORY_3 = 3  # Black water (sewage/contaminated)


class WaterClass(int, Enum):
    """Water damage classes per IICRC S500 (evaporation load)."""

    CLASS_1 = 1  # Least water, low porosity
    CLASS_2 = 2  # Significant water, carpet and cushion
    CLASS_3 = 3  # Greatest water, walls and ceilings saturated
    CLASS_4 = 4  # Specialty drying (hardwood, concrete, plaster)


class CarrierSensitivity(str, Enum):
    """How closely carriers scrutinize a line item."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class QuantitySource(str, Enum):
    """Where a suggested quantity came from."""

    FORMULA = "formula"
    FIXED = "fixed"
    DEFAULT = "default"


class MetricSource(str, Enum):
    """Whether metrics were derived from real dimensions."""

    DIMENSIONS = "dimensions"
    UNKNOWN = "unknown"


class ValidationStatus(str, Enum):
    """Per-item validation status."""

    PENDING = "pending"
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return {"info": 1, "warning": 2, "error": 3}[self.value]


class IssueCategory(str, Enum):
    """Categories for validation issues."""

    COMPLETENESS = "completeness"
    DEPENDENCY = "dependency"
    QUANTITY = "quantity"
    EXCLUSION = "exclusion"


class ExclusionKind(str, Enum):
    """Why an item was kept out of the final scope."""

    EXCLUDED = "excluded"
    REPLACED = "replaced"
    CONFLICT = "conflict"
    ORPHANED = "orphaned"


class Opening(ContractModel):
    """Door, window or other wall opening."""

    width_ft: float = Field(ge=0)
    height_ft: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    kind: str = "opening"


class Subroom(ContractModel):
    """Closet, bump-out or cut-out attached to a zone."""

    length_ft: float = Field(ge=0)
    width_ft: float = Field(ge=0)
    is_addition: bool = True
    name: str | None = None


class Zone(ContractModel):
    """Inspection zone with geometry and damage attributes."""

    id: str
    name: str | None = None
    zone_type: ZoneType = ZoneType.ROOM
    length_ft: float | None = Field(default=None, ge=0)
    width_ft: float | None = Field(default=None, ge=0)
    height_ft: float | None = Field(default=None, ge=0)
    pitch: str | None = Field(default=None, description="Roof pitch as rise/run, e.g. 6/12")
    pitch_multiplier: float | None = Field(default=None, gt=0)
    damage_type: str | None = None
    damage_severity: DamageSeverity | None = None
    water_category: WaterCategory | None = None
    water_class: WaterClass | None = None
    affected_surfaces: set[str] = Field(default_factory=set)
    openings: list[Opening] = Field(default_factory=list)
    subrooms: list[Subroom] = Field(default_factory=list)

    @field_validator("affected_surfaces", mode="before")
    @classmethod
    def _normalize_surfaces(cls, value: Any) -> Any:
        if value is None:
            return set()
        if isinstance(value, str):
            value = [value]
        return {str(surface).strip().lower() for surface in value if str(surface).strip()}

    @field_validator("damage_type", mode="before")
    @classmethod
    def _normalize_damage_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @property
    def display_name(self) -> str:
        return self.name or self.id


class ZoneMetrics(FrozenContractModel):
    """Derived geometric quantities for a zone. Pure function of the zone."""

    floor_sf: float = 0.0
    ceiling_sf: float = 0.0
    wall_sf: float = 0.0
    opening_sf: float = 0.0
    opening_count: int = 0
    wall_sf_net: float = 0.0
    walls_ceiling_sf: float = 0.0
    perimeter_lf: float = 0.0
    long_wall_sf: float = 0.0
    short_wall_sf: float = 0.0
    subroom_net_sf: float = 0.0
    height_ft: float = 0.0
    default_height_used: bool = False
    length_ft: float = 0.0
    width_ft: float = 0.0
    roof_pitch_multiplier: float | None = None
    roof_sf: float | None = None
    roof_squares: float | None = None
    computed_from: MetricSource = MetricSource.UNKNOWN

    @property
    def is_known(self) -> bool:
        return self.computed_from == MetricSource.DIMENSIONS


class SuggestedItem(FrozenContractModel):
    """Line item proposed for a zone."""

    code: str
    description: str
    category: str
    unit: str
    quantity: float
    quantity_source: QuantitySource
    formula: str | None = None
    explanation: str
    is_auto_added: bool = False
    added_by_item: str | None = None
    reasons: list[str] = Field(default_factory=list)
    carrier_sensitivity: CarrierSensitivity = CarrierSensitivity.LOW
    validation_status: ValidationStatus = ValidationStatus.PENDING


class ExcludedItem(FrozenContractModel):
    """Line item kept out of the final scope."""

    code: str
    excluded_by: str
    reason: str
    kind: ExclusionKind = ExclusionKind.EXCLUDED
    was_auto_added: bool = False


class ValidationIssue(FrozenContractModel):
    """Individual validation finding."""

    code: str
    category: IssueCategory
    severity: IssueSeverity
    message: str
    suggestion: str | None = None
    zone_id: str | None = None
    line_item_code: str | None = None
    related_items: list[str] = Field(default_factory=list)
    check_id: str | None = None


class ScopeResult(FrozenContractModel):
    """Outcome of scoping a single zone."""

    zone_id: str
    zone_name: str | None = None
    metrics: ZoneMetrics
    suggested_items: list[SuggestedItem] = Field(default_factory=list)
    excluded_items: list[ExcludedItem] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    items_evaluated: int = 0
    items_matched: int = 0

    def get_item(self, code: str) -> SuggestedItem | None:
        """Find a suggested item by code."""
        for item in self.suggested_items:
            if item.code == code:
                return item
        return None

    @property
    def codes(self) -> list[str]:
        return [item.code for item in self.suggested_items]


class CheckSummary(ContractModel):
    """Pass/fail outcome for one registered check."""

    check_id: str
    name: str
    category: IssueCategory
    passed: bool = True
    issue_count: int = 0


class ValidationResult(ContractModel):
    """Complete validation output for a zone."""

    zone_id: str | None = None
    is_valid: bool = True
    issue_count: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    issues: list[ValidationIssue] = Field(default_factory=list)
    by_category: dict[str, int] = Field(
        default_factory=lambda: {category.value: 0 for category in IssueCategory}
    )
    checks: list[CheckSummary] = Field(default_factory=list)

    def add_issue(self, issue: ValidationIssue) -> None:
        """Add an issue and update summary counts."""
        self.issues.append(issue)
        self.issue_count += 1
        self.by_category[issue.category.value] = self.by_category.get(issue.category.value, 0) + 1

        if issue.severity == IssueSeverity.ERROR:
            self.error_count += 1
            self.is_valid = False
        elif issue.severity == IssueSeverity.WARNING:
            self.warning_count += 1
        else:
            self.info_count += 1

    def issues_for(self, code: str) -> list[ValidationIssue]:
        """Get all issues attached to a line item code."""
        return [issue for issue in self.issues if issue.line_item_code == code]

    def status_for(self, code: str) -> ValidationStatus:
        """Worst status among the issues attached to a line item code."""
        worst: IssueSeverity | None = None
        for issue in self.issues_for(code):
            if worst is None or issue.severity.rank > worst.rank:
                worst = issue.severity

        if worst == IssueSeverity.ERROR:
            return ValidationStatus.ERROR
        if worst == IssueSeverity.WARNING:
            return ValidationStatus.WARNING
        return ValidationStatus.VALID

    def annotate(self, items: list[SuggestedItem]) -> list[SuggestedItem]:
        """Return copies of items with their validation status filled in."""
        return [
            item.model_copy(update={"validation_status": self.status_for(item.code)})
            for item in items
        ]


class ZoneReport(FrozenContractModel):
    """Scope and validation for one zone."""

    scope: ScopeResult
    validation: ValidationResult


class EstimateScopeResult(FrozenContractModel):
    """Roll-up of zone reports across an estimate."""

    estimate_id: str
    zones: list[ZoneReport] = Field(default_factory=list)
    total_suggested: int = 0
    total_excluded: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    total_info: int = 0
    is_valid: bool = True
