"""
Rule Conditions.
Closed set of tagged condition kinds a catalog rule can test against a zone.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import CatalogError
from .models import DamageSeverity, WaterCategory, WaterClass, Zone, ZoneType


class _ConditionBase(BaseModel):
    """Shared configuration for condition models."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def evaluate(self, zone: Zone) -> str | None:
        """Return a human-readable reason when the zone satisfies the condition."""
        raise NotImplementedError


def _normalize_labels(value: Any) -> Any:
    if isinstance(value, str):
        value = [value]
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(str(item).strip().lower() for item in value if str(item).strip())
    return value


def _as_tuple(value: Any) -> Any:
    if value is None:
        return ()
    if isinstance(value, (list, set, frozenset)):
        return tuple(value)
    if not isinstance(value, tuple):
        return (value,)
    return value


def _in_range(rank: int, values: tuple[int, ...], minimum: int | None, maximum: int | None) -> bool:
    if values and rank not in values:
        return False
    if minimum is not None and rank < minimum:
        return False
    if maximum is not None and rank > maximum:
        return False
    return True


class DamageTypeCondition(_ConditionBase):
    """Zone damage type is one of the listed types (case-insensitive)."""

    kind: Literal["damage_type"] = "damage_type"
    values: tuple[str, ...] = Field(min_length=1)

    @field_validator("values", mode="before")
    @classmethod
    def _normalize_values(cls, value: Any) -> Any:
        return _normalize_labels(value)

    def evaluate(self, zone: Zone) -> str | None:
        if zone.damage_type and zone.damage_type in self.values:
            return f"Damage type: {zone.damage_type}"
        return None


class SeverityCondition(_ConditionBase):
    """Zone damage severity falls within an ordinal range or set."""

    kind: Literal["severity"] = "severity"
    values: tuple[DamageSeverity, ...] = ()
    minimum: DamageSeverity | None = None
    maximum: DamageSeverity | None = None

    @field_validator("values", mode="before")
    @classmethod
    def _coerce_values(cls, value: Any) -> Any:
        return _as_tuple(value)

    @model_validator(mode="after")
    def _require_bound(self) -> "SeverityCondition":
        if not self.values and self.minimum is None and self.maximum is None:
            raise ValueError("severity condition needs values, minimum or maximum")
        return self

    def evaluate(self, zone: Zone) -> str | None:
        severity = zone.damage_severity
        if severity is None:
            return None
        matched = _in_range(
            severity.rank,
            tuple(v.rank for v in self.values),
            self.minimum.rank if self.minimum else None,
            self.maximum.rank if self.maximum else None,
        )
        if not matched:
            return None
        if self.minimum is not None and not self.values:
            return f"Severity: {severity.value} (at least {self.minimum.value})"
        return f"Severity: {severity.value}"


class WaterCategoryCondition(_ConditionBase):
    """Zone water category is in a set and/or range."""

    kind: Literal["water_category"] = "water_category"
    values: tuple[WaterCategory, ...] = ()
    minimum: WaterCategory | None = None
    maximum: WaterCategory | None = None

    @field_validator("values", mode="before")
    @classmethod
    def _coerce_values(cls, value: Any) -> Any:
        return _as_tuple(value)

    @model_validator(mode="after")
    def _require_bound(self) -> "WaterCategoryCondition":
        if not self.values and self.minimum is None and self.maximum is None:
            raise ValueError("water_category condition needs values, minimum or maximum")
        return self

    def evaluate(self, zone: Zone) -> str | None:
        category = zone.water_category
        if category is None:
            return None
        if _in_range(
            category.value,
            tuple(v.value for v in self.values),
            self.minimum.value if self.minimum else None,
            self.maximum.value if self.maximum else None,
        ):
            return f"Water category: {category.value}"
        return None


class WaterClassCondition(_ConditionBase):
    """Zone water class is in a set and/or range."""

    kind: Literal["water_class"] = "water_class"
    values: tuple[WaterClass, ...] = ()
    minimum: WaterClass | None = None
    maximum: WaterClass | None = None

    @field_validator("values", mode="before")
    @classmethod
    def _coerce_values(cls, value: Any) -> Any:
        return _as_tuple(value)

    @model_validator(mode="after")
    def _require_bound(self) -> "WaterClassCondition":
        if not self.values and self.minimum is None and self.maximum is None:
            raise ValueError("water_class condition needs values, minimum or maximum")
        return self

    def evaluate(self, zone: Zone) -> str | None:
        water_class = zone.water_class
        if water_class is None:
            return None
        if _in_range(
            water_class.value,
            tuple(v.value for v in self.values),
            self.minimum.value if self.minimum else None,
            self.maximum.value if self.maximum else None,
        ):
            return f"Water class: {water_class.value}"
        return None


class SurfaceCondition(_ConditionBase):
    """At least one listed surface is among the zone's affected surfaces."""

    kind: Literal["surfaces"] = "surfaces"
    any_of: tuple[str, ...] = Field(min_length=1, alias="anyOf")

    @field_validator("any_of", mode="before")
    @classmethod
    def _normalize_surfaces(cls, value: Any) -> Any:
        return _normalize_labels(value)

    def evaluate(self, zone: Zone) -> str | None:
        overlap = sorted(set(self.any_of) & zone.affected_surfaces)
        if overlap:
            return f"Affected surfaces: {', '.join(overlap)}"
        return None


class ZoneTypeCondition(_ConditionBase):
    """Zone is one of the listed zone types."""

    kind: Literal["zone_type"] = "zone_type"
    values: tuple[ZoneType, ...] = Field(min_length=1)

    @field_validator("values", mode="before")
    @classmethod
    def _coerce_values(cls, value: Any) -> Any:
        return _as_tuple(value)

    def evaluate(self, zone: Zone) -> str | None:
        if zone.zone_type in self.values:
            return f"Zone type: {zone.zone_type.value}"
        return None


Condition = Annotated[
    DamageTypeCondition
    | SeverityCondition
    | WaterCategoryCondition
    | WaterClassCondition
    | SurfaceCondition
    | ZoneTypeCondition,
    Field(discriminator="kind"),
]


def _range_kwargs(value: Any) -> dict[str, Any]:
    """Compact values: a list/scalar is a set, a dict may carry min/max."""
    if isinstance(value, dict):
        kwargs: dict[str, Any] = {}
        if "values" in value:
            kwargs["values"] = value["values"]
        if "min" in value or "minimum" in value:
            kwargs["minimum"] = value.get("min", value.get("minimum"))
        if "max" in value or "maximum" in value:
            kwargs["maximum"] = value.get("max", value.get("maximum"))
        return kwargs
    return {"values": value}


# Keys accepted in the compact mapping form, snake_case and camelCase
_MAPPING_KEYS: dict[str, str] = {
    "damage_type": "damage_type",
    "damageType": "damage_type",
    "damage_severity": "severity",
    "damageSeverity": "severity",
    "severity": "severity",
    "water_category": "water_category",
    "waterCategory": "water_category",
    "water_class": "water_class",
    "waterClass": "water_class",
    "affected_surfaces": "surfaces",
    "affectedSurfaces": "surfaces",
    "surfaces": "surfaces",
    "zone_type": "zone_type",
    "zoneType": "zone_type",
}


def conditions_from_mapping(mapping: dict[str, Any], rule_code: str | None = None) -> list[Any]:
    """
    Convert the compact condition mapping into tagged conditions.

    Example:
        {"damageType": ["water"], "waterCategory": [2, 3], "affectedSurfaces": ["wall"]}

    Raises:
        CatalogError: For keys outside the closed condition set
    """
    conditions: list[Any] = []
    for key, value in mapping.items():
        kind = _MAPPING_KEYS.get(key)
        if kind is None:
            raise CatalogError(
                f"Unknown condition key '{key}'" + (f" in rule {rule_code}" if rule_code else ""),
                details={"key": key, "rule": rule_code, "allowed": sorted(set(_MAPPING_KEYS.values()))},
            )
        if value is None:
            continue

        if kind == "damage_type":
            conditions.append(DamageTypeCondition(values=value))
        elif kind == "surfaces":
            conditions.append(SurfaceCondition(any_of=value))
        elif kind == "zone_type":
            conditions.append(ZoneTypeCondition(values=value))
        elif kind == "severity":
            conditions.append(SeverityCondition(**_range_kwargs(value)))
        elif kind == "water_category":
            conditions.append(WaterCategoryCondition(**_range_kwargs(value)))
        else:
            conditions.append(WaterClassCondition(**_range_kwargs(value)))

    return conditions
