"""
Scope Validator.
Checks a zone's item set for missing prerequisites, implausible
quantities, conflicting pairs and gaps in coverage.
"""

import structlog

from ..config import settings
from .catalog import LineItemRule, RuleCatalog
from .check_engine import CheckEngine, ValidationCheck, ValidationContext
from .metrics import compute_zone_metrics, format_number, get_metric_value
from .models import (
    CarrierSensitivity,
    IssueCategory,
    IssueSeverity,
    SuggestedItem,
    ValidationIssue,
    ValidationResult,
    Zone,
    ZoneMetrics,
    ZoneType,
)

logger = structlog.get_logger()


class ScopeValidator:
    """
    Validates suggested items for a zone.

    Built-in checks cover dependencies, quantity bounds, exclusions and
    surface coverage. Domain modules register further completeness
    checks on the same CheckEngine.
    """

    # Per-item ceilings for count-like units
    UNIT_LIMITS: dict[str, float] = {
        "EA": 50,
        "HR": 100,
        "DAY": 30,
        "WK": 8,
    }
    LF_PERIMETER_MULTIPLIER = 2.0
    SY_MULTIPLIER = 1.5

    def __init__(self, check_engine: CheckEngine | None = None, tolerance: float | None = None) -> None:
        self.engine = check_engine or CheckEngine()
        self.tolerance = tolerance if tolerance is not None else settings.quantity_tolerance
        self._register_checks()

    def _register_checks(self) -> None:
        """Register the built-in checks."""
        self.engine.add_check(
            ValidationCheck(
                check_id="DEP-001",
                name="Prerequisite Check",
                description="Every required line item must be present alongside the items that need it",
                category=IssueCategory.DEPENDENCY,
                severity=IssueSeverity.ERROR,
                validator=self._check_dependencies,
            )
        )

        self.engine.add_check(
            ValidationCheck(
                check_id="QTY-001",
                name="Quantity Bounds Check",
                description="Quantities must be positive and within plausible limits for the zone",
                category=IssueCategory.QUANTITY,
                severity=IssueSeverity.WARNING,
                validator=self._check_quantities,
            )
        )

        self.engine.add_check(
            ValidationCheck(
                check_id="EXC-001",
                name="Exclusion Check",
                description="Mutually exclusive or superseded items must not appear together",
                category=IssueCategory.EXCLUSION,
                severity=IssueSeverity.ERROR,
                validator=self._check_exclusions,
            )
        )

        self.engine.add_check(
            ValidationCheck(
                check_id="CMP-001",
                name="Surface Coverage",
                description="Every affected surface should be addressed by at least one line item",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.INFO,
                validator=self._check_surface_coverage,
            )
        )

        self.engine.add_check(
            ValidationCheck(
                check_id="CMP-002",
                name="Geometry Completeness",
                description="Flag zones whose quantities rest on missing or defaulted dimensions",
                category=IssueCategory.COMPLETENESS,
                severity=IssueSeverity.INFO,
                validator=self._check_geometry,
            )
        )

    def validate(
        self,
        items: list[SuggestedItem],
        zone: Zone,
        catalog: RuleCatalog,
        metrics: ZoneMetrics | None = None,
    ) -> ValidationResult:
        """
        Run every enabled check against a zone's items.

        Args:
            items: Suggested (or user-edited) items for the zone
            zone: The zone the items belong to
            catalog: Catalog the items were drawn from
            metrics: Precomputed metrics (computed from the zone if omitted)

        Returns:
            ValidationResult with counts and per-check summaries
        """
        context = ValidationContext(
            zone=zone,
            items=items,
            catalog=catalog,
            metrics=metrics if metrics is not None else compute_zone_metrics(zone),
            tolerance=self.tolerance,
        )
        result = self.engine.run(context)

        logger.info(
            "validation_completed",
            zone_id=zone.id,
            items=len(items),
            errors=result.error_count,
            warnings=result.warning_count,
            info=result.info_count,
        )
        return result

    # Dependency

    def _check_dependencies(self, context: ValidationContext) -> list[ValidationIssue]:
        check = self.engine.get_check("DEP-001")
        issues: list[ValidationIssue] = []

        for item in context.items:
            rule = context.rule(item.code)
            if rule is None:
                continue

            for required in rule.requires:
                if context.has(required):
                    continue
                needed = context.rule(required)
                issues.append(
                    self.engine.create_issue(
                        check,
                        context,
                        code="DEP001",
                        message=f"{item.code} requires {required}, which is not in scope",
                        line_item_code=item.code,
                        related_items=[required],
                        suggestion=f"Add {required}" + (f" ({needed.description})" if needed else ""),
                    )
                )

            if rule.requires_any and not any(context.has(code) for code in rule.requires_any):
                issues.append(
                    self.engine.create_issue(
                        check,
                        context,
                        code="DEP002",
                        message=f"{item.code} requires one of: {', '.join(rule.requires_any)}",
                        line_item_code=item.code,
                        related_items=list(rule.requires_any),
                        suggestion=f"Add {rule.requires_any[0]} or an equivalent item",
                    )
                )

            if item.is_auto_added and item.added_by_item and not context.has(item.added_by_item):
                issues.append(
                    self.engine.create_issue(
                        check,
                        context,
                        code="DEP003",
                        message=f"{item.code} was auto-added by {item.added_by_item}, which is no longer in scope",
                        line_item_code=item.code,
                        related_items=[item.added_by_item],
                        suggestion=f"Remove {item.code} or restore {item.added_by_item}",
                    )
                )

        return issues

    # Quantity

    def quantity_ceiling(
        self, rule: LineItemRule, unit: str, metrics: ZoneMetrics
    ) -> tuple[float, str] | None:
        """
        Plausible upper bound for an item's quantity.

        Returns:
            (ceiling, basis) or None when no bound applies
        """
        tolerance = self.tolerance

        if rule.quantity_bound is not None:
            if not metrics.is_known:
                return None
            base = get_metric_value(metrics, rule.quantity_bound)
            return base * tolerance, f"{rule.quantity_bound.value} {format_number(base)} × {format_number(tolerance)}"

        unit = unit.upper()
        if unit in self.UNIT_LIMITS:
            return self.UNIT_LIMITS[unit], f"{unit} limit"

        if not metrics.is_known:
            return None

        if unit == "SF":
            surface = metrics.floor_sf + metrics.ceiling_sf + metrics.wall_sf
            return surface * tolerance, f"total surface {format_number(surface)} SF × {format_number(tolerance)}"
        if unit == "LF":
            return (
                metrics.perimeter_lf * self.LF_PERIMETER_MULTIPLIER,
                f"perimeter {format_number(metrics.perimeter_lf)} LF × {format_number(self.LF_PERIMETER_MULTIPLIER)}",
            )
        if unit == "SY":
            yards = metrics.floor_sf / 9
            return yards * self.SY_MULTIPLIER, f"floor {format_number(yards)} SY × {format_number(self.SY_MULTIPLIER)}"
        if unit == "SQ":
            squares = metrics.roof_squares if metrics.roof_squares is not None else metrics.floor_sf / 100
            return squares * tolerance, f"{format_number(squares)} SQ × {format_number(tolerance)}"
        return None

    def _check_quantities(self, context: ValidationContext) -> list[ValidationIssue]:
        check = self.engine.get_check("QTY-001")
        issues: list[ValidationIssue] = []

        for item in context.items:
            if item.quantity <= 0:
                issues.append(
                    self.engine.create_issue(
                        check,
                        context,
                        code="QTY002",
                        message=f"{item.code} has a quantity of {format_number(item.quantity)} {item.unit}",
                        severity=IssueSeverity.WARNING,
                        line_item_code=item.code,
                        suggestion="Enter zone dimensions or set the quantity manually",
                    )
                )
                continue

            rule = context.rule(item.code)
            if rule is None:
                continue
            severity = (
                IssueSeverity.ERROR
                if rule.carrier_sensitivity == CarrierSensitivity.HIGH
                else IssueSeverity.WARNING
            )

            ceiling = self.quantity_ceiling(rule, item.unit, context.metrics)
            if ceiling is not None and item.quantity > ceiling[0]:
                limit, basis = ceiling
                issues.append(
                    self.engine.create_issue(
                        check,
                        context,
                        code="QTY001",
                        message=(
                            f"{item.code} quantity {format_number(item.quantity)} {item.unit} "
                            f"exceeds plausible maximum {format_number(round(limit, 2))} ({basis})"
                        ),
                        severity=severity,
                        line_item_code=item.code,
                        suggestion="Verify the measurement or document the reason for the overage",
                    )
                )

            if rule.max_quantity is not None and item.quantity > rule.max_quantity:
                issues.append(
                    self.engine.create_issue(
                        check,
                        context,
                        code="QTY003",
                        message=(
                            f"{item.code} quantity {format_number(item.quantity)} {item.unit} "
                            f"exceeds the item maximum of {format_number(rule.max_quantity)}"
                        ),
                        severity=severity,
                        line_item_code=item.code,
                    )
                )

        return issues

    # Exclusion

    def _check_exclusions(self, context: ValidationContext) -> list[ValidationIssue]:
        check = self.engine.get_check("EXC-001")
        issues: list[ValidationIssue] = []
        known = [item.code for item in context.items if item.code in context.catalog]
        reported: set[frozenset[str]] = set()

        for position, code in enumerate(known):
            for other in known[position + 1:]:
                pair = frozenset((code, other))
                if pair in reported or not context.catalog.conflicts(code, other):
                    continue
                reported.add(pair)
                issues.append(
                    self.engine.create_issue(
                        check,
                        context,
                        code="EXC001",
                        message=f"{code} and {other} are mutually exclusive",
                        line_item_code=code,
                        related_items=[other],
                        suggestion=f"Remove either {code} or {other}",
                    )
                )

        present = set(known)
        for code in known:
            for replacer in context.catalog.replacements_for(code):
                if replacer in present:
                    issues.append(
                        self.engine.create_issue(
                            check,
                            context,
                            code="EXC002",
                            message=f"{code} is superseded by {replacer}, but both are in scope",
                            severity=IssueSeverity.WARNING,
                            line_item_code=code,
                            related_items=[replacer],
                            suggestion=f"Remove {code}",
                        )
                    )

        return issues

    # Completeness

    def _check_surface_coverage(self, context: ValidationContext) -> list[ValidationIssue]:
        check = self.engine.get_check("CMP-001")
        issues: list[ValidationIssue] = []

        covered: set[str] = set()
        for item in context.items:
            rule = context.rule(item.code)
            if rule is not None:
                covered.update(rule.surfaces)

        for surface in sorted(context.zone.affected_surfaces - covered):
            candidates = [rule.code for rule in context.catalog.rules_for_surface(surface)]
            issues.append(
                self.engine.create_issue(
                    check,
                    context,
                    code="CMP001",
                    message=f"{surface.capitalize()} damage noted but no {surface} line item is in scope",
                    suggestion=(
                        f"Consider {', '.join(candidates)}" if candidates else f"Add a line item addressing {surface}"
                    ),
                    related_items=candidates,
                )
            )

        return issues

    def _check_geometry(self, context: ValidationContext) -> list[ValidationIssue]:
        check = self.engine.get_check("CMP-002")
        metrics = context.metrics

        if not metrics.is_known:
            return [
                self.engine.create_issue(
                    check,
                    context,
                    code="CMP002",
                    message="Zone dimensions are missing; formula quantities evaluate to zero",
                    suggestion="Record the zone's length and width",
                )
            ]
        # Roof quantities never use wall height
        if metrics.default_height_used and context.zone.zone_type != ZoneType.ROOF:
            return [
                self.engine.create_issue(
                    check,
                    context,
                    code="CMP003",
                    message=f"Wall height not recorded; default of {format_number(metrics.height_ft)} ft used",
                    suggestion="Measure and record the ceiling height",
                )
            ]
        return []


def validate(
    items: list[SuggestedItem],
    zone: Zone,
    catalog: RuleCatalog,
    metrics: ZoneMetrics | None = None,
) -> ValidationResult:
    """Convenience wrapper running the built-in checks."""
    return ScopeValidator().validate(items, zone, catalog, metrics)
