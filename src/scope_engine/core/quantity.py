"""
Quantity Formula Evaluator.
Turns a rule's formula, fixed quantity or unit default into a number
plus a plain-language explanation of how it was derived.
"""

import math
from dataclasses import dataclass, field

import structlog

from ..config import settings
from .catalog import LineItemRule, RuleCatalog
from .formula import Formula, evaluate_formula, get_parser, render_formula
from .metrics import describe_metric, format_number
from .models import QuantitySource, ZoneMetrics

logger = structlog.get_logger()


@dataclass
class QuantityResult:
    """Evaluated quantity for one rule."""

    quantity: float
    unit: str
    source: QuantitySource
    explanation: str
    formula: str | None = None
    warnings: list[str] = field(default_factory=list)


class QuantityEvaluator:
    """
    Evaluates rule quantities against a zone's metrics.

    Formulas are taken pre-compiled from the catalog when one is given,
    otherwise they are parsed (and cached) on demand.
    """

    # Units counted per occurrence or per time period default to one
    COUNT_UNITS = ("EA", "HR", "DAY", "WK")

    def __init__(self, catalog: RuleCatalog | None = None, precision: int | None = None) -> None:
        self.catalog = catalog
        self.precision = precision if precision is not None else settings.metric_precision

    def _formula_for(self, rule: LineItemRule) -> Formula | None:
        if rule.quantity_formula is None:
            return None
        if self.catalog is not None and rule.code in self.catalog:
            return self.catalog.formula_for(rule.code)
        return get_parser().parse(rule.quantity_formula)

    def _default_for(self, rule: LineItemRule, metrics: ZoneMetrics) -> QuantityResult:
        """Quantity implied by the unit when a rule gives neither formula nor fixed quantity."""
        unit = rule.unit
        if unit == "SF":
            quantity, explanation = metrics.floor_sf, "Default: floor square footage"
        elif unit == "LF":
            quantity, explanation = metrics.perimeter_lf, "Default: floor perimeter"
        elif unit == "SY":
            quantity, explanation = math.ceil(metrics.floor_sf / 9), "Default: floor SF / 9 (square yards)"
        elif unit == "SQ":
            quantity = metrics.roof_squares or math.ceil(metrics.floor_sf / 100)
            explanation = "Default: roofing squares"
        elif unit in self.COUNT_UNITS:
            quantity, explanation = 1, f"Default: 1 {unit}"
        else:
            quantity, explanation = 1, f"Default: 1 (unknown unit {unit})"

        quantity = round(float(quantity), self.precision)
        warnings = []
        if quantity == 0:
            warnings.append(f"Default {unit} quantity is zero for this zone")
        return QuantityResult(
            quantity=quantity,
            unit=unit,
            source=QuantitySource.DEFAULT,
            explanation=f"{explanation} = {format_number(quantity)} {unit}",
            warnings=warnings,
        )

    def evaluate(self, rule: LineItemRule, metrics: ZoneMetrics) -> QuantityResult:
        """
        Evaluate a rule's quantity.

        A formula wins over a fixed quantity; a rule with neither falls
        back to a default derived from its unit.

        Args:
            rule: Catalog rule
            metrics: Metrics snapshot of the zone

        Returns:
            QuantityResult with a deterministic explanation
        """
        formula = self._formula_for(rule)

        if formula is None:
            if rule.fixed_quantity is None:
                return self._default_for(rule, metrics)
            return QuantityResult(
                quantity=rule.fixed_quantity,
                unit=rule.unit,
                source=QuantitySource.FIXED,
                explanation=f"Fixed quantity: {format_number(rule.fixed_quantity)} {rule.unit}",
            )

        evaluation = evaluate_formula(formula, metrics)
        quantity = round(evaluation.value, self.precision)
        if quantity == 0:
            quantity = 0.0

        lines = [describe_metric(metrics, alias) for alias in formula.metrics]
        if not formula.is_bare_metric:
            lines.append(f"{render_formula(formula, metrics)} = {format_number(quantity)} {rule.unit}")

        if evaluation.warnings:
            logger.debug("quantity_warnings", code=rule.code, warnings=evaluation.warnings)

        return QuantityResult(
            quantity=quantity,
            unit=rule.unit,
            source=QuantitySource.FORMULA,
            explanation="; ".join(lines) if lines else f"{format_number(quantity)} {rule.unit}",
            formula=formula.source,
            warnings=evaluation.warnings,
        )


def evaluate(rule: LineItemRule, metrics: ZoneMetrics) -> QuantityResult:
    """Convenience wrapper around QuantityEvaluator.evaluate."""
    return QuantityEvaluator().evaluate(rule, metrics)
