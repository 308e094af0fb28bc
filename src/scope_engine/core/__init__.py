"""
Core components for the Zone Scope Engine.
"""

from .catalog import LineItemRule, RuleCatalog, load_catalog
from .check_engine import CheckEngine, ValidationCheck, ValidationContext
from .conditions import (
    Condition,
    DamageTypeCondition,
    SeverityCondition,
    SurfaceCondition,
    WaterCategoryCondition,
    WaterClassCondition,
    ZoneTypeCondition,
    conditions_from_mapping,
)
from .formula import Formula, FormulaFunction, FormulaParser, evaluate_formula, get_parser, render_formula
from .matcher import RuleMatch, ScopeMatcher, match_rules
from .metrics import (
    MetricAlias,
    compute_zone_metrics,
    describe_metric,
    format_metrics_explanation,
    get_metric_value,
    pitch_multiplier,
)
from .models import (
    CarrierSensitivity,
    DamageSeverity,
    EstimateScopeResult,
    ExcludedItem,
    ExclusionKind,
    IssueCategory,
    IssueSeverity,
    Opening,
    ScopeResult,
    Subroom,
    SuggestedItem,
    ValidationIssue,
    ValidationResult,
    ValidationStatus,
    WaterCategory,
    WaterClass,
    Zone,
    ZoneMetrics,
    ZoneReport,
    ZoneType,
)
from .quantity import QuantityEvaluator, QuantityResult
from .resolver import DependencyResolver, Resolution, ResolvedItem, resolve
from .validator import ScopeValidator, validate

__all__ = [
    # Models
    "CarrierSensitivity",
    "DamageSeverity",
    "EstimateScopeResult",
    "ExcludedItem",
    "ExclusionKind",
    "IssueCategory",
    "IssueSeverity",
    "Opening",
    "ScopeResult",
    "Subroom",
    "SuggestedItem",
    "ValidationIssue",
    "ValidationResult",
    "ValidationStatus",
    "WaterCategory",
    "WaterClass",
    "Zone",
    "ZoneMetrics",
    "ZoneReport",
    "ZoneType",
    # Metrics
    "MetricAlias",
    "compute_zone_metrics",
    "describe_metric",
    "format_metrics_explanation",
    "get_metric_value",
    "pitch_multiplier",
    # Conditions
    "Condition",
    "DamageTypeCondition",
    "SeverityCondition",
    "SurfaceCondition",
    "WaterCategoryCondition",
    "WaterClassCondition",
    "ZoneTypeCondition",
    "conditions_from_mapping",
    # Formulas
    "Formula",
    "FormulaFunction",
    "FormulaParser",
    "evaluate_formula",
    "get_parser",
    "render_formula",
    # Catalog
    "LineItemRule",
    "RuleCatalog",
    "load_catalog",
    # Pipeline
    "DependencyResolver",
    "QuantityEvaluator",
    "QuantityResult",
    "Resolution",
    "ResolvedItem",
    "RuleMatch",
    "ScopeMatcher",
    "match_rules",
    "resolve",
    # Validation
    "CheckEngine",
    "ScopeValidator",
    "ValidationCheck",
    "ValidationContext",
    "validate",
]
