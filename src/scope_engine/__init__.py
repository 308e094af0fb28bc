"""
Zone Scope Engine.

Derives insurance-estimate line items from a zone's geometry and damage
attributes, then validates the resulting scope for missing prerequisites,
implausible quantities, conflicts and coverage gaps.
"""

from .core.catalog import LineItemRule, RuleCatalog, load_catalog
from .core.models import (
    DamageSeverity,
    EstimateScopeResult,
    IssueCategory,
    IssueSeverity,
    ScopeResult,
    SuggestedItem,
    ValidationIssue,
    ValidationResult,
    WaterCategory,
    Zone,
    ZoneMetrics,
    ZoneReport,
    ZoneType,
)
from .engine import ScopeEngine, scope_zone
from .exceptions import (
    CatalogCycleError,
    CatalogError,
    EmptyCatalogError,
    ErrorCode,
    FormulaError,
    ScopeEngineError,
    UnknownRuleError,
)
from .modules import default_catalog
from .reporting.scope_report import ScopeReportFormatter
from .utils.log import configure_logging

__version__ = "0.1.0"

__all__ = [
    # Main Engine
    "ScopeEngine",
    "scope_zone",
    # Catalog
    "LineItemRule",
    "RuleCatalog",
    "default_catalog",
    "load_catalog",
    # Models
    "DamageSeverity",
    "EstimateScopeResult",
    "IssueCategory",
    "IssueSeverity",
    "ScopeResult",
    "SuggestedItem",
    "ValidationIssue",
    "ValidationResult",
    "WaterCategory",
    "Zone",
    "ZoneMetrics",
    "ZoneReport",
    "ZoneType",
    # Errors
    "CatalogCycleError",
    "CatalogError",
    "EmptyCatalogError",
    "ErrorCode",
    "FormulaError",
    "ScopeEngineError",
    "UnknownRuleError",
    # Reporting
    "ScopeReportFormatter",
    # Utils
    "configure_logging",
]
