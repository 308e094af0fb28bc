"""
Dictionary-based Check Engine for the Zone Scope Engine.
Allows easy addition and management of validation checks.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from .catalog import LineItemRule, RuleCatalog
from .models import (
    CheckSummary,
    IssueCategory,
    IssueSeverity,
    SuggestedItem,
    ValidationIssue,
    ValidationResult,
    Zone,
    ZoneMetrics,
)

logger = structlog.get_logger()


@dataclass
class ValidationContext:
    """Everything a check may inspect for one zone."""

    zone: Zone
    items: list[SuggestedItem]
    catalog: RuleCatalog
    metrics: ZoneMetrics
    tolerance: float = 1.2

    def __post_init__(self) -> None:
        self._by_code: dict[str, SuggestedItem] = {item.code: item for item in self.items}

    @property
    def codes(self) -> set[str]:
        return set(self._by_code)

    def has(self, code: str) -> bool:
        return code in self._by_code

    def item(self, code: str) -> SuggestedItem | None:
        return self._by_code.get(code)

    def rule(self, code: str) -> LineItemRule | None:
        return self.catalog.find(code)

    def items_in_category(self, *categories: str) -> list[SuggestedItem]:
        """Selected items whose category is one of the given categories."""
        wanted = {category.lower() for category in categories}
        return [item for item in self.items if item.category.lower() in wanted]

    def has_category(self, *categories: str) -> bool:
        return bool(self.items_in_category(*categories))


CheckFunction = Callable[[ValidationContext], list[ValidationIssue]]


@dataclass
class ValidationCheck:
    """Definition of a validation check."""

    check_id: str
    name: str
    description: str
    category: IssueCategory
    severity: IssueSeverity
    validator: CheckFunction | None = None
    enabled: bool = True


class CheckEngine:
    """
    Dictionary-based engine for managing and executing validation checks.

    Checks are organized by category and can be added, removed,
    enabled or disabled at runtime.
    """

    def __init__(self) -> None:
        self._checks: dict[str, ValidationCheck] = {}
        self._category_index: dict[IssueCategory, list[str]] = {
            cat: [] for cat in IssueCategory
        }

    def add_check(self, check: ValidationCheck) -> None:
        """Add a check to the engine, replacing one with the same ID."""
        if check.check_id in self._checks:
            self.remove_check(check.check_id)
        self._checks[check.check_id] = check
        self._category_index[check.category].append(check.check_id)

    def remove_check(self, check_id: str) -> bool:
        """Remove a check from the engine."""
        if check_id not in self._checks:
            return False

        check = self._checks[check_id]
        self._category_index[check.category].remove(check_id)
        del self._checks[check_id]
        return True

    def get_check(self, check_id: str) -> ValidationCheck | None:
        """Get a specific check by ID."""
        return self._checks.get(check_id)

    def get_checks_by_category(self, category: IssueCategory) -> list[ValidationCheck]:
        """Get all enabled checks in a specific category."""
        return [
            self._checks[check_id]
            for check_id in self._category_index[category]
            if self._checks[check_id].enabled
        ]

    def enable_check(self, check_id: str) -> bool:
        """Enable a specific check."""
        if check_id in self._checks:
            self._checks[check_id].enabled = True
            return True
        return False

    def disable_check(self, check_id: str) -> bool:
        """Disable a specific check."""
        if check_id in self._checks:
            self._checks[check_id].enabled = False
            return True
        return False

    def set_category_enabled(self, category: IssueCategory, enabled: bool) -> None:
        """Enable or disable every check in a category."""
        for check_id in self._category_index[category]:
            self._checks[check_id].enabled = enabled

    @staticmethod
    def create_issue(
        check: ValidationCheck,
        context: ValidationContext,
        code: str,
        message: str,
        severity: IssueSeverity | None = None,
        line_item_code: str | None = None,
        related_items: list[str] | None = None,
        suggestion: str | None = None,
    ) -> ValidationIssue:
        """Create a standardized validation issue from a check."""
        return ValidationIssue(
            code=code,
            category=check.category,
            severity=severity or check.severity,
            message=message,
            suggestion=suggestion,
            zone_id=context.zone.id,
            line_item_code=line_item_code,
            related_items=related_items or [],
            check_id=check.check_id,
        )

    def execute_check(self, check: ValidationCheck, context: ValidationContext) -> list[ValidationIssue]:
        """Execute a single check against a zone's items."""
        if not check.enabled or check.validator is None:
            return []

        try:
            return check.validator(context)
        except Exception as e:
            # Report the failure without aborting the remaining checks
            logger.exception("check_failed", check_id=check.check_id, zone_id=context.zone.id)
            return [
                self.create_issue(
                    check,
                    context,
                    code="CHK001",
                    message=f"Check {check.name} failed: {e}",
                    severity=IssueSeverity.ERROR,
                )
            ]

    def run(self, context: ValidationContext) -> ValidationResult:
        """Execute all enabled checks and collect them into a ValidationResult."""
        result = ValidationResult(zone_id=context.zone.id)

        for check in self._checks.values():
            if not check.enabled:
                continue
            issues = self.execute_check(check, context)
            for issue in issues:
                result.add_issue(issue)
            result.checks.append(
                CheckSummary(
                    check_id=check.check_id,
                    name=check.name,
                    category=check.category,
                    passed=not issues,
                    issue_count=len(issues),
                )
            )

        return result

    def list_checks(self) -> list[dict[str, Any]]:
        """List all checks with their status."""
        return [
            {
                "check_id": check.check_id,
                "name": check.name,
                "category": check.category.value,
                "severity": check.severity.value,
                "enabled": check.enabled,
                "description": check.description,
            }
            for check in self._checks.values()
        ]
