"""
Scope Report Formatter.
Renders zone reports and estimate roll-ups as text, dict or JSON.
"""

import json
from typing import Any

from ..core.metrics import format_metrics_explanation, format_number
from ..core.models import (
    EstimateScopeResult,
    IssueCategory,
    IssueSeverity,
    ValidationStatus,
    ZoneReport,
)


class ScopeReportFormatter:
    """
    Formats zone reports for various output formats.
    """

    SEVERITY_ICONS = {
        IssueSeverity.INFO: "ℹ️",
        IssueSeverity.WARNING: "⚠️",
        IssueSeverity.ERROR: "❌",
    }

    STATUS_MARKS = {
        ValidationStatus.PENDING: " ",
        ValidationStatus.VALID: "✓",
        ValidationStatus.WARNING: "!",
        ValidationStatus.ERROR: "✗",
    }

    CATEGORY_LABELS = {
        IssueCategory.DEPENDENCY: "Dependencies",
        IssueCategory.QUANTITY: "Quantities",
        IssueCategory.EXCLUSION: "Exclusions",
        IssueCategory.COMPLETENESS: "Completeness",
    }

    def __init__(self, report: ZoneReport | EstimateScopeResult) -> None:
        self.report = report

    @property
    def zone_reports(self) -> list[ZoneReport]:
        if isinstance(self.report, EstimateScopeResult):
            return list(self.report.zones)
        return [self.report]

    def to_text(self, include_explanations: bool = True) -> str:
        """
        Format the report as plain text.

        Args:
            include_explanations: Whether to include quantity explanations

        Returns:
            Formatted text report
        """
        lines: list[str] = []

        # Header
        lines.append("=" * 70)
        lines.append("ZONE SCOPE REPORT")
        lines.append("=" * 70)

        if isinstance(self.report, EstimateScopeResult):
            lines.append(f"Estimate ID: {self.report.estimate_id}")
            lines.append(
                f"Zones: {len(self.report.zones)} | Suggested: {self.report.total_suggested} | "
                f"Excluded: {self.report.total_excluded}"
            )
            lines.append(
                f"Errors: {self.report.total_errors} | Warnings: {self.report.total_warnings} | "
                f"Info: {self.report.total_info}"
            )
            lines.append(f"Valid: {'yes' if self.report.is_valid else 'no'}")
        lines.append("")

        for zone_report in self.zone_reports:
            lines.extend(self._zone_lines(zone_report, include_explanations))

        # Footer
        lines.append("=" * 70)
        lines.append("END OF REPORT")
        lines.append("=" * 70)

        return "\n".join(lines)

    def _zone_lines(self, zone_report: ZoneReport, include_explanations: bool) -> list[str]:
        scope = zone_report.scope
        validation = zone_report.validation
        lines: list[str] = []

        lines.append("-" * 70)
        lines.append(f"ZONE: {scope.zone_name or scope.zone_id}")
        lines.append("-" * 70)
        lines.append(format_metrics_explanation(scope.metrics))
        lines.append(
            f"Rules evaluated: {scope.items_evaluated} | Matched: {scope.items_matched} | "
            f"Suggested: {len(scope.suggested_items)}"
        )
        lines.append("")

        if scope.suggested_items:
            lines.append("Suggested Items:")
            for item in scope.suggested_items:
                marker = " (auto)" if item.is_auto_added else ""
                lines.append(
                    f"  [{self.STATUS_MARKS[item.validation_status]}] {item.code}: "
                    f"{format_number(item.quantity)} {item.unit} - {item.description}{marker}"
                )
                if include_explanations:
                    lines.append(f"      {item.explanation}")
            lines.append("")

        if scope.excluded_items:
            lines.append("Excluded Items:")
            for excluded in scope.excluded_items:
                lines.append(f"  - {excluded.code}: {excluded.reason}")
            lines.append("")

        if scope.warnings:
            lines.append("Warnings:")
            for warning in scope.warnings:
                lines.append(f"  - {warning}")
            lines.append("")

        lines.append(
            f"Validation: {'VALID' if validation.is_valid else 'INVALID'} "
            f"({validation.error_count} errors, {validation.warning_count} warnings, "
            f"{validation.info_count} info)"
        )
        for category in IssueCategory:
            issues = [issue for issue in validation.issues if issue.category == category]
            if not issues:
                continue
            lines.append(f"  {self.CATEGORY_LABELS[category]}:")
            for issue in issues:
                lines.append(
                    f"    {self.SEVERITY_ICONS.get(issue.severity, '•')} "
                    f"[{issue.code}] {issue.message}"
                )
                if issue.suggestion:
                    lines.append(f"       Suggestion: {issue.suggestion}")
        lines.append("")

        return lines

    def to_dict(self, by_alias: bool = True) -> dict[str, Any]:
        """
        Convert the report to a dictionary.

        Args:
            by_alias: Use the camelCase contract names

        Returns:
            JSON-compatible dictionary
        """
        return self.report.model_dump(mode="json", by_alias=by_alias)

    def to_json(self, indent: int = 2, by_alias: bool = True) -> str:
        """
        Convert the report to JSON format.

        Args:
            indent: JSON indentation level
            by_alias: Use the camelCase contract names

        Returns:
            JSON string representation
        """
        return json.dumps(self.to_dict(by_alias=by_alias), indent=indent, ensure_ascii=False)
