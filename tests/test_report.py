"""
Tests for the scope report formatter.
"""

import json

import pytest

from scope_engine import RuleCatalog, ScopeEngine, ScopeReportFormatter, Zone, ZoneReport


@pytest.fixture
def kitchen_report(water_catalog: RuleCatalog, kitchen_zone: Zone) -> ZoneReport:
    """Scope and validation of the kitchen against the water catalog."""
    return ScopeEngine(catalog=water_catalog).run(kitchen_zone)


class TestScopeReportFormatter:
    """Tests for ScopeReportFormatter."""

    def test_text_report(self, kitchen_report: ZoneReport) -> None:
        """Test the plain text layout."""
        text = ScopeReportFormatter(kitchen_report).to_text()

        assert "ZONE SCOPE REPORT" in text
        assert "ZONE: Kitchen" in text
        assert "[✓] WTR-EXTRACT-PORT: 168 SF - Water extraction - portable extractor" in text
        assert "WTR-DRY-SETUP: 1 EA - Drying equipment setup (auto)" in text
        assert "  - WTR-EXTRACT-TRUCK: Excluded by WTR-EXTRACT-PORT" in text
        assert "Validation: VALID (0 errors, 0 warnings, 1 info)" in text
        assert "[CMP001]" in text
        assert text.splitlines()[-2] == "END OF REPORT"

    def test_text_without_explanations(self, kitchen_report: ZoneReport) -> None:
        """Test that explanations can be left out."""
        formatter = ScopeReportFormatter(kitchen_report)

        assert "Perimeter: 2 × (12ft + 14ft) = 52 LF" in formatter.to_text()
        assert "52 × 0.9 = 46.8 LF" not in formatter.to_text(include_explanations=False)

    def test_estimate_report(self, water_catalog: RuleCatalog, kitchen_zone: Zone, unmeasured_zone: Zone) -> None:
        """Test the roll-up header and one section per zone."""
        result = ScopeEngine(catalog=water_catalog).evaluate_estimate(
            [kitchen_zone, unmeasured_zone], estimate_id="EST-42"
        )

        text = ScopeReportFormatter(result).to_text()

        assert "Estimate ID: EST-42" in text
        assert "ZONE: Kitchen" in text
        assert "ZONE: Hallway" in text
        assert "Zone dimensions are missing; formula quantities evaluate to zero" in text

    def test_to_dict_uses_contract_names(self, kitchen_report: ZoneReport) -> None:
        """Test the camelCase dictionary form."""
        data = ScopeReportFormatter(kitchen_report).to_dict()

        assert data["scope"]["zoneId"] == "zone-kitchen"
        assert data["scope"]["metrics"]["floorSf"] == 168
        assert data["scope"]["suggestedItems"][0]["validationStatus"] == "valid"
        assert data["validation"]["isValid"] is True

    def test_to_dict_field_names(self, kitchen_report: ZoneReport) -> None:
        """Test the snake_case dictionary form."""
        data = ScopeReportFormatter(kitchen_report).to_dict(by_alias=False)

        assert data["scope"]["zone_id"] == "zone-kitchen"

    def test_to_json(self, kitchen_report: ZoneReport) -> None:
        """Test JSON output parses back."""
        parsed = json.loads(ScopeReportFormatter(kitchen_report).to_json())

        assert parsed["scope"]["excludedItems"][0]["code"] == "WTR-EXTRACT-TRUCK"
        assert parsed["validation"]["infoCount"] == 1
