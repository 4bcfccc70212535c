"""Tests for src.routines.supplements."""

from datetime import datetime

import pytest

from src.core.errors import InvalidInput
from src.routines.supplements import DEFAULT_ROUTINE


class TestLog:
    def test_message(self, supplements):
        assert supplements.log("Vitamin D") == "Logged Vitamin D ✓"

    def test_intakes_accumulate(self, supplements):
        supplements.log("Magnesium")
        supplements.log("Magnesium")
        day = supplements.report(1).compliance["2026-03-10"]
        assert day.logged == 2
        assert day.supplements == ["Magnesium", "Magnesium"]

    def test_empty_name(self, supplements):
        with pytest.raises(InvalidInput):
            supplements.log("  ")


class TestReport:
    def test_fixed_denominator(self, supplements):
        for name in ("Vitamin D", "Magnesium", "Omega-3"):
            supplements.log(name)
        report = supplements.report(1)
        assert report.daily_target == 10
        assert report.compliance["2026-03-10"].compliance_rate == 30.0
        assert report.average_rate == 30.0

    def test_fills_gap_days(self, supplements):
        supplements.log("Zinc")
        report = supplements.report(7)
        assert len(report.compliance) == 7
        assert report.compliance["2026-03-04"].logged == 0
        assert report.compliance["2026-03-04"].compliance_rate == 0.0
        assert report.average_rate == 1.4

    def test_gap_insight(self, supplements):
        supplements.log("Zinc")
        report = supplements.report(7)
        assert len(report.insights) == 1
        assert report.insights[0].startswith("⚠️")

    def test_consistency_insight(self, supplements, clock):
        clock.now = datetime(2026, 3, 10, 20, 0)
        for i in range(8):
            supplements.log(f"S{i}")
        report = supplements.report(1)
        assert report.average_rate == 80.0
        assert report.insights[0].startswith("✅")

    def test_custom_target(self, supplements):
        supplements.set_target(4)
        for name in ("Vitamin D", "Magnesium"):
            supplements.log(name)
        assert supplements.report(1).compliance["2026-03-10"].compliance_rate == 50.0

    def test_invalid_target(self, supplements):
        with pytest.raises(InvalidInput):
            supplements.set_target(0)

    def test_bad_window(self, supplements):
        with pytest.raises(InvalidInput):
            supplements.report("many")


class TestRoutine:
    def test_default_routine(self, supplements):
        assert supplements.report(1).daily_targets == DEFAULT_ROUTINE

    def test_missing_is_case_insensitive(self, supplements):
        supplements.log("vitamin d")
        supplements.log("MAGNESIUM")
        result = supplements.missing()
        assert "Vitamin D" not in result.missing
        assert "Magnesium" not in result.missing
        assert "Omega-3" in result.missing
        assert result.pending_count == len(result.missing)

    def test_update_slot(self, supplements):
        assert supplements.update("afternoon", "Iron, Vitamin C, B12") == (
            "Updated afternoon routine: Iron, Vitamin C, B12"
        )
        assert supplements.report(1).daily_targets["afternoon"] == ["Iron", "Vitamin C", "B12"]
