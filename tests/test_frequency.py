"""
Tests for frequency inference and annual dividend estimation.
"""

from datetime import date

import pytest

from etf_tracker.models import DividendFrequency
from etf_tracker.schedule.frequency import estimate_annual_dividend, infer_frequency


class TestInferFrequency:
    """Tests for infer_frequency."""

    def test_monthly(self):
        dates = ["2024-03-28", "2024-02-28", "2024-01-29", "2023-12-28"]
        assert infer_frequency(dates) == DividendFrequency.MONTHLY

    def test_quarterly(self):
        dates = [date(2024, 3, 20), date(2023, 12, 6), date(2023, 9, 20), date(2023, 6, 21)]
        assert infer_frequency(dates) == DividendFrequency.QUARTERLY

    def test_semi_annual(self):
        assert infer_frequency(["2024-06-20", "2023-12-20", "2023-06-20"]) == DividendFrequency.SEMI_ANNUAL

    def test_annual(self):
        assert infer_frequency(["2024-12-15", "2023-12-15"]) == DividendFrequency.ANNUAL

    def test_order_does_not_matter(self):
        dates = ["2023-06-21", "2024-03-20", "2023-09-20", "2023-12-06"]
        assert infer_frequency(dates) == DividendFrequency.QUARTERLY

    def test_only_four_most_recent_gaps_are_used(self):
        """Older annual gaps are ignored once four monthly gaps exist."""
        dates = [
            "2024-05-01", "2024-04-01", "2024-03-01", "2024-02-01", "2024-01-01",
            "2023-01-01", "2022-01-01",
        ]
        assert infer_frequency(dates) == DividendFrequency.MONTHLY

    def test_bucket_boundaries(self):
        # Average gap of exactly 35 days is monthly, 36 is quarterly
        assert infer_frequency([date(2024, 2, 5), date(2024, 1, 1)]) == DividendFrequency.MONTHLY
        assert infer_frequency([date(2024, 2, 6), date(2024, 1, 1)]) == DividendFrequency.QUARTERLY
        # 100 days quarterly, 101 semi-annual
        assert infer_frequency([date(2024, 4, 10), date(2024, 1, 1)]) == DividendFrequency.QUARTERLY
        assert infer_frequency([date(2024, 4, 11), date(2024, 1, 1)]) == DividendFrequency.SEMI_ANNUAL
        # 200 days semi-annual, 201 annual
        assert infer_frequency([date(2024, 7, 19), date(2024, 1, 1)]) == DividendFrequency.SEMI_ANNUAL
        assert infer_frequency([date(2024, 7, 20), date(2024, 1, 1)]) == DividendFrequency.ANNUAL

    def test_fewer_than_two_dates_is_unknown(self):
        assert infer_frequency([]) == DividendFrequency.UNKNOWN
        assert infer_frequency(["2024-03-20"]) == DividendFrequency.UNKNOWN


class TestEstimateAnnualDividend:
    """Tests for estimate_annual_dividend."""

    def test_quarterly_average_of_recent_four(self):
        amounts = [0.60, 0.70, 0.65, 0.65, 5.00]  # oldest payment ignored
        assert estimate_annual_dividend(amounts, DividendFrequency.QUARTERLY) == pytest.approx(2.60)

    def test_monthly(self):
        assert estimate_annual_dividend([0.40, 0.50], "Monthly") == pytest.approx(5.40)

    def test_annual(self):
        assert estimate_annual_dividend([1.25], DividendFrequency.ANNUAL) == pytest.approx(1.25)

    def test_unknown_scales_as_quarterly(self):
        assert estimate_annual_dividend([0.5], "Unknown") == pytest.approx(2.0)

    def test_empty_is_zero(self):
        assert estimate_annual_dividend([], DividendFrequency.QUARTERLY) == 0.0
