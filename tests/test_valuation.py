"""
Tests for portfolio valuation.
"""

from datetime import date

import pytest

from etf_tracker.models import DividendFrequency, Fund, Position
from etf_tracker.portfolio.valuation import (
    calculate_allocation,
    get_gainers_and_losers,
    monthly_dividend_income,
    value_portfolio,
    value_position,
)


def make_position(symbol: str, shares: float, avg_cost: float, sector: str = "") -> Position:
    return Position(
        symbol=symbol,
        shares=shares,
        avg_cost=avg_cost,
        cost_basis=shares * avg_cost,
        purchase_date=date(2024, 1, 2),
        sector=sector,
    )


def make_fund(symbol: str, price: float, dps: float, frequency, sector: str = "") -> Fund:
    return Fund(symbol, symbol, price, dps, date(2024, 3, 15), frequency, sector)


class TestValuePosition:
    """Tests for single-position valuation."""

    def test_gain(self):
        val = value_position(
            make_position("SCHD", 150, 75.0),
            make_fund("SCHD", 78.43, 0.74, DividendFrequency.QUARTERLY),
        )

        assert val.has_quote is True
        assert val.current_price == 78.43
        assert val.current_value == pytest.approx(11764.5)
        assert val.gain_loss == pytest.approx(514.5)
        assert val.gain_loss_percent == pytest.approx(4.5733, rel=1e-4)

    def test_no_fund_falls_back_to_cost(self):
        val = value_position(make_position("ZZZZ", 10, 20.0), None)

        assert val.has_quote is False
        assert val.current_price == 20.0
        assert val.gain_loss == 0.0
        assert val.monthly_dividend == 0.0

    def test_zero_price_falls_back_to_cost(self):
        val = value_position(
            make_position("AAA", 10, 20.0),
            make_fund("AAA", 0.0, 0.5, DividendFrequency.QUARTERLY),
        )
        assert val.has_quote is False
        assert val.current_value == 200.0


class TestMonthlyDividendIncome:
    """Tests for the monthly income rule per cadence."""

    @pytest.mark.parametrize(
        "frequency,expected",
        [
            (DividendFrequency.MONTHLY, 1200.0 / 12),
            (DividendFrequency.QUARTERLY, 1200.0 / 4 / 3),
            (DividendFrequency.SEMI_ANNUAL, 1200.0 / 2 / 6),
            (DividendFrequency.ANNUAL, 1200.0 / 12),
            (DividendFrequency.UNKNOWN, 1200.0 / 4 / 3),
        ],
    )
    def test_rule(self, frequency, expected):
        fund = make_fund("AAA", 50.0, 1.2, frequency)
        assert monthly_dividend_income(fund, 1000) == pytest.approx(expected)

    def test_no_dividend(self):
        assert monthly_dividend_income(make_fund("AAA", 50.0, 0.0, DividendFrequency.MONTHLY), 100) == 0.0
        assert monthly_dividend_income(None, 100) == 0.0


class TestValuePortfolio:
    """Tests for value_portfolio."""

    def test_totals(self, sample_funds, schd_position, jepi_position):
        valuation = value_portfolio([schd_position, jepi_position], sample_funds)

        assert len(valuation.positions) == 2
        assert valuation.total_value == pytest.approx(150 * 78.43 + 100 * 56.78)
        assert valuation.total_cost == pytest.approx(11250.0 + 5500.0)
        assert valuation.total_gain_loss == pytest.approx(valuation.total_value - valuation.total_cost)
        assert valuation.total_gain_loss_percent == pytest.approx(
            valuation.total_gain_loss / valuation.total_cost * 100
        )

        # SCHD quarterly: 0.74 * 150 / 4 / 3; JEPI monthly: 0.48 * 100 / 12
        assert valuation.total_monthly_dividend == pytest.approx(111.0 / 12 + 48.0 / 12)
        assert valuation.total_annual_dividend == pytest.approx(valuation.total_monthly_dividend * 12)

    def test_totals_equal_sums_of_parts(self, sample_funds, schd_position, jepi_position):
        valuation = value_portfolio([schd_position, jepi_position], sample_funds)

        assert valuation.total_value == pytest.approx(sum(v.current_value for v in valuation.positions))
        assert valuation.total_monthly_dividend == pytest.approx(
            sum(v.monthly_dividend for v in valuation.positions)
        )

    def test_case_insensitive_match(self, sample_funds):
        valuation = value_portfolio([make_position("schd", 1, 70.0)], sample_funds)
        assert valuation.positions[0].has_quote is True

    def test_empty_portfolio(self, sample_funds):
        valuation = value_portfolio([], sample_funds)

        assert valuation.total_value == 0
        assert valuation.total_cost == 0
        assert valuation.total_gain_loss_percent == 0.0


class TestAllocation:
    """Tests for calculate_allocation."""

    def test_by_symbol(self):
        funds = [
            make_fund("AAA", 30.0, 0.0, DividendFrequency.QUARTERLY),
            make_fund("BBB", 10.0, 0.0, DividendFrequency.QUARTERLY),
        ]
        valuation = value_portfolio([make_position("AAA", 10, 30.0), make_position("BBB", 10, 10.0)], funds)

        weights = calculate_allocation(valuation)
        assert weights == pytest.approx({"AAA": 0.75, "BBB": 0.25})

    def test_by_sector_falls_back_to_fund_and_other(self):
        funds = [
            make_fund("AAA", 10.0, 0.0, DividendFrequency.QUARTERLY, sector="Income"),
            make_fund("BBB", 10.0, 0.0, DividendFrequency.QUARTERLY),
        ]
        positions = [
            make_position("AAA", 10, 10.0),
            make_position("BBB", 10, 10.0),
            make_position("CCC", 20, 10.0, sector="Dividend"),
        ]
        valuation = value_portfolio(positions, funds)

        weights = calculate_allocation(valuation, by="sector", funds=funds)
        assert weights == pytest.approx({"Income": 0.25, "Other": 0.25, "Dividend": 0.5})
        assert sum(weights.values()) == pytest.approx(1.0)

    def test_empty(self):
        assert calculate_allocation(value_portfolio([], [])) == {}

    def test_invalid_grouping(self):
        with pytest.raises(ValueError):
            calculate_allocation(value_portfolio([], []), by="country")


class TestGainersAndLosers:
    """Tests for get_gainers_and_losers."""

    def test_split(self):
        funds = [
            make_fund("UP", 12.0, 0.0, DividendFrequency.QUARTERLY),
            make_fund("BIGUP", 15.0, 0.0, DividendFrequency.QUARTERLY),
            make_fund("DOWN", 9.0, 0.0, DividendFrequency.QUARTERLY),
            make_fund("FLAT", 10.0, 0.0, DividendFrequency.QUARTERLY),
        ]
        positions = [make_position(f.symbol, 1, 10.0) for f in funds]
        valuation = value_portfolio(positions, funds)

        gainers, losers = get_gainers_and_losers(valuation, top_n=5)
        assert [v.position.symbol for v in gainers] == ["BIGUP", "UP"]
        assert [v.position.symbol for v in losers] == ["DOWN"]

    def test_top_n(self):
        funds = [make_fund(f"S{i}", 10.0 + i, 0.0, DividendFrequency.QUARTERLY) for i in range(1, 6)]
        positions = [make_position(f.symbol, 1, 10.0) for f in funds]

        gainers, _ = get_gainers_and_losers(value_portfolio(positions, funds), top_n=2)
        assert [v.position.symbol for v in gainers] == ["S5", "S4"]
