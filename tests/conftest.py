"""
Pytest fixtures for the ETF Dividend Tracker tests.

Provides common test data and utilities used across test modules.
"""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from etf_tracker.data.store import InMemoryStore
from etf_tracker.models import DividendFrequency, Fund, Position


@pytest.fixture
def sample_funds() -> list[Fund]:
    """A small catalog with one fund per cadence plus edge cases."""
    return [
        Fund(
            symbol="SCHD",
            name="Schwab US Dividend Equity ETF",
            price=78.43,
            dividend_per_share=0.74,
            last_ex_dividend_date=date(2024, 3, 25),
            frequency=DividendFrequency.QUARTERLY,
            sector="Dividend",
        ),
        Fund(
            symbol="JEPI",
            name="JPMorgan Equity Premium Income ETF",
            price=56.78,
            dividend_per_share=0.48,
            last_ex_dividend_date=date(2024, 3, 28),
            frequency=DividendFrequency.MONTHLY,
            sector="Income",
        ),
        Fund(
            symbol="VXUS",
            name="Vanguard Total International Stock ETF",
            price=58.23,
            dividend_per_share=0.52,
            last_ex_dividend_date=date(2023, 12, 20),
            frequency=DividendFrequency.SEMI_ANNUAL,
            sector="International",
        ),
        Fund(
            symbol="NODIV",
            name="No Dividend Growth ETF",
            price=100.0,
            dividend_per_share=0.0,
            last_ex_dividend_date=None,
            frequency=DividendFrequency.UNKNOWN,
            sector="Growth",
        ),
    ]


@pytest.fixture
def schd_position() -> Position:
    """150 shares of SCHD bought at $75."""
    return Position(
        symbol="SCHD",
        name="Schwab US Dividend Equity ETF",
        shares=150.0,
        avg_cost=75.0,
        cost_basis=11250.0,
        purchase_date=date(2024, 1, 15),
        sector="Dividend",
    )


@pytest.fixture
def jepi_position() -> Position:
    """100 shares of JEPI bought at $55."""
    return Position(
        symbol="JEPI",
        name="JPMorgan Equity Premium Income ETF",
        shares=100.0,
        avg_cost=55.0,
        cost_basis=5500.0,
        purchase_date=date(2024, 2, 1),
        sector="Income",
    )


@pytest.fixture
def memory_store() -> InMemoryStore:
    """An empty in-memory state store."""
    return InMemoryStore()


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock starting at 2024-04-01 12:00 UTC."""
    return FakeClock(datetime(2024, 4, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def mock_polygon_response():
    """
    Factory fixture for creating mock Polygon API responses.

    Usage:
        def test_something(mock_polygon_response):
            response = mock_polygon_response(status_code=200, json_data={...})
    """

    def _create_response(status_code: int = 200, json_data=None, reason: str = "OK"):
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.reason = reason
        mock_response.json.return_value = json_data if json_data is not None else {}
        return mock_response

    return _create_response


@pytest.fixture
def sample_polygon_payloads() -> dict:
    """
    Sample Polygon API payloads for SCHD.

    Formats match /v3/reference/tickers/{symbol}, /v3/reference/dividends
    and /v2/aggs/ticker/{symbol}/prev.
    """
    return {
        "ticker": {
            "status": "OK",
            "results": {
                "ticker": "SCHD",
                "name": "Schwab US Dividend Equity ETF",
                "market": "stocks",
                "type": "ETF",
                "currency_name": "usd",
            },
        },
        "dividends": {
            "status": "OK",
            "results": [
                {"ex_dividend_date": "2024-03-20", "pay_date": "2024-03-25", "cash_amount": 0.6099},
                {"ex_dividend_date": "2023-12-06", "pay_date": "2023-12-11", "cash_amount": 0.7423},
                {"ex_dividend_date": "2023-09-20", "pay_date": "2023-09-25", "cash_amount": 0.6541},
                {"ex_dividend_date": "2023-06-21", "pay_date": "2023-06-26", "cash_amount": 0.6647},
                {"ex_dividend_date": "2023-03-22", "pay_date": "2023-03-27", "cash_amount": 0.5965},
            ],
        },
        "prev": {
            "status": "OK",
            "results": [
                {"o": 77.9, "h": 78.6, "l": 77.5, "c": 78.43, "v": 3500000, "t": 1711670400000},
            ],
        },
    }
