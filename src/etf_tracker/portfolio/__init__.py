"""
Portfolio management module for the ETF Dividend Tracker.

Provides the holdings ledger that merges purchases into positions,
and valuation of those positions with projected dividend income.
"""

from etf_tracker.portfolio.ledger import HoldingsLedger
from etf_tracker.portfolio.valuation import (
    calculate_allocation,
    get_gainers_and_losers,
    value_portfolio,
)

__all__ = [
    "HoldingsLedger",
    "calculate_allocation",
    "get_gainers_and_losers",
    "value_portfolio",
]
