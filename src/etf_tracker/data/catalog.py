"""
Bundled sample fund catalog.

Used when no live data provider is configured: a fixed set of popular
dividend-paying ETFs with their last known ex-dividend dates.
"""

from datetime import date
from typing import Optional

from etf_tracker.models import DividendFrequency, Fund
from etf_tracker.data.providers.base import DataProviderError, MarketDataProvider


Q = DividendFrequency.QUARTERLY
M = DividendFrequency.MONTHLY

SAMPLE_FUNDS = [
    Fund("SPY", "SPDR S&P 500 ETF Trust", 445.67, 1.58, date(2024, 3, 15), Q, "Broad Market"),
    Fund("QQQ", "Invesco QQQ Trust", 378.92, 0.65, date(2024, 3, 20), Q, "Technology"),
    Fund("VTI", "Vanguard Total Stock Market ETF", 234.56, 0.89, date(2024, 3, 22), Q, "Total Market"),
    Fund("SCHD", "Schwab US Dividend Equity ETF", 78.43, 0.74, date(2024, 3, 25), Q, "Dividend"),
    Fund("VYM", "Vanguard High Dividend Yield ETF", 112.87, 0.89, date(2024, 3, 18), Q, "Dividend"),
    Fund("JEPI", "JPMorgan Equity Premium Income ETF", 56.78, 0.48, date(2024, 3, 28), M, "Income"),
    Fund("QYLD", "Global X NASDAQ 100 Covered Call ETF", 18.92, 0.18, date(2024, 3, 27), M, "Income"),
    Fund("XLF", "Financial Select Sector SPDR Fund", 38.45, 0.35, date(2024, 3, 19), Q, "Financial"),
    Fund("XLK", "Technology Select Sector SPDR Fund", 198.76, 0.78, date(2024, 3, 20), Q, "Technology"),
    Fund("VXUS", "Vanguard Total International Stock ETF", 58.23, 0.52, date(2024, 3, 21), Q, "International"),
]


def get_sample_fund(symbol: str) -> Optional[Fund]:
    """Look up a bundled fund by symbol (case-insensitive)."""
    symbol = symbol.upper().strip()
    for fund in SAMPLE_FUNDS:
        if fund.symbol == symbol:
            return fund
    return None


class CatalogProvider(MarketDataProvider):
    """
    Provider backed by a fixed list of funds.

    Serves the bundled sample catalog by default, or any funds loaded from a
    CSV catalog file.
    """

    def __init__(self, funds: Optional[list[Fund]] = None):
        self._funds = {f.symbol.upper(): f for f in (funds if funds is not None else SAMPLE_FUNDS)}

    @property
    def name(self) -> str:
        return "Catalog"

    @property
    def symbols(self) -> list[str]:
        return list(self._funds)

    def get_fund(self, symbol: str) -> Fund:
        fund = self._funds.get(symbol.upper().strip())
        if fund is None:
            raise DataProviderError(f"Symbol not in catalog: {symbol}")
        return fund

    def all_funds(self) -> list[Fund]:
        return list(self._funds.values())
