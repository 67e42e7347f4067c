"""
Abstract base class for market data providers.

Defines the interface that all fund data providers must implement,
enabling pluggable data sources (live API, bundled catalog, test fakes).
"""

import logging
from abc import ABC, abstractmethod

from etf_tracker.models import Fund, FundRefreshResult, SymbolError

logger = logging.getLogger(__name__)


class DataProviderError(Exception):
    """Raised when a data provider encounters an error."""
    pass


class RateLimitError(DataProviderError):
    """Raised when the upstream API rejects a request for exceeding its rate limit."""
    pass


class PlanAccessError(DataProviderError):
    """Raised when an endpoint is not available on the configured API plan."""
    pass


class MarketDataProvider(ABC):
    """
    Abstract base class for fund data providers.

    Implementations must provide a single-symbol fetch; batch fetching is
    built on top of it and keeps going past per-symbol failures.
    """

    @abstractmethod
    def get_fund(self, symbol: str) -> Fund:
        """
        Fetch a fresh snapshot for one fund.

        Args:
            symbol: Ticker symbol

        Returns:
            Fund snapshot

        Raises:
            DataProviderError: If data cannot be fetched
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this data provider."""
        pass

    def fetch_funds(self, symbols: list[str]) -> FundRefreshResult:
        """
        Fetch snapshots for several funds, sequentially.

        A failure for one symbol is recorded as a SymbolError and the batch
        continues with the next symbol.

        Args:
            symbols: Ticker symbols (normalized to upper case, duplicates dropped)

        Returns:
            FundRefreshResult with the funds fetched and the errors collected
        """
        result = FundRefreshResult(source=self.name)

        for symbol in dict.fromkeys(s.upper().strip() for s in symbols):
            try:
                result.funds.append(self.get_fund(symbol))
            except DataProviderError as e:
                logger.warning("Failed to refresh %s: %s", symbol, e)
                result.errors.append(SymbolError(symbol=symbol, error=str(e)))

        return result
