"""
Polygon.io data provider implementation.

Uses the Polygon.io REST API (https://polygon.io/docs) to fetch previous-day
closing prices, ticker details and dividend history. Written against the
Stocks Starter plan: end-of-day data only, 5 requests per minute.
"""

import logging
import time
from typing import Any, Optional

import requests

from etf_tracker.config import ConfigurationError, get_polygon_api_key
from etf_tracker.models import DividendFrequency, Fund, TrackerConfig, parse_date
from etf_tracker.schedule.frequency import estimate_annual_dividend, infer_frequency
from etf_tracker.data.providers.base import (
    DataProviderError,
    MarketDataProvider,
    PlanAccessError,
    RateLimitError,
)
from etf_tracker.data.providers.cache import ResponseCache
from etf_tracker.data.providers.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


class PolygonProvider(MarketDataProvider):
    """
    Data provider using the Polygon.io API for fund snapshots.

    Features:
    - Previous-day close as the current price
    - Dividend cadence inferred from the last 12 dividends
    - Sliding-window rate limiting shared by every request
    - Optional in-memory response cache
    - Requires POLYGON_API_KEY
    """

    BASE_URL = "https://api.polygon.io"
    PREV_CLOSE_ENDPOINT = "/v2/aggs/ticker/{symbol}/prev"
    TICKER_ENDPOINT = "/v3/reference/tickers/{symbol}"
    DIVIDENDS_ENDPOINT = "/v3/reference/dividends"

    # Dividends fetched to determine frequency
    DIVIDEND_HISTORY_LIMIT = 12

    REQUEST_TIMEOUT = 30

    def __init__(
        self,
        api_key: Optional[str] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        cache: Optional[ResponseCache] = None,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ):
        """
        Initialize Polygon provider.

        Args:
            api_key: Polygon API key (defaults to loading from config sources)
            rate_limiter: Limiter applied to every outbound request
            cache: Response cache (None disables caching)
            max_retries: Maximum attempts for requests that time out or fail
                to connect
            retry_delay: Delay between retries (seconds)

        Raises:
            DataProviderError: If API key is not provided or found in config
        """
        if api_key:
            self._api_key = api_key
        else:
            try:
                self._api_key = get_polygon_api_key()
            except ConfigurationError as e:
                raise DataProviderError(str(e)) from e

        self._rate_limiter = rate_limiter or SlidingWindowRateLimiter()
        self._cache = cache
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    @property
    def name(self) -> str:
        return "Polygon"

    def get_fund(self, symbol: str) -> Fund:
        """
        Build a fund snapshot from ticker details, dividends and the last close.

        Args:
            symbol: Ticker symbol

        Returns:
            Fund with the latest dividend amount and ex-date and the inferred
            frequency (Unknown when fewer than two dividends are on record)
        """
        symbol = symbol.upper().strip()

        details = self.get_ticker_details(symbol)
        dividends = self.get_dividend_history(symbol)
        price = self.get_previous_close(symbol)

        latest = dividends[0] if dividends else {}
        last_ex = latest.get("ex_dividend_date")
        frequency = infer_frequency(
            d["ex_dividend_date"] for d in dividends if d.get("ex_dividend_date")
        )

        return Fund(
            symbol=str(details.get("ticker") or symbol),
            name=str(details.get("name") or ""),
            price=price,
            dividend_per_share=float(latest.get("cash_amount") or 0.0),
            last_ex_dividend_date=parse_date(last_ex, "ex_dividend_date") if last_ex else None,
            frequency=frequency,
            sector=str(details.get("sic_description") or "ETF"),
        )

    def get_previous_close(self, symbol: str) -> float:
        """
        Get the previous trading day's closing price.

        Raises:
            DataProviderError: If no price data is returned
        """
        endpoint = self.PREV_CLOSE_ENDPOINT.format(symbol=symbol)
        data = self._make_request(endpoint)

        results = data.get("results") or []
        if not results or results[0].get("c") is None:
            raise DataProviderError(f"No price data found for {symbol}")

        return float(results[0]["c"])

    def get_ticker_details(self, symbol: str) -> dict:
        """
        Get reference details (name, SIC description) for a ticker.

        Raises:
            DataProviderError: If the ticker is unknown
        """
        endpoint = self.TICKER_ENDPOINT.format(symbol=symbol)
        data = self._make_request(endpoint)

        details = data.get("results")
        if not details:
            raise DataProviderError(f"No ticker data found for {symbol}")

        return details

    def get_dividend_history(self, symbol: str) -> list[dict]:
        """
        Get the most recent dividends for a ticker, newest first.

        Returns:
            Raw dividend records with ex_dividend_date, pay_date, cash_amount
        """
        data = self._make_request(
            self.DIVIDENDS_ENDPOINT,
            {
                "ticker": symbol,
                "limit": self.DIVIDEND_HISTORY_LIMIT,
                "sort": "ex_dividend_date",
                "order": "desc",
            },
        )
        return list(data.get("results") or [])

    def get_annual_dividend(self, symbol: str) -> float:
        """Estimate the annual dividend per share from recent payments."""
        dividends = self.get_dividend_history(symbol.upper().strip())
        frequency = infer_frequency(
            d["ex_dividend_date"] for d in dividends if d.get("ex_dividend_date")
        )
        if frequency == DividendFrequency.UNKNOWN:
            frequency = DividendFrequency.QUARTERLY

        return estimate_annual_dividend(
            [d.get("cash_amount") or 0.0 for d in dividends], frequency
        )

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    def _make_request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """
        Make an HTTP request to the Polygon API with caching and retry logic.

        Args:
            endpoint: API path (e.g. /v3/reference/dividends)
            params: Query parameters (the API key is added here)

        Returns:
            Parsed JSON response

        Raises:
            RateLimitError: On HTTP 429
            PlanAccessError: On HTTP 403
            DataProviderError: On any other failure
        """
        params = dict(params or {})

        if self._cache is not None:
            cached = self._cache.get(endpoint, params)
            if cached is not None:
                return cached

        url = f"{self.BASE_URL}{endpoint}"
        query = {**params, "apiKey": self._api_key}
        last_error = None

        for attempt in range(self._max_retries):
            self._rate_limiter.acquire()
            logger.debug("Making API request to: %s", endpoint)

            try:
                response = requests.get(url, params=query, timeout=self.REQUEST_TIMEOUT)
            except requests.exceptions.Timeout:
                last_error = "Request timeout"
            except requests.exceptions.RequestException as e:
                last_error = str(e)
            else:
                data = self._parse_response(response)
                if self._cache is not None:
                    self._cache.set(endpoint, params, data)
                return data

            if attempt < self._max_retries - 1:
                time.sleep(self._retry_delay * (attempt + 1))

        raise DataProviderError(
            f"Failed to fetch data from Polygon after {self._max_retries} attempts: {last_error}"
        )

    def _parse_response(self, response: requests.Response) -> dict:
        """Map HTTP status codes to provider errors and decode the body."""
        if response.status_code == 429:
            raise RateLimitError(
                "Rate limit exceeded. Please wait before making more requests."
            )
        if response.status_code == 403:
            raise PlanAccessError(
                "Access denied. This endpoint may not be available on your plan."
            )
        if response.status_code >= 400:
            raise DataProviderError(
                f"API request failed: {response.status_code} {response.reason}"
            )

        try:
            data: Any = response.json()
        except ValueError as e:
            raise DataProviderError(f"Invalid JSON response from Polygon API: {e}")

        if not isinstance(data, dict):
            raise DataProviderError("Unexpected response format from Polygon API")
        if data.get("status") == "ERROR":
            raise DataProviderError(f"Polygon API error: {data.get('error', 'unknown')}")

        return data


def get_polygon_provider(
    use_cache: bool = True,
    api_key: Optional[str] = None,
    config: Optional[TrackerConfig] = None,
) -> PolygonProvider:
    """
    Get a Polygon data provider instance.

    Args:
        use_cache: Whether to cache responses in memory
        api_key: Polygon API key (defaults to POLYGON_API_KEY sources)
        config: Tracker configuration for rate-limit and cache settings

    Returns:
        Configured PolygonProvider

    Raises:
        DataProviderError: If API key is not available
    """
    config = config or TrackerConfig()

    rate_limiter = SlidingWindowRateLimiter(
        max_requests=config.requests_per_window,
        window_seconds=config.rate_window_seconds,
    )
    cache = ResponseCache(ttl_seconds=config.cache_ttl_seconds) if use_cache else None

    return PolygonProvider(api_key=api_key, rate_limiter=rate_limiter, cache=cache)
