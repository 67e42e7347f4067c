"""
Data providers for fund quotes and dividend history.

Provides a pluggable interface for fetching fund snapshots, with
rate limiting and response caching for the Polygon.io API.
"""

from etf_tracker.data.providers.base import (
    DataProviderError,
    MarketDataProvider,
    PlanAccessError,
    RateLimitError,
)
from etf_tracker.data.providers.cache import ResponseCache
from etf_tracker.data.providers.rate_limit import SlidingWindowRateLimiter
from etf_tracker.data.providers.polygon_provider import PolygonProvider, get_polygon_provider

__all__ = [
    "DataProviderError",
    "MarketDataProvider",
    "PlanAccessError",
    "RateLimitError",
    "ResponseCache",
    "SlidingWindowRateLimiter",
    "PolygonProvider",
    "get_polygon_provider",
]
