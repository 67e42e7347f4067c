"""
Caching layer for data providers.

Keeps recent API responses in memory for a fixed time-to-live so repeated
lookups within a session do not spend rate-limited requests.
"""

import hashlib
import json
import logging
import time
from typing import Any, Callable, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)


# Provider data is end-of-day / delayed, so 15 minutes is fresh enough
DEFAULT_TTL_SECONDS = 15 * 60
DEFAULT_MAX_ENTRIES = 512


class ResponseCache:
    """
    In-memory TTL cache for API responses.

    Entries are keyed by endpoint and query parameters; credential parameters
    are excluded from the key.
    """

    EXCLUDED_PARAMS = ("apiKey", "apikey")

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the response cache.

        Args:
            ttl_seconds: Seconds an entry stays valid
            max_entries: Maximum number of cached responses
            timer: Clock used for expiry (injectable for tests)
        """
        self.ttl_seconds = ttl_seconds
        self._cache: TTLCache[str, Any] = TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=timer
        )

    def _get_cache_key(self, endpoint: str, params: Optional[dict] = None) -> str:
        """Generate a cache key for a request."""
        filtered = {
            k: v for k, v in (params or {}).items()
            if k not in self.EXCLUDED_PARAMS and v is not None
        }
        key_str = f"{endpoint}?{json.dumps(filtered, sort_keys=True, default=str)}"
        return hashlib.md5(key_str.encode()).hexdigest()[:16]

    def get(self, endpoint: str, params: Optional[dict] = None) -> Optional[Any]:
        """
        Get a cached response if still valid.

        Returns:
            Cached response or None if absent or expired
        """
        data = self._cache.get(self._get_cache_key(endpoint, params))
        if data is not None:
            logger.debug("Using cached data for %s", endpoint)
        return data

    def set(self, endpoint: str, params: Optional[dict], data: Any) -> None:
        self._cache[self._get_cache_key(endpoint, params)] = data

    def clear(self) -> None:
        """Clear all cached responses."""
        self._cache.clear()
        logger.info("Response cache cleared")

    def __len__(self) -> int:
        return len(self._cache)
