"""
Sliding-window rate limiting for outbound API calls.

Independent of the HTTP transport; the clock and sleep functions are
injectable so tests can drive time deterministically.
"""

import logging
import math
import time
from collections import deque
from typing import Callable

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """
    Allow at most ``max_requests`` calls in any rolling ``window_seconds``.

    When the window is full, ``acquire`` blocks until the oldest call leaves
    the window, plus a small buffer.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 60.0,
        buffer_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.buffer_seconds = buffer_seconds
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

    @property
    def recent_requests(self) -> int:
        """Calls made within the current window."""
        self._prune(self._clock())
        return len(self._timestamps)

    def can_proceed(self) -> bool:
        """Whether a call could be made right now without waiting."""
        return self.recent_requests < self.max_requests

    def acquire(self) -> float:
        """
        Record a call, waiting first if the window is full.

        Returns:
            Seconds spent waiting (0.0 when no wait was needed)
        """
        now = self._clock()
        self._prune(now)

        waited = 0.0
        if len(self._timestamps) >= self.max_requests:
            oldest = self._timestamps[0]
            wait_time = self.window_seconds - (now - oldest) + self.buffer_seconds
            if wait_time > 0:
                logger.info(
                    "Rate limit reached. Waiting %d seconds...", math.ceil(wait_time)
                )
                self._sleep(wait_time)
                waited = wait_time
            now = self._clock()
            self._prune(now)

        self._timestamps.append(now)
        return waited

    def reset(self) -> None:
        self._timestamps.clear()
