"""
Time-gated refresh policy for external market data.

A refresh is allowed at most once per cooldown period (24 hours by default).
The last successful refresh is persisted through a StateStore, so the gate
survives restarts. Readiness is evaluated lazily against the clock; there are
no timers.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, TypeVar

from etf_tracker.models import FundRefreshResult
from etf_tracker.data.loaders import DataLoadError
from etf_tracker.data.providers.base import DataProviderError, MarketDataProvider
from etf_tracker.data.store import LAST_REFRESH_KEY, StateStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_COOLDOWN = timedelta(hours=24)


class GateState(Enum):
    """Whether a refresh may run now."""
    READY = "ready"
    COOLDOWN = "cooldown"


class CooldownActiveError(Exception):
    """Raised when a refresh is attempted before the cooldown has elapsed."""

    def __init__(self, remaining: timedelta):
        self.remaining = remaining
        super().__init__(
            "Data refresh is on cooldown. "
            f"Next refresh available in {format_time_until_refresh(remaining)}."
        )


@dataclass
class RefreshStatus:
    """
    Snapshot of the gate for display.

    Attributes:
        can_refresh: Whether a refresh may run now
        time_until_ready: Remaining cooldown (zero when ready)
        last_refresh: Last successful refresh, if any
        time_until_ready_formatted: e.g. "3h 12m" or "Available now"
        last_refresh_formatted: e.g. "Mar 15, 2024, 09:30 AM" or "Never"
    """
    can_refresh: bool
    time_until_ready: timedelta
    last_refresh: Optional[datetime]
    time_until_ready_formatted: str
    last_refresh_formatted: str


def _utc_clock() -> datetime:
    return datetime.now(timezone.utc)


def format_time_until_refresh(delta: timedelta) -> str:
    """
    Format a remaining cooldown.

    Returns:
        "Available now" for zero or negative, "Xh Ym" when at least an hour
        remains, otherwise "Ym"
    """
    total_seconds = int(delta.total_seconds())
    if total_seconds <= 0:
        return "Available now"

    hours, remainder = divmod(total_seconds, 3600)
    minutes = remainder // 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


class RefreshGate:
    """
    Cooldown state machine: READY -> (refresh succeeds) -> COOLDOWN -> READY.

    A failed refresh leaves the state untouched.
    """

    def __init__(
        self,
        store: StateStore,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        clock: Callable[[], datetime] = _utc_clock,
    ):
        """
        Initialize the gate.

        Args:
            store: Persists the last successful refresh timestamp
            cooldown: Minimum time between successful refreshes
            clock: Returns the current time as an aware UTC datetime
        """
        self._store = store
        self.cooldown = cooldown
        self._clock = clock

    @property
    def last_refresh(self) -> Optional[datetime]:
        """
        Last successful refresh, or None if never refreshed.

        Raises:
            DataLoadError: If the stored timestamp cannot be parsed
        """
        raw = self._store.get(LAST_REFRESH_KEY)
        if not raw:
            return None

        try:
            stamp = datetime.fromisoformat(str(raw))
        except ValueError as e:
            raise DataLoadError(f"Invalid {LAST_REFRESH_KEY} timestamp {raw!r}: {e}")

        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=timezone.utc)
        return stamp

    def time_until_ready(self) -> timedelta:
        """Remaining cooldown, zero when a refresh may run."""
        last = self.last_refresh
        if last is None:
            return timedelta(0)

        elapsed = self._clock() - last
        remaining = self.cooldown - elapsed
        if remaining <= timedelta(0):
            return timedelta(0)
        # A last_refresh in the future (clock skew) never blocks longer than one cooldown
        return min(remaining, self.cooldown)

    def can_refresh(self) -> bool:
        return self.time_until_ready() == timedelta(0)

    @property
    def state(self) -> GateState:
        return GateState.READY if self.can_refresh() else GateState.COOLDOWN

    def should_auto_refresh_on_load(self) -> bool:
        """Whether an automatic refresh should run at startup."""
        return self.last_refresh is None or self.can_refresh()

    def status(self) -> RefreshStatus:
        last = self.last_refresh
        remaining = self.time_until_ready()

        return RefreshStatus(
            can_refresh=remaining == timedelta(0),
            time_until_ready=remaining,
            last_refresh=last,
            time_until_ready_formatted=format_time_until_refresh(remaining),
            last_refresh_formatted=(
                last.strftime("%b %d, %Y, %I:%M %p") if last else "Never"
            ),
        )

    def record_refresh(self, when: Optional[datetime] = None) -> datetime:
        """Stamp a successful refresh (defaults to now)."""
        stamp = when or self._clock()
        self._store.set(LAST_REFRESH_KEY, stamp.isoformat())
        return stamp

    def perform_refresh(self, fetch_fn: Callable[[], T]) -> T:
        """
        Run a refresh if the gate is ready.

        The cooldown starts only when ``fetch_fn`` returns; any exception it
        raises propagates unchanged and the gate stays READY.

        Args:
            fetch_fn: Performs the actual data fetch

        Returns:
            Whatever ``fetch_fn`` returns

        Raises:
            CooldownActiveError: If the cooldown has not elapsed
        """
        remaining = self.time_until_ready()
        if remaining > timedelta(0):
            logger.info("Refresh blocked; cooldown remaining %s", remaining)
            raise CooldownActiveError(remaining)

        result = fetch_fn()

        stamp = self.record_refresh()
        logger.info("Refresh completed at %s", stamp.isoformat())
        return result


def refresh_funds(
    gate: RefreshGate,
    provider: MarketDataProvider,
    symbols: list[str],
) -> FundRefreshResult:
    """
    Refresh fund snapshots through the gate.

    Per-symbol failures are collected in the result. When every requested
    symbol fails the whole refresh is treated as failed so the cooldown is
    not consumed.

    Raises:
        CooldownActiveError: If the cooldown has not elapsed
        DataProviderError: If no symbol could be refreshed
    """
    def fetch() -> FundRefreshResult:
        result = provider.fetch_funds(symbols)
        if result.errors and not result.funds:
            raise DataProviderError(
                f"All {len(result.errors)} symbols failed to refresh: "
                + "; ".join(f"{e.symbol}: {e.error}" for e in result.errors)
            )
        return result

    result = gate.perform_refresh(fetch)
    if result.errors:
        logger.warning(
            "%d symbols failed to update: %s",
            len(result.errors), ", ".join(e.symbol for e in result.errors),
        )
    return result
