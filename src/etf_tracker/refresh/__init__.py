"""
Refresh policy module for the ETF Dividend Tracker.

Provides the cooldown gate that limits how often external market
data may be refreshed.
"""

from etf_tracker.refresh.gate import (
    CooldownActiveError,
    GateState,
    RefreshGate,
    RefreshStatus,
    format_time_until_refresh,
    refresh_funds,
)

__all__ = [
    "CooldownActiveError",
    "GateState",
    "RefreshGate",
    "RefreshStatus",
    "format_time_until_refresh",
    "refresh_funds",
]
