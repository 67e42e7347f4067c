"""
Data module for the ETF Dividend Tracker.

Provides the bundled fund catalog, CSV loading and saving, and the
key-value stores that persist holdings and refresh state.
"""

from etf_tracker.data.loaders import (
    DataLoadError,
    load_fund_catalog,
    load_positions,
    save_funds,
    save_positions,
    save_transactions,
    save_dividend_events,
)
from etf_tracker.data.schemas import (
    FUNDS_SCHEMA,
    POSITIONS_SCHEMA,
    TRANSACTIONS_SCHEMA,
    DIVIDEND_EVENTS_SCHEMA,
)
from etf_tracker.data.store import InMemoryStore, JsonFileStore, StateStore
from etf_tracker.data.catalog import SAMPLE_FUNDS, CatalogProvider, get_sample_fund

__all__ = [
    "DataLoadError",
    "load_fund_catalog",
    "load_positions",
    "save_funds",
    "save_positions",
    "save_transactions",
    "save_dividend_events",
    "FUNDS_SCHEMA",
    "POSITIONS_SCHEMA",
    "TRANSACTIONS_SCHEMA",
    "DIVIDEND_EVENTS_SCHEMA",
    "InMemoryStore",
    "JsonFileStore",
    "StateStore",
    "SAMPLE_FUNDS",
    "CatalogProvider",
    "get_sample_fund",
]
