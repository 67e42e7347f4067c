"""
Decision logging module for the ETF Dividend Tracker.

Provides append-only decision logging for audit.
"""

from etf_tracker.logging.decision_log import DecisionLogger, RecordEncoder

__all__ = [
    "DecisionLogger",
    "RecordEncoder",
]
