"""
Dividend scheduling module for the ETF Dividend Tracker.

Provides cadence arithmetic, frequency inference from historical
ex-dividend dates, and projection of upcoming dividend events.
"""

from etf_tracker.schedule.dates import (
    add_business_days,
    days_until,
    next_occurrence,
    payment_date_for,
)
from etf_tracker.schedule.frequency import (
    estimate_annual_dividend,
    infer_frequency,
)
from etf_tracker.schedule.projector import (
    build_dividend_calendar,
    filter_by_period,
    project_upcoming,
    summarize_upcoming,
)

__all__ = [
    "add_business_days",
    "days_until",
    "next_occurrence",
    "payment_date_for",
    "estimate_annual_dividend",
    "infer_frequency",
    "build_dividend_calendar",
    "filter_by_period",
    "project_upcoming",
    "summarize_upcoming",
]
