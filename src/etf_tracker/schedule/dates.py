"""
Date cadence arithmetic for dividend scheduling.

Projects the next occurrence of a periodic event, offsets dates by business
days, and measures whole days until a target date.
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Union

from dateutil.relativedelta import relativedelta

from etf_tracker.models import DividendFrequency, ValidationError, parse_date


# Business days between ex-dividend date and payment date
PAYMENT_OFFSET_BUSINESS_DAYS = 2

SECONDS_PER_DAY = 24 * 60 * 60


def next_occurrence(
    last_date: Union[date, str],
    frequency: Any,
    periods: int = 1,
) -> date:
    """
    Project the next occurrence of a periodic event.

    Adds 1/3/6/12 calendar months per period for Monthly/Quarterly/
    Semi-annual/Annual. An unrecognised or Unknown frequency falls back to
    Quarterly. Days past the end of the target month clamp to its last day.

    Args:
        last_date: Date of the last occurrence
        frequency: DividendFrequency or frequency string
        periods: Number of cadence periods to advance

    Returns:
        Projected date
    """
    start = parse_date(last_date, "last_date")
    months = DividendFrequency.parse(frequency).months
    return start + relativedelta(months=months * periods)


def add_business_days(start: Union[date, str], n: int) -> date:
    """
    Advance a date by n business days (Mon-Fri).

    Steps one calendar day at a time, counting only weekdays.

    Raises:
        ValidationError: If n is negative
    """
    if n < 0:
        raise ValidationError(f"Business day offset must be >= 0, got {n}")

    current = parse_date(start, "start")
    added = 0
    while added < n:
        current += timedelta(days=1)
        if current.weekday() < 5:  # Monday = 0, Friday = 4
            added += 1
    return current


def payment_date_for(
    ex_date: Union[date, str],
    offset: int = PAYMENT_OFFSET_BUSINESS_DAYS,
) -> date:
    """Derive the payment date from an ex-dividend date."""
    return add_business_days(ex_date, offset)


def days_until(
    target: Union[date, str],
    now: Optional[Union[date, datetime]] = None,
) -> int:
    """
    Whole days until a target date, never negative.

    Computes the ceiling of (target - now) in days. Past dates report 0.

    Args:
        target: Target date
        now: Reference point; a date is treated as midnight. Defaults to the
            current UTC time.
    """
    target_date = parse_date(target, "target")

    if now is None:
        now = datetime.now(timezone.utc)

    if isinstance(now, datetime):
        target_dt = datetime.combine(target_date, datetime.min.time(), tzinfo=now.tzinfo)
        delta_days = (target_dt - now).total_seconds() / SECONDS_PER_DAY
        return max(0, math.ceil(delta_days))

    return max(0, (target_date - now).days)


def relative_time_string(
    target: Union[date, str],
    today: Optional[date] = None,
) -> str:
    """Describe a date relative to today, e.g. "Tomorrow" or "in 5 days"."""
    today = today or date.today()
    diff = (parse_date(target, "target") - today).days

    if diff == 0:
        return "Today"
    if diff == 1:
        return "Tomorrow"
    if diff == -1:
        return "Yesterday"
    if diff > 0:
        return f"in {diff} days"
    return f"{abs(diff)} days ago"


def is_current_year(value: Union[date, str], today: Optional[date] = None) -> bool:
    today = today or date.today()
    return parse_date(value, "value").year == today.year
