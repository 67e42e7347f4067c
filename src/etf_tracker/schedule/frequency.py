"""
Payment frequency inference from historical ex-dividend dates.

This is a heuristic classifier: special or irregular dividends skew the
average gap and there is no correction for them. The inferred frequency is
stored on the Fund so callers can override it.
"""

from datetime import date
from typing import Any, Iterable, Union

from etf_tracker.models import DividendFrequency, parse_date


# Maximum number of recent gaps averaged
MAX_INTERVALS = 4

# Upper bounds (average days between payments) for each bucket
MONTHLY_MAX_DAYS = 35
QUARTERLY_MAX_DAYS = 100
SEMI_ANNUAL_MAX_DAYS = 200


def infer_frequency(ex_dates: Iterable[Union[date, str]]) -> DividendFrequency:
    """
    Infer a payment cadence from historical ex-dividend dates.

    Dates are sorted newest first; up to the 4 most recent gaps between
    consecutive dates are averaged and bucketed:
    <= 35 days Monthly, <= 100 Quarterly, <= 200 Semi-annual, else Annual.

    Args:
        ex_dates: Ex-dividend dates in any order

    Returns:
        Inferred frequency, or UNKNOWN when fewer than 2 dates are given.
        Callers treat UNKNOWN as Quarterly for projection.
    """
    dates = sorted((parse_date(d, "ex_date") for d in ex_dates), reverse=True)
    if len(dates) < 2:
        return DividendFrequency.UNKNOWN

    intervals = [
        (dates[i] - dates[i + 1]).days
        for i in range(min(len(dates) - 1, MAX_INTERVALS))
    ]
    avg_interval = sum(intervals) / len(intervals)

    if avg_interval <= MONTHLY_MAX_DAYS:
        return DividendFrequency.MONTHLY
    if avg_interval <= QUARTERLY_MAX_DAYS:
        return DividendFrequency.QUARTERLY
    if avg_interval <= SEMI_ANNUAL_MAX_DAYS:
        return DividendFrequency.SEMI_ANNUAL
    return DividendFrequency.ANNUAL


def estimate_annual_dividend(amounts: Iterable[float], frequency: Any) -> float:
    """
    Estimate the annual dividend per share.

    Averages the 4 most recent per-payment amounts (newest first) and scales
    by the number of payments per year. Unknown frequency scales as quarterly.

    Args:
        amounts: Per-payment cash amounts, newest first
        frequency: DividendFrequency or frequency string

    Returns:
        Annualized dividend per share (0.0 when no amounts are given)
    """
    recent = [float(a) for a in list(amounts)[:MAX_INTERVALS]]
    if not recent:
        return 0.0

    avg_amount = sum(recent) / len(recent)
    return avg_amount * DividendFrequency.parse(frequency).payments_per_year
