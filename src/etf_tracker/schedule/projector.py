"""
Upcoming dividend projection.

Combines each position with its fund's last ex-dividend date and cadence to
project the next payment within a horizon window.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, Optional

from etf_tracker.models import (
    CalendarDay,
    DividendEvent,
    Fund,
    Position,
    UpcomingDividendSummary,
    Urgency,
    ValidationError,
    parse_date,
)
from etf_tracker.schedule.dates import (
    PAYMENT_OFFSET_BUSINESS_DAYS,
    days_until,
    next_occurrence,
    payment_date_for,
)

logger = logging.getLogger(__name__)


DEFAULT_HORIZON_DAYS = 90

# Urgency thresholds (days until ex-date)
HIGH_URGENCY_DAYS = 7
MEDIUM_URGENCY_DAYS = 30

# Look-ahead windows for filter_by_period
PERIOD_DAYS = {
    "week": 7,
    "month": 30,
    "quarter": 90,
}


def classify_urgency(days_until_ex: int) -> Urgency:
    """Bucket days-until-ex into an urgency tier."""
    if days_until_ex <= HIGH_URGENCY_DAYS:
        return Urgency.HIGH
    if days_until_ex <= MEDIUM_URGENCY_DAYS:
        return Urgency.MEDIUM
    return Urgency.LOW


def index_funds(funds: Iterable[Fund]) -> dict[str, Fund]:
    """Map upper-cased symbol to fund (later entries win)."""
    return {fund.symbol.upper(): fund for fund in funds}


def project_upcoming(
    positions: Iterable[Position],
    funds: Iterable[Fund],
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    today: Optional[date] = None,
    payment_offset_days: int = PAYMENT_OFFSET_BUSINESS_DAYS,
) -> list[DividendEvent]:
    """
    Project upcoming dividend events for a set of positions.

    Positions without a matching fund, or whose fund lacks dividend data, are
    skipped silently. An event is included only if its projected ex-date
    falls within [today, today + horizon_days].

    Args:
        positions: Positions to project
        funds: Fund snapshots to match by symbol
        horizon_days: Look-ahead window in days
        today: Reference date (defaults to today)
        payment_offset_days: Business days from ex-date to pay date

    Returns:
        Events sorted ascending by ex-date (earliest first)

    Raises:
        ValidationError: If horizon_days is negative
    """
    if horizon_days < 0:
        raise ValidationError(f"horizon_days must be >= 0, got {horizon_days}")

    today = parse_date(today, "today") if today is not None else date.today()
    cutoff = today + timedelta(days=horizon_days)
    funds_by_symbol = index_funds(funds)

    events = []
    for position in positions:
        fund = funds_by_symbol.get(position.symbol.upper())
        if fund is None or not fund.has_dividend_data:
            continue

        next_ex = next_occurrence(fund.last_ex_dividend_date, fund.frequency)
        if not (today <= next_ex <= cutoff):
            continue

        days_until_ex = days_until(next_ex, today)
        events.append(
            DividendEvent(
                symbol=position.symbol,
                name=fund.name or position.name,
                ex_date=next_ex,
                pay_date=payment_date_for(next_ex, payment_offset_days),
                dividend_per_share=fund.dividend_per_share,
                shares=position.shares,
                estimated_amount=fund.dividend_per_share * position.shares,
                frequency=fund.frequency,
                days_until_ex=days_until_ex,
                priority=classify_urgency(days_until_ex),
            )
        )

    events.sort(key=lambda e: (e.ex_date, e.symbol))
    logger.debug("Projected %d dividend events through %s", len(events), cutoff)
    return events


def summarize_upcoming(events: Iterable[DividendEvent]) -> UpcomingDividendSummary:
    """
    Summary statistics over projected events.

    Returns:
        Counts and estimated income overall and within the next 7/30 days
    """
    events = list(events)
    next_7 = [e for e in events if e.days_until_ex <= HIGH_URGENCY_DAYS]
    next_30 = [e for e in events if e.days_until_ex <= MEDIUM_URGENCY_DAYS]

    return UpcomingDividendSummary(
        total_upcoming=len(events),
        total_estimated_income=sum(e.estimated_amount for e in events),
        next_7_days=len(next_7),
        next_7_days_income=sum(e.estimated_amount for e in next_7),
        next_30_days=len(next_30),
        next_30_days_income=sum(e.estimated_amount for e in next_30),
    )


def filter_by_period(
    events: Iterable[DividendEvent],
    period: str,
    today: Optional[date] = None,
) -> list[DividendEvent]:
    """
    Keep events whose ex-date falls within a named period.

    Args:
        events: Projected events
        period: "week", "month" or "quarter"; anything else keeps all events
        today: Reference date (defaults to today)
    """
    events = list(events)
    window = PERIOD_DAYS.get(period)
    if window is None:
        return events

    today = today or date.today()
    cutoff = today + timedelta(days=window)
    return [e for e in events if e.ex_date <= cutoff]


def build_dividend_calendar(
    events: Iterable[DividendEvent],
    year: int,
    month: int,
) -> dict[int, CalendarDay]:
    """
    Lay out projected events on a calendar month.

    Returns:
        Mapping of day-of-month to the events whose ex-date or pay-date
        lands on that day. Days without events are absent.
    """
    calendar: dict[int, CalendarDay] = {}

    for event in events:
        if event.ex_date.year == year and event.ex_date.month == month:
            calendar.setdefault(event.ex_date.day, CalendarDay()).ex.append(event)

        if event.pay_date.year == year and event.pay_date.month == month:
            calendar.setdefault(event.pay_date.day, CalendarDay()).pay.append(event)

    return dict(sorted(calendar.items()))
