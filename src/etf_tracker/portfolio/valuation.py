"""
Portfolio valuation and projected dividend income.

Marks each position to the matching fund's price, computes gain/loss and
the monthly/annual dividend income the position is expected to produce.
"""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from etf_tracker.models import (
    DividendFrequency,
    Fund,
    PortfolioValuation,
    Position,
    PositionValuation,
)
from etf_tracker.schedule.projector import index_funds

logger = logging.getLogger(__name__)


UNCLASSIFIED_SECTOR = "Other"


def monthly_dividend_income(fund: Optional[Fund], shares: float) -> float:
    """
    Projected monthly dividend income for a holding.

    The annual figure is dividend_per_share * shares; monthly income spreads
    it according to the payment cadence. Unknown cadence uses the quarterly
    rule. No fund or no dividend yields 0.
    """
    if fund is None or not fund.dividend_per_share or fund.dividend_per_share <= 0:
        return 0.0

    annual = fund.dividend_per_share * shares
    frequency = DividendFrequency.parse(fund.frequency)

    if frequency == DividendFrequency.MONTHLY:
        return annual / 12
    if frequency == DividendFrequency.SEMI_ANNUAL:
        return annual / 2 / 6
    if frequency == DividendFrequency.ANNUAL:
        return annual / 12
    # Quarterly and Unknown
    return annual / 4 / 3


def value_position(position: Position, fund: Optional[Fund]) -> PositionValuation:
    """
    Mark a single position to market.

    Without a matching fund the position's own average cost is used as the
    price, so it shows no gain or loss.
    """
    has_quote = fund is not None and fund.price > 0
    current_price = fund.price if has_quote else position.avg_cost

    current_value = current_price * position.shares
    gain_loss = current_value - position.cost_basis
    gain_loss_percent = (
        gain_loss / position.cost_basis * 100 if position.cost_basis else 0.0
    )
    monthly = monthly_dividend_income(fund, position.shares)

    return PositionValuation(
        position=position,
        current_price=current_price,
        current_value=current_value,
        gain_loss=gain_loss,
        gain_loss_percent=gain_loss_percent,
        monthly_dividend=monthly,
        annual_dividend=monthly * 12,
        has_quote=has_quote,
    )


def value_portfolio(
    positions: Iterable[Position],
    funds: Iterable[Fund],
) -> PortfolioValuation:
    """
    Create a complete portfolio valuation.

    Args:
        positions: Positions to value
        funds: Fund snapshots matched by symbol (case-insensitive)

    Returns:
        PortfolioValuation with per-position valuations and totals
    """
    funds_by_symbol = index_funds(funds)

    valuations = [
        value_position(p, funds_by_symbol.get(p.symbol.upper()))
        for p in positions
    ]

    total_value = sum(v.current_value for v in valuations)
    total_cost = sum(v.position.cost_basis for v in valuations)
    total_gain_loss = total_value - total_cost

    missing = [v.position.symbol for v in valuations if not v.has_quote]
    if missing:
        logger.debug("No quote for %s; valued at cost", ", ".join(missing))

    return PortfolioValuation(
        positions=valuations,
        total_value=total_value,
        total_cost=total_cost,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=(
            total_gain_loss / total_cost * 100 if total_cost else 0.0
        ),
        total_monthly_dividend=sum(v.monthly_dividend for v in valuations),
        total_annual_dividend=sum(v.annual_dividend for v in valuations),
    )


def calculate_allocation(
    valuation: PortfolioValuation,
    by: str = "symbol",
    funds: Optional[Iterable[Fund]] = None,
) -> dict[str, float]:
    """
    Calculate current portfolio weights.

    Args:
        valuation: Portfolio valuation
        by: "symbol" or "sector"
        funds: Optional funds used for a sector tag when the position has none

    Returns:
        Dictionary mapping symbol or sector to weight (0-1)

    Raises:
        ValueError: If ``by`` is not a supported grouping
    """
    if by not in ("symbol", "sector"):
        raise ValueError(f"Unsupported allocation grouping: {by}")

    if not valuation.total_value:
        return {}

    funds_by_symbol = index_funds(funds or [])

    # Aggregate market value by group
    group_values: dict[str, float] = defaultdict(float)
    for val in valuation.positions:
        if by == "symbol":
            key = val.position.symbol
        else:
            fund = funds_by_symbol.get(val.position.symbol.upper())
            key = val.position.sector or (fund.sector if fund else "") or UNCLASSIFIED_SECTOR
        group_values[key] += val.current_value

    return {key: value / valuation.total_value for key, value in group_values.items()}


def get_gainers_and_losers(
    valuation: PortfolioValuation,
    top_n: int = 5,
) -> tuple[list[PositionValuation], list[PositionValuation]]:
    """
    Get top gainers and losers by gain/loss percentage.

    Args:
        valuation: Portfolio valuation
        top_n: Number of positions to return on each side

    Returns:
        Tuple of (top_gainers best first, top_losers worst first)
    """
    sorted_by_pnl = sorted(
        valuation.positions,
        key=lambda v: v.gain_loss_percent,
        reverse=True,
    )

    top_gainers = [v for v in sorted_by_pnl if v.gain_loss > 0][:top_n]
    top_losers = [v for v in reversed(sorted_by_pnl) if v.gain_loss < 0][:top_n]

    return top_gainers, top_losers
