"""
Command-line interface for the ETF Dividend Tracker.

Provides commands for:
- buy / remove / clear: Maintain holdings
- holdings / transactions: Inspect the ledger
- value: Mark holdings to market with projected dividend income
- upcoming / calendar: Project upcoming dividend payments
- refresh / refresh-status: Fetch fresh fund data (once per cooldown)
- export: Write holdings, transactions and upcoming dividends to CSV
"""

import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

import click

from etf_tracker import __version__
from etf_tracker.config import ConfigurationError, load_tracker_config
from etf_tracker.data import (
    CatalogProvider,
    DataLoadError,
    JsonFileStore,
    SAMPLE_FUNDS,
    load_fund_catalog,
    save_dividend_events,
    save_positions,
    save_transactions,
)
from etf_tracker.data.providers import DataProviderError, get_polygon_provider
from etf_tracker.data.store import FUNDS_KEY
from etf_tracker.logging import DecisionLogger
from etf_tracker.models import Fund, TrackerConfig, ValidationError, parse_date
from etf_tracker.portfolio import (
    HoldingsLedger,
    calculate_allocation,
    get_gainers_and_losers,
    value_portfolio,
)
from etf_tracker.refresh import CooldownActiveError, RefreshGate, refresh_funds
from etf_tracker.schedule import (
    build_dividend_calendar,
    filter_by_period,
    project_upcoming,
    summarize_upcoming,
)
from etf_tracker.schedule.dates import relative_time_string

DOMAIN_ERRORS = (
    ValidationError,
    DataLoadError,
    ConfigurationError,
    DataProviderError,
    OSError,
)


class TrackerContext:
    """Shared state for one CLI invocation."""

    def __init__(self, config: TrackerConfig):
        self.config = config
        self.store = JsonFileStore(config.state_path)
        self.decision_log = DecisionLogger(config.log_path)

    def load_ledger(self) -> HoldingsLedger:
        return HoldingsLedger.load(self.store)

    def load_funds(self) -> list[Fund]:
        """Catalog funds, overlaid with any funds from the last refresh."""
        if self.config.catalog_path:
            funds = {f.symbol: f for f in load_fund_catalog(self.config.catalog_path)}
        else:
            funds = {f.symbol: f for f in SAMPLE_FUNDS}

        for raw in self.store.get(FUNDS_KEY, []) or []:
            fund = Fund.from_dict(raw)
            funds[fund.symbol] = fund

        return list(funds.values())

    def refresh_gate(self) -> RefreshGate:
        return RefreshGate(
            self.store,
            cooldown=timedelta(hours=self.config.refresh_cooldown_hours),
        )


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _parse_today(value: Optional[str]) -> date:
    if value is None:
        return date.today()
    try:
        return parse_date(value, "today")
    except ValidationError as e:
        _fail(str(e))


@click.group()
@click.version_option(version=__version__, prog_name="etf-tracker")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    default=None,
    help="Path to tracker configuration YAML file",
)
@click.option(
    "--state", "-s",
    type=click.Path(),
    default=None,
    help="Path to the JSON state file. Overrides config state_path.",
)
@click.option(
    "--catalog",
    type=click.Path(exists=True),
    default=None,
    help="Fund catalog CSV. Defaults to the bundled sample catalog.",
)
@click.option(
    "--log-file",
    type=click.Path(),
    default=None,
    help="Decision log path. Overrides config log_path.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(
    ctx: click.Context,
    config: Optional[str],
    state: Optional[str],
    catalog: Optional[str],
    log_file: Optional[str],
    verbose: bool,
):
    """
    ETF Dividend Tracker.

    Track ETF holdings, project upcoming dividend payments and value the
    portfolio. Market data can be refreshed once per cooldown period.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        tracker_config = load_tracker_config(config) if config else TrackerConfig()
    except ConfigurationError as e:
        _fail(f"loading config: {e}")

    if state:
        tracker_config.state_path = state
    if catalog:
        tracker_config.catalog_path = catalog
    if log_file:
        tracker_config.log_path = log_file

    ctx.obj = TrackerContext(tracker_config)


@main.command()
@click.argument("symbol")
@click.argument("shares", type=float)
@click.argument("price", type=float)
@click.option("--date", "-d", "trade_date", default=None, help="Trade date (YYYY-MM-DD). Defaults to today.")
@click.option("--name", default=None, help="Fund name. Defaults to the catalog name.")
@click.option("--sector", default=None, help="Sector tag. Defaults to the catalog sector.")
@click.pass_obj
def buy(
    obj: TrackerContext,
    symbol: str,
    shares: float,
    price: float,
    trade_date: Optional[str],
    name: Optional[str],
    sector: Optional[str],
):
    """
    Record a purchase of SHARES of SYMBOL at PRICE per share.

    Repeat purchases are merged into one position at weighted-average cost.
    """
    try:
        ledger = obj.load_ledger()
        fund = next(
            (f for f in obj.load_funds() if f.symbol == symbol.upper().strip()), None
        )
        position, transaction = ledger.add_purchase(
            symbol,
            shares,
            price,
            name=name if name is not None else (fund.name if fund else ""),
            sector=sector if sector is not None else (fund.sector if fund else ""),
            purchase_date=trade_date,
        )
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    obj.decision_log.log_purchase_recorded(position, transaction)

    click.echo(f"Bought {transaction.shares:g} {position.symbol} @ ${transaction.price:,.2f}")
    click.echo(
        f"  Position: {position.shares:g} shares, avg cost ${position.avg_cost:,.2f}, "
        f"cost basis ${position.cost_basis:,.2f}"
    )


@main.command()
@click.argument("symbol")
@click.pass_obj
def remove(obj: TrackerContext, symbol: str):
    """Remove the position in SYMBOL (transactions are kept)."""
    try:
        removed = obj.load_ledger().remove_position(symbol)
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    if removed is None:
        _fail(f"No position in {symbol.upper()}")

    obj.decision_log.log_position_removed(removed)
    click.echo(f"Removed {removed.symbol} ({removed.shares:g} shares)")


@main.command()
@click.option("--all", "clear_history", is_flag=True, help="Also clear the transaction history")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def clear(obj: TrackerContext, clear_history: bool, yes: bool):
    """Remove every position."""
    what = "all positions and transactions" if clear_history else "all positions"
    if not yes:
        click.confirm(f"Clear {what}?", abort=True)

    try:
        ledger = obj.load_ledger()
        count = ledger.clear_all() if clear_history else ledger.clear_positions()
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    obj.decision_log.log_positions_cleared(count, clear_history)
    click.echo(f"Cleared {count} positions" + (" and all transactions" if clear_history else ""))


@main.command()
@click.pass_obj
def holdings(obj: TrackerContext):
    """List current positions."""
    try:
        positions = obj.load_ledger().positions
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    if not positions:
        click.echo("No holdings")
        return

    click.echo(f"{'Symbol':<8} {'Shares':>12} {'Avg Cost':>12} {'Cost Basis':>14}  Last Purchase")
    for p in positions:
        click.echo(
            f"{p.symbol:<8} {p.shares:>12,.4f} {p.avg_cost:>12,.2f} "
            f"{p.cost_basis:>14,.2f}  {p.purchase_date.isoformat()}"
        )


@main.command()
@click.option("--limit", "-n", type=int, default=None, help="Show only the N most recent")
@click.pass_obj
def transactions(obj: TrackerContext, limit: Optional[int]):
    """List purchase history, newest first."""
    try:
        history = obj.load_ledger().transactions
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    if limit is not None:
        history = history[:limit]

    if not history:
        click.echo("No transactions")
        return

    for t in history:
        click.echo(
            f"{t.date.isoformat()}  {t.type.value.upper():<4} {t.symbol:<8} "
            f"{t.shares:>10,.4f} @ {t.price:>10,.2f} = {t.total:>12,.2f}  [{t.transaction_id}]"
        )


@main.command()
@click.option("--by", type=click.Choice(["symbol", "sector"]), default="symbol", help="Allocation grouping")
@click.option("--top", "top_n", type=int, default=3, help="Number of gainers/losers to show")
@click.pass_obj
def value(obj: TrackerContext, by: str, top_n: int):
    """
    Calculate mark-to-market valuation.

    Values each position at the latest fund price and projects its
    monthly and annual dividend income.
    """
    try:
        positions = obj.load_ledger().positions
        funds = obj.load_funds()
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    if not positions:
        click.echo("No holdings")
        return

    valuation = value_portfolio(positions, funds)
    obj.decision_log.log_valuation_calculated(valuation)

    click.echo(f"{'Symbol':<8} {'Price':>10} {'Value':>14} {'Gain/Loss':>14} {'%':>8} {'Monthly Div':>12}")
    for v in valuation.positions:
        marker = "" if v.has_quote else " *"
        click.echo(
            f"{v.position.symbol:<8} {v.current_price:>10,.2f} {v.current_value:>14,.2f} "
            f"{v.gain_loss:>14,.2f} {v.gain_loss_percent:>7.2f}% {v.monthly_dividend:>12,.2f}{marker}"
        )

    click.echo()
    click.echo("Portfolio Valuation:")
    click.echo(f"  Market Value:     ${valuation.total_value:,.2f}")
    click.echo(f"  Cost Basis:       ${valuation.total_cost:,.2f}")
    click.echo(
        f"  Gain/Loss:        ${valuation.total_gain_loss:,.2f} "
        f"({valuation.total_gain_loss_percent:.2f}%)"
    )
    click.echo(f"  Monthly Dividend: ${valuation.total_monthly_dividend:,.2f}")
    click.echo(f"  Annual Dividend:  ${valuation.total_annual_dividend:,.2f}")

    if any(not v.has_quote for v in valuation.positions):
        click.echo("  * no quote available; valued at cost")

    click.echo()
    click.echo(f"Allocation by {by}:")
    for key, weight in sorted(
        calculate_allocation(valuation, by=by, funds=funds).items(),
        key=lambda item: item[1],
        reverse=True,
    ):
        click.echo(f"  {key:<20} {weight:>7.2%}")

    gainers, losers = get_gainers_and_losers(valuation, top_n=top_n)
    if gainers:
        click.echo("Top gainers: " + ", ".join(
            f"{v.position.symbol} ({v.gain_loss_percent:+.2f}%)" for v in gainers
        ))
    if losers:
        click.echo("Top losers: " + ", ".join(
            f"{v.position.symbol} ({v.gain_loss_percent:+.2f}%)" for v in losers
        ))


@main.command()
@click.option("--horizon", type=int, default=None, help="Look-ahead window in days. Defaults to config horizon_days.")
@click.option(
    "--period",
    type=click.Choice(["week", "month", "quarter", "all"]),
    default="all",
    help="Narrow the list to the next week, month or quarter",
)
@click.option("--today", default=None, help="Reference date (YYYY-MM-DD). Defaults to today.")
@click.pass_obj
def upcoming(obj: TrackerContext, horizon: Optional[int], period: str, today: Optional[str]):
    """Project upcoming dividend payments for current holdings."""
    as_of = _parse_today(today)
    horizon_days = horizon if horizon is not None else obj.config.horizon_days

    try:
        events = project_upcoming(
            obj.load_ledger().positions,
            obj.load_funds(),
            horizon_days=horizon_days,
            today=as_of,
            payment_offset_days=obj.config.payment_offset_days,
        )
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    obj.decision_log.log_dividends_projected(events, horizon_days)
    events = filter_by_period(events, period, today=as_of)

    if not events:
        click.echo(f"No dividends expected in the next {horizon_days} days")
        return

    for e in events:
        click.echo(
            f"[{e.priority.value.upper():<6}] {e.symbol:<6} ex {e.ex_date.isoformat()} "
            f"({relative_time_string(e.ex_date, as_of)}), pay {e.pay_date.isoformat()}: "
            f"${e.estimated_amount:,.2f} ({e.shares:g} x ${e.dividend_per_share:.4f})"
        )

    summary = summarize_upcoming(events)
    click.echo()
    click.echo(f"Total: {summary.total_upcoming} payments, ${summary.total_estimated_income:,.2f}")
    click.echo(f"  Next 7 days:  {summary.next_7_days} (${summary.next_7_days_income:,.2f})")
    click.echo(f"  Next 30 days: {summary.next_30_days} (${summary.next_30_days_income:,.2f})")


@main.command()
@click.argument("year", type=int)
@click.argument("month", type=click.IntRange(1, 12))
@click.option("--today", default=None, help="Reference date (YYYY-MM-DD). Defaults to today.")
@click.pass_obj
def calendar(obj: TrackerContext, year: int, month: int, today: Optional[str]):
    """Show projected ex-dividend and payment dates for a calendar month."""
    as_of = _parse_today(today)

    try:
        events = project_upcoming(
            obj.load_ledger().positions,
            obj.load_funds(),
            horizon_days=obj.config.horizon_days,
            today=as_of,
            payment_offset_days=obj.config.payment_offset_days,
        )
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    days = build_dividend_calendar(events, year, month)
    if not days:
        click.echo(f"No dividend dates in {year}-{month:02d}")
        return

    for day, entry in days.items():
        parts = [f"ex: {e.symbol}" for e in entry.ex] + [f"pay: {e.symbol}" for e in entry.pay]
        click.echo(f"{year}-{month:02d}-{day:02d}  " + ", ".join(parts))


@main.command()
@click.option("--symbols", default=None, help="Comma-separated symbols. Defaults to current holdings.")
@click.option("--offline", is_flag=True, help="Refresh from the fund catalog instead of Polygon.io")
@click.pass_obj
def refresh(obj: TrackerContext, symbols: Optional[str], offline: bool):
    """
    Refresh fund data from the market data provider.

    Allowed once per cooldown period (24 hours by default). A failed
    refresh does not start the cooldown.
    """
    try:
        if symbols:
            symbol_list = [s.strip().upper() for s in symbols.split(",") if s.strip()]
        else:
            symbol_list = [p.symbol for p in obj.load_ledger().positions]

        if not symbol_list:
            _fail("No symbols to refresh. Pass --symbols or add holdings first.")

        if offline:
            provider = CatalogProvider(obj.load_funds())
        else:
            provider = get_polygon_provider(config=obj.config)
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    gate = obj.refresh_gate()
    click.echo(f"Refreshing {len(symbol_list)} symbols from {provider.name}...")

    try:
        result = refresh_funds(gate, provider, symbol_list)
    except CooldownActiveError as e:
        obj.decision_log.log_refresh_blocked(e.remaining)
        _fail(str(e))
    except DOMAIN_ERRORS as e:
        obj.decision_log.log_refresh_failed(symbol_list, str(e))
        _fail(f"Refresh failed: {e}")

    # Keep refreshed snapshots for valuation and projection
    try:
        stored = {raw["symbol"]: raw for raw in obj.store.get(FUNDS_KEY, []) or []}
        for fund in result.funds:
            stored[fund.symbol] = fund.to_dict()
        obj.store.set(FUNDS_KEY, list(stored.values()))
    except DOMAIN_ERRORS as e:
        _fail(f"Saving refreshed funds: {e}")

    obj.decision_log.log_refresh_completed(result)

    click.echo(f"Updated {len(result.funds)} funds.")
    if result.errors:
        click.echo(f"Warning: {len(result.errors)} symbols failed to update:", err=True)
        for error in result.errors:
            click.echo(f"  {error.symbol}: {error.error}", err=True)


@main.command("refresh-status")
@click.pass_obj
def refresh_status(obj: TrackerContext):
    """Show when data was last refreshed and when the next refresh is allowed."""
    try:
        status = obj.refresh_gate().status()
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    click.echo(f"Last refresh: {status.last_refresh_formatted}")
    click.echo(f"Next refresh: {status.time_until_ready_formatted}")


@main.command()
@click.option(
    "--output-dir", "-o",
    type=click.Path(),
    default="output",
    help="Output directory",
)
@click.option("--today", default=None, help="Reference date (YYYY-MM-DD). Defaults to today.")
@click.pass_obj
def export(obj: TrackerContext, output_dir: str, today: Optional[str]):
    """Export holdings, transactions and upcoming dividends to CSV."""
    as_of = _parse_today(today)
    out_dir = Path(output_dir)

    try:
        ledger = obj.load_ledger()
        events = project_upcoming(
            ledger.positions,
            obj.load_funds(),
            horizon_days=obj.config.horizon_days,
            today=as_of,
            payment_offset_days=obj.config.payment_offset_days,
        )
    except DOMAIN_ERRORS as e:
        _fail(str(e))

    paths = [
        save_positions(ledger.positions, out_dir / f"positions_{as_of}.csv"),
        save_transactions(ledger.transactions, out_dir / f"transactions_{as_of}.csv"),
        save_dividend_events(events, out_dir / f"upcoming_dividends_{as_of}.csv"),
    ]

    for path in paths:
        click.echo(f"  Saved: {path}")


if __name__ == "__main__":
    main()
