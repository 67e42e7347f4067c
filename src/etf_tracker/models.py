"""
Core data models for the ETF Dividend Tracker.

This module defines the fundamental data structures used throughout the system,
including fund snapshots, aggregated positions, purchase transactions, projected
dividend events and valuation results. Monetary and share quantities are plain
floats (IEEE-754 doubles) so every record serializes losslessly to JSON; dates
serialize as ISO-8601 ``YYYY-MM-DD`` strings.
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional


class ValidationError(ValueError):
    """Raised when caller-supplied values are invalid (never silently coerced)."""
    pass


class DividendFrequency(str, Enum):
    """Dividend payment cadence."""
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    SEMI_ANNUAL = "Semi-annual"
    ANNUAL = "Annual"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Any) -> "DividendFrequency":
        """
        Parse a frequency from an enum member or a free-form string.

        Matching is case-insensitive and tolerant of the usual spellings of
        semi-annual. Anything unrecognised parses to UNKNOWN.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
        return _FREQUENCY_ALIASES.get(normalized, cls.UNKNOWN)

    @property
    def months(self) -> int:
        """Calendar months between payments (UNKNOWN uses the quarterly fallback)."""
        return _FREQUENCY_MONTHS[self]

    @property
    def payments_per_year(self) -> int:
        """Number of payments per year (UNKNOWN uses the quarterly fallback)."""
        return 12 // self.months


_FREQUENCY_ALIASES = {
    "monthly": DividendFrequency.MONTHLY,
    "quarterly": DividendFrequency.QUARTERLY,
    "semi-annual": DividendFrequency.SEMI_ANNUAL,
    "semiannual": DividendFrequency.SEMI_ANNUAL,
    "semi-annually": DividendFrequency.SEMI_ANNUAL,
    "annual": DividendFrequency.ANNUAL,
    "annually": DividendFrequency.ANNUAL,
    "unknown": DividendFrequency.UNKNOWN,
}

_FREQUENCY_MONTHS = {
    DividendFrequency.MONTHLY: 1,
    DividendFrequency.QUARTERLY: 3,
    DividendFrequency.SEMI_ANNUAL: 6,
    DividendFrequency.ANNUAL: 12,
    DividendFrequency.UNKNOWN: 3,
}


class Urgency(str, Enum):
    """How soon a projected dividend event occurs."""
    HIGH = "high"      # <= 7 days
    MEDIUM = "medium"  # <= 30 days
    LOW = "low"


class TransactionType(str, Enum):
    """Kind of ledger transaction."""
    BUY = "buy"


class ActionType(Enum):
    """Types of logged actions for the decision log."""
    PURCHASE_RECORDED = "PURCHASE_RECORDED"
    POSITION_REMOVED = "POSITION_REMOVED"
    POSITIONS_CLEARED = "POSITIONS_CLEARED"
    VALUATION_CALCULATED = "VALUATION_CALCULATED"
    DIVIDENDS_PROJECTED = "DIVIDENDS_PROJECTED"
    REFRESH_COMPLETED = "REFRESH_COMPLETED"
    REFRESH_FAILED = "REFRESH_FAILED"
    REFRESH_BLOCKED = "REFRESH_BLOCKED"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_date(value: Any, field_name: str = "date") -> date:
    """
    Parse a date from a date, datetime or ISO-8601 string.

    Args:
        value: The value to parse
        field_name: Name of the field for error messages

    Returns:
        Parsed date object

    Raises:
        ValidationError: If the value is not a recognisable date
    """
    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass

        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass

    raise ValidationError(
        f"Invalid date for {field_name}: {value!r}. Expected YYYY-MM-DD"
    )


def parse_positive_number(value: Any, field_name: str) -> float:
    """
    Parse a strictly positive, finite number.

    Raises:
        ValidationError: If the value is not a number, not finite, or <= 0
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number, got {value!r}")

    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be finite, got {value!r}")
    if number <= 0:
        raise ValidationError(f"{field_name} must be greater than 0, got {value!r}")
    return number


def _optional_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    return parse_date(value, field_name)


@dataclass(frozen=True)
class Fund:
    """
    Snapshot of a tradable fund.

    Immutable once fetched; a refresh replaces the snapshot wholesale.

    Attributes:
        symbol: Ticker symbol (unique identifier)
        name: Display name
        price: Current price per share
        dividend_per_share: Per-payment dividend amount
        last_ex_dividend_date: Most recent known ex-dividend date
        frequency: Payment cadence (may be inferred; callers can override)
        sector: Sector tag
    """
    symbol: str
    name: str = ""
    price: float = 0.0
    dividend_per_share: float = 0.0
    last_ex_dividend_date: Optional[date] = None
    frequency: DividendFrequency = DividendFrequency.QUARTERLY
    sector: str = ""

    @property
    def has_dividend_data(self) -> bool:
        """Whether the fund carries enough data to project its next dividend."""
        return bool(self.dividend_per_share) and self.dividend_per_share > 0 \
            and self.last_ex_dividend_date is not None

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "dividend_per_share": self.dividend_per_share,
            "last_ex_dividend_date": (
                self.last_ex_dividend_date.isoformat()
                if self.last_ex_dividend_date else None
            ),
            "frequency": self.frequency.value,
            "sector": self.sector,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Fund":
        return cls(
            symbol=str(data["symbol"]).upper().strip(),
            name=str(data.get("name") or ""),
            price=float(data.get("price") or 0.0),
            dividend_per_share=float(data.get("dividend_per_share") or 0.0),
            last_ex_dividend_date=_optional_date(
                data.get("last_ex_dividend_date"), "last_ex_dividend_date"
            ),
            frequency=DividendFrequency.parse(data.get("frequency")),
            sector=str(data.get("sector") or ""),
        )


@dataclass
class Position:
    """
    A user's aggregated stake in one fund.

    Exactly one Position exists per symbol in a ledger. Subsequent purchases of
    the same symbol are merged in place using weighted-average cost.

    Attributes:
        symbol: Ticker symbol
        name: Display name captured at purchase time
        shares: Total shares held (> 0)
        avg_cost: Weighted-average cost per share (> 0)
        cost_basis: Total amount paid (= shares * avg_cost)
        purchase_date: Date of the most recent purchase
        sector: Sector tag captured at purchase time
    """
    symbol: str
    shares: float
    avg_cost: float
    cost_basis: float
    purchase_date: date
    name: str = ""
    sector: str = ""

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "shares": self.shares,
            "avg_cost": self.avg_cost,
            "cost_basis": self.cost_basis,
            "purchase_date": self.purchase_date.isoformat(),
            "sector": self.sector,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        return cls(
            symbol=str(data["symbol"]).upper().strip(),
            name=str(data.get("name") or ""),
            shares=parse_positive_number(data["shares"], "shares"),
            avg_cost=parse_positive_number(data["avg_cost"], "avg_cost"),
            cost_basis=parse_positive_number(data["cost_basis"], "cost_basis"),
            purchase_date=parse_date(data["purchase_date"], "purchase_date"),
            sector=str(data.get("sector") or ""),
        )


@dataclass(frozen=True)
class Transaction:
    """
    Immutable audit record of one purchase.

    Attributes:
        transaction_id: Unique identifier
        type: Transaction type (always BUY)
        symbol: Ticker symbol
        name: Display name
        shares: Shares bought
        price: Price per share
        total: shares * price
        date: Trade date
        timestamp: When the record was created (UTC)
    """
    transaction_id: str
    type: TransactionType
    symbol: str
    shares: float
    price: float
    total: float
    date: date
    timestamp: datetime
    name: str = ""

    @classmethod
    def create(
        cls,
        symbol: str,
        shares: float,
        price: float,
        trade_date: date,
        name: str = "",
    ) -> "Transaction":
        """Factory method to create a buy transaction with auto-generated ID."""
        return cls(
            transaction_id=f"txn_{uuid.uuid4().hex[:12]}",
            type=TransactionType.BUY,
            symbol=symbol,
            name=name,
            shares=shares,
            price=price,
            total=shares * price,
            date=trade_date,
            timestamp=_utc_now(),
        )

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "type": self.type.value,
            "symbol": self.symbol,
            "name": self.name,
            "shares": self.shares,
            "price": self.price,
            "total": self.total,
            "date": self.date.isoformat(),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        return cls(
            transaction_id=str(data["transaction_id"]),
            type=TransactionType(data.get("type", TransactionType.BUY.value)),
            symbol=str(data["symbol"]).upper().strip(),
            name=str(data.get("name") or ""),
            shares=float(data["shares"]),
            price=float(data["price"]),
            total=float(data["total"]),
            date=parse_date(data["date"], "date"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass(frozen=True)
class DividendEvent:
    """
    A projected future dividend payment for one position.

    Recomputed on every query, never persisted.

    Attributes:
        symbol: Ticker symbol
        name: Fund display name
        ex_date: Projected ex-dividend date
        pay_date: Projected payment date (business-day offset from ex_date)
        dividend_per_share: Per-share amount
        shares: Shares held at projection time
        estimated_amount: dividend_per_share * shares
        frequency: Cadence used for the projection
        days_until_ex: Whole days until ex_date (>= 0)
        priority: Urgency tier
    """
    symbol: str
    name: str
    ex_date: date
    pay_date: date
    dividend_per_share: float
    shares: float
    estimated_amount: float
    frequency: DividendFrequency
    days_until_ex: int
    priority: Urgency

    @property
    def event_id(self) -> str:
        return f"{self.symbol}_{self.ex_date.isoformat()}"

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "symbol": self.symbol,
            "name": self.name,
            "ex_date": self.ex_date.isoformat(),
            "pay_date": self.pay_date.isoformat(),
            "dividend_per_share": self.dividend_per_share,
            "shares": self.shares,
            "estimated_amount": self.estimated_amount,
            "frequency": self.frequency.value,
            "days_until_ex": self.days_until_ex,
            "priority": self.priority.value,
        }


@dataclass
class UpcomingDividendSummary:
    """
    Summary statistics over a list of projected dividend events.

    Attributes:
        total_upcoming: Number of events
        total_estimated_income: Sum of estimated amounts
        next_7_days: Events with days_until_ex <= 7
        next_7_days_income: Income from those events
        next_30_days: Events with days_until_ex <= 30
        next_30_days_income: Income from those events
    """
    total_upcoming: int = 0
    total_estimated_income: float = 0.0
    next_7_days: int = 0
    next_7_days_income: float = 0.0
    next_30_days: int = 0
    next_30_days_income: float = 0.0


@dataclass
class CalendarDay:
    """Dividend events landing on one day of a calendar month."""
    ex: list[DividendEvent] = field(default_factory=list)
    pay: list[DividendEvent] = field(default_factory=list)


@dataclass
class PositionValuation:
    """
    Mark-to-market valuation of a single position.

    Attributes:
        position: The underlying position
        current_price: Quote used (falls back to avg cost when no fund matched)
        current_value: current_price * shares
        gain_loss: current_value - cost_basis
        gain_loss_percent: gain_loss as a percentage of cost basis
        monthly_dividend: Projected monthly dividend income
        annual_dividend: Projected annual dividend income
        has_quote: Whether a matching fund supplied the price
    """
    position: Position
    current_price: float
    current_value: float
    gain_loss: float
    gain_loss_percent: float
    monthly_dividend: float
    annual_dividend: float
    has_quote: bool


@dataclass
class PortfolioValuation:
    """
    Complete portfolio valuation summary.

    Attributes:
        positions: Per-position valuations
        total_value: Sum of current values
        total_cost: Sum of cost bases
        total_gain_loss: total_value - total_cost
        total_gain_loss_percent: total_gain_loss as a percentage of total_cost
        total_monthly_dividend: Sum of projected monthly income
        total_annual_dividend: Sum of projected annual income
    """
    positions: list[PositionValuation]
    total_value: float
    total_cost: float
    total_gain_loss: float
    total_gain_loss_percent: float
    total_monthly_dividend: float
    total_annual_dividend: float


@dataclass
class SymbolError:
    """A per-symbol failure collected during a batch refresh."""
    symbol: str
    error: str


@dataclass
class FundRefreshResult:
    """
    Outcome of a batch fund refresh.

    Attributes:
        funds: Successfully refreshed fund snapshots
        errors: Per-symbol failures (the batch continues past them)
        timestamp: When the refresh completed (UTC)
        source: Name of the data provider
    """
    funds: list[Fund] = field(default_factory=list)
    errors: list[SymbolError] = field(default_factory=list)
    timestamp: datetime = field(default_factory=_utc_now)
    source: str = ""

    @property
    def succeeded(self) -> list[str]:
        return [f.symbol for f in self.funds]


@dataclass
class DecisionLogEntry:
    """
    Entry for the append-only decision log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    details: dict

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        details: dict,
    ) -> "DecisionLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=_utc_now(),
            action_type=action_type,
            details=details,
        )


@dataclass
class TrackerConfig:
    """
    Configuration for the tracker engine.

    Attributes:
        refresh_cooldown_hours: Minimum hours between external data refreshes
        horizon_days: Look-ahead window for upcoming dividends
        payment_offset_days: Business days from ex-date to payment date
        requests_per_window: API calls allowed per rate-limit window
        rate_window_seconds: Length of the rate-limit window
        cache_ttl_seconds: Lifetime of cached API responses
        state_path: JSON file holding holdings, transactions and refresh state
        log_path: JSONL decision log file
        catalog_path: Optional CSV fund catalog (bundled sample used if None)
    """
    refresh_cooldown_hours: float = 24.0
    horizon_days: int = 90
    payment_offset_days: int = 2
    requests_per_window: int = 5
    rate_window_seconds: float = 60.0
    cache_ttl_seconds: float = 900.0
    state_path: str = "data/portfolio_state.json"
    log_path: str = "output/decision_log.jsonl"
    catalog_path: Optional[str] = None
