"""
Append-only decision logging for the ETF Dividend Tracker.

All user-visible actions (purchases, removals, valuations, refreshes) are
logged with timestamps and details to support auditability.
"""

import json
from datetime import date, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any

from etf_tracker.models import (
    ActionType,
    DecisionLogEntry,
    DividendEvent,
    FundRefreshResult,
    PortfolioValuation,
    Position,
    Transaction,
)


class DecisionLogger:
    """
    Append-only decision logger.

    Writes all decisions to a JSONL file for audit purposes.
    Each line is a complete JSON object representing one action.
    """

    def __init__(self, log_path: str | Path):
        """
        Initialize the decision logger.

        Args:
            log_path: Path to the log file (will be created if not exists)
        """
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: DecisionLogEntry) -> None:
        """
        Write a decision log entry.

        Args:
            entry: DecisionLogEntry to write
        """
        record = {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "details": entry.details,
        }

        with open(self.log_path, "a") as f:
            f.write(json.dumps(record, cls=RecordEncoder) + "\n")

    def _log_action(self, action_type: ActionType, details: dict) -> None:
        self.log(DecisionLogEntry.create(action_type=action_type, details=details))

    def log_purchase_recorded(
        self,
        position: Position,
        transaction: Transaction,
    ) -> None:
        """
        Log a purchase and the position it produced.

        Args:
            position: Position after the merge
            transaction: Recorded transaction
        """
        details = {
            "transaction_id": transaction.transaction_id,
            "symbol": transaction.symbol,
            "shares": transaction.shares,
            "price": transaction.price,
            "total": transaction.total,
            "date": transaction.date,
            "position_shares": position.shares,
            "position_avg_cost": position.avg_cost,
        }
        self._log_action(ActionType.PURCHASE_RECORDED, details)

    def log_position_removed(self, position: Position) -> None:
        details = {
            "symbol": position.symbol,
            "shares": position.shares,
            "cost_basis": position.cost_basis,
        }
        self._log_action(ActionType.POSITION_REMOVED, details)

    def log_positions_cleared(self, count: int, transactions_cleared: bool) -> None:
        details = {
            "positions_removed": count,
            "transactions_cleared": transactions_cleared,
        }
        self._log_action(ActionType.POSITIONS_CLEARED, details)

    def log_valuation_calculated(self, valuation: PortfolioValuation) -> None:
        """
        Log portfolio valuation.

        Args:
            valuation: Portfolio valuation result
        """
        details = {
            "total_value": valuation.total_value,
            "total_cost": valuation.total_cost,
            "total_gain_loss": valuation.total_gain_loss,
            "total_monthly_dividend": valuation.total_monthly_dividend,
            "num_positions": len(valuation.positions),
            "unquoted_symbols": [
                v.position.symbol for v in valuation.positions if not v.has_quote
            ],
        }
        self._log_action(ActionType.VALUATION_CALCULATED, details)

    def log_dividends_projected(
        self,
        events: list[DividendEvent],
        horizon_days: int,
    ) -> None:
        """
        Log an upcoming-dividend projection.

        Args:
            events: Projected events
            horizon_days: Look-ahead window used
        """
        details = {
            "horizon_days": horizon_days,
            "event_count": len(events),
            "total_estimated_income": sum(e.estimated_amount for e in events),
            "event_ids": [e.event_id for e in events[:10]],  # First 10
        }
        self._log_action(ActionType.DIVIDENDS_PROJECTED, details)

    def log_refresh_completed(self, result: FundRefreshResult) -> None:
        details = {
            "source": result.source,
            "succeeded": result.succeeded,
            "errors": [{"symbol": e.symbol, "error": e.error} for e in result.errors],
        }
        self._log_action(ActionType.REFRESH_COMPLETED, details)

    def log_refresh_failed(self, symbols: list[str], error: str) -> None:
        self._log_action(ActionType.REFRESH_FAILED, {"symbols": symbols, "error": error})

    def log_refresh_blocked(self, remaining: timedelta) -> None:
        self._log_action(ActionType.REFRESH_BLOCKED, {"remaining": remaining})

    def read_log(self) -> list[DecisionLogEntry]:
        """
        Read all entries from the log file.

        Returns:
            List of DecisionLogEntry objects
        """
        if not self.log_path.exists():
            return []

        entries = []
        with open(self.log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                entries.append(
                    DecisionLogEntry(
                        timestamp=datetime.fromisoformat(record["timestamp"]),
                        action_type=ActionType(record["action_type"]),
                        details=record.get("details", {}),
                    )
                )

        return entries

    def filter_by_symbol(self, symbol: str) -> list[DecisionLogEntry]:
        """
        Get log entries that concern a specific symbol.

        Args:
            symbol: Ticker symbol to filter by

        Returns:
            Filtered list of entries
        """
        symbol = symbol.upper()
        return [e for e in self.read_log() if e.details.get("symbol") == symbol]

    def filter_by_action_type(
        self,
        action_type: ActionType,
    ) -> list[DecisionLogEntry]:
        """
        Get log entries of a specific action type.

        Args:
            action_type: Action type to filter by

        Returns:
            Filtered list of entries
        """
        return [e for e in self.read_log() if e.action_type == action_type]


class RecordEncoder(json.JSONEncoder):
    """JSON encoder that handles dates, durations and enums."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        if isinstance(obj, timedelta):
            return obj.total_seconds()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)
