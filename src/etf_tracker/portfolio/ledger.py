"""
Holdings ledger for the ETF Dividend Tracker.

Owns the authoritative set of positions (one per symbol) and the append-only
purchase history. Repeat purchases of a symbol are merged into the existing
position at weighted-average cost.
"""

import logging
import threading
from dataclasses import replace
from datetime import date
from typing import Any, Optional

from etf_tracker.models import (
    Position,
    Transaction,
    ValidationError,
    parse_date,
    parse_positive_number,
)
from etf_tracker.data.loaders import DataLoadError
from etf_tracker.data.store import HOLDINGS_KEY, TRANSACTIONS_KEY, StateStore

logger = logging.getLogger(__name__)


class HoldingsLedger:
    """
    Positions keyed by symbol plus a newest-first transaction history.

    When a store is attached, every mutating call writes the full state back
    to it before the change becomes visible; a failed write leaves the ledger
    as it was. Mutations are serialised with a lock so concurrent purchases of
    the same symbol still satisfy cost_basis == shares * avg_cost.
    """

    def __init__(
        self,
        store: Optional[StateStore] = None,
        positions: Optional[list[Position]] = None,
        transactions: Optional[list[Transaction]] = None,
    ):
        """
        Initialize the ledger.

        Args:
            store: Optional persistence backend
            positions: Initial positions (insertion order is kept)
            transactions: Initial transactions, newest first

        Raises:
            ValidationError: If two positions share a symbol
        """
        self._store = store
        self._lock = threading.Lock()
        self._positions: dict[str, Position] = {}
        for position in positions or []:
            symbol = position.symbol.upper()
            if symbol in self._positions:
                raise ValidationError(f"Duplicate position for symbol {symbol}")
            self._positions[symbol] = replace(position)
        self._transactions: list[Transaction] = list(transactions or [])

    @classmethod
    def load(cls, store: StateStore) -> "HoldingsLedger":
        """
        Restore a ledger from a store.

        Raises:
            DataLoadError: If the persisted records are malformed
        """
        raw_positions = store.get(HOLDINGS_KEY, []) or []
        raw_transactions = store.get(TRANSACTIONS_KEY, []) or []

        try:
            positions = [Position.from_dict(p) for p in raw_positions]
            transactions = [Transaction.from_dict(t) for t in raw_transactions]
            ledger = cls(store=store, positions=positions, transactions=transactions)
        except (KeyError, TypeError, ValueError) as e:
            raise DataLoadError(f"Malformed ledger state: {e}")

        logger.debug(
            "Loaded ledger with %d positions and %d transactions",
            len(positions), len(transactions),
        )
        return ledger

    def save(self) -> None:
        """Write positions and transactions to the attached store (if any)."""
        if self._store is None:
            return
        self._store.update(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return _serialize(self._positions, self._transactions)

    def _commit(
        self,
        positions: dict[str, Position],
        transactions: list[Transaction],
    ) -> None:
        # Persist first; the in-memory state only changes once the write succeeded
        if self._store is not None:
            self._store.update(_serialize(positions, transactions))
        self._positions = positions
        self._transactions = transactions

    @property
    def positions(self) -> list[Position]:
        """Copies of the current positions, in insertion order."""
        return [replace(p) for p in self._positions.values()]

    @property
    def transactions(self) -> list[Transaction]:
        """All transactions, newest first."""
        return list(self._transactions)

    def get_position(self, symbol: str) -> Optional[Position]:
        position = self._positions.get(symbol.upper().strip())
        return replace(position) if position else None

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.upper().strip() in self._positions

    def add_purchase(
        self,
        symbol: str,
        shares: Any,
        price_per_share: Any,
        name: str = "",
        sector: str = "",
        purchase_date: Optional[date | str] = None,
    ) -> tuple[Position, Transaction]:
        """
        Record a purchase and merge it into the holdings.

        A new symbol creates a position from the lot verbatim. An existing
        symbol adds the shares and cost, recomputes the weighted-average cost
        and takes the incoming purchase date.

        Args:
            symbol: Ticker symbol
            shares: Shares bought (> 0)
            price_per_share: Price paid per share (> 0)
            name: Display name (kept from the first purchase on merge)
            sector: Sector tag (kept from the first purchase on merge)
            purchase_date: Trade date (defaults to today)

        Returns:
            Tuple of (resulting position, recorded transaction)

        Raises:
            ValidationError: If any input is invalid; the ledger is unchanged
            OSError: If the store write fails; the ledger is unchanged
        """
        if not isinstance(symbol, str) or not symbol.strip():
            raise ValidationError(f"symbol must be a non-empty string, got {symbol!r}")
        symbol = symbol.upper().strip()
        shares = parse_positive_number(shares, "shares")
        price = parse_positive_number(price_per_share, "price_per_share")
        trade_date = (
            parse_date(purchase_date, "purchase_date")
            if purchase_date is not None else date.today()
        )

        with self._lock:
            transaction = Transaction.create(symbol, shares, price, trade_date, name=name)

            lot_cost = shares * price
            existing = self._positions.get(symbol)

            if existing is None:
                position = Position(
                    symbol=symbol,
                    name=name,
                    shares=shares,
                    avg_cost=price,
                    cost_basis=lot_cost,
                    purchase_date=trade_date,
                    sector=sector,
                )
            else:
                new_shares = existing.shares + shares
                new_cost = existing.cost_basis + lot_cost
                position = replace(
                    existing,
                    shares=new_shares,
                    cost_basis=new_cost,
                    avg_cost=new_cost / new_shares,
                    purchase_date=trade_date,
                    name=existing.name or name,
                    sector=existing.sector or sector,
                )

            positions = dict(self._positions)
            positions[symbol] = position
            self._commit(positions, [transaction] + self._transactions)
            result = replace(position)

        logger.info(
            "Recorded purchase: %s %.4f @ %.2f (position now %.4f shares)",
            symbol, shares, price, result.shares,
        )
        return result, transaction

    def remove_position(self, symbol: str) -> Optional[Position]:
        """
        Delete a position. Transactions are kept.

        Returns:
            The removed position, or None if the symbol was not held
        """
        with self._lock:
            positions = dict(self._positions)
            removed = positions.pop(symbol.upper().strip(), None)
            if removed is not None:
                self._commit(positions, self._transactions)

        if removed is not None:
            logger.info("Removed position %s", removed.symbol)
        return removed

    def update_position(
        self,
        symbol: str,
        name: Optional[str] = None,
        sector: Optional[str] = None,
    ) -> Position:
        """
        Update display metadata of a position. Share and cost fields are
        changed only by purchases.

        Raises:
            KeyError: If the symbol is not held
        """
        with self._lock:
            key = symbol.upper().strip()
            position = self._positions[key]
            if name is not None:
                position = replace(position, name=name)
            if sector is not None:
                position = replace(position, sector=sector)

            positions = dict(self._positions)
            positions[key] = position
            self._commit(positions, self._transactions)
            return replace(position)

    def clear_positions(self) -> int:
        """
        Remove every position; the transaction history is kept.

        Returns:
            Number of positions removed
        """
        with self._lock:
            count = len(self._positions)
            self._commit({}, self._transactions)

        logger.info("Cleared %d positions", count)
        return count

    def clear_all(self) -> int:
        """
        Remove every position and every transaction.

        Returns:
            Number of positions removed
        """
        with self._lock:
            count = len(self._positions)
            self._commit({}, [])

        logger.info("Cleared %d positions and all transactions", count)
        return count


def _serialize(
    positions: dict[str, Position],
    transactions: list[Transaction],
) -> dict[str, Any]:
    return {
        HOLDINGS_KEY: [p.to_dict() for p in positions.values()],
        TRANSACTIONS_KEY: [t.to_dict() for t in transactions],
    }
