"""
Data loading and saving functions for CSV files.

Handles ingestion of fund catalogs and positions, as well as output of
positions, transactions and projected dividend events.
"""

from pathlib import Path

import pandas as pd

from etf_tracker.models import (
    DividendEvent,
    Fund,
    Position,
    Transaction,
)
from etf_tracker.data.schemas import (
    DIVIDEND_EVENTS_SCHEMA,
    FUNDS_SCHEMA,
    POSITIONS_SCHEMA,
    TRANSACTIONS_SCHEMA,
    FileSchema,
)


class DataLoadError(Exception):
    """Raised when data cannot be loaded or is invalid."""
    pass


def load_fund_catalog(file_path: str | Path) -> list[Fund]:
    """
    Load a fund catalog from CSV file.

    Args:
        file_path: Path to CSV with symbol, price, dividend_per_share,
            last_ex_dividend_date and optional name/frequency/sector columns

    Returns:
        List of Fund objects

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, FUNDS_SCHEMA)
    df = df.astype(object).where(pd.notna(df), None)

    funds = []
    for row_num, row in enumerate(df.to_dict(orient="records"), start=1):
        try:
            funds.append(Fund.from_dict(row))
        except (KeyError, TypeError, ValueError) as e:
            raise DataLoadError(f"Invalid fund row {row_num} in {file_path}: {e}")

    return funds


def load_positions(file_path: str | Path) -> list[Position]:
    """
    Load positions from CSV file.

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, POSITIONS_SCHEMA)
    df = df.astype(object).where(pd.notna(df), None)

    positions = []
    for row_num, row in enumerate(df.to_dict(orient="records"), start=1):
        try:
            positions.append(Position.from_dict(row))
        except (KeyError, TypeError, ValueError) as e:
            raise DataLoadError(f"Invalid position row {row_num} in {file_path}: {e}")

    return positions


def save_funds(funds: list[Fund], output_path: str | Path) -> Path:
    """
    Save a fund catalog to CSV file.

    Returns:
        Path to the saved file
    """
    records = [fund.to_dict() for fund in funds]
    return _save_csv(records, FUNDS_SCHEMA, output_path)


def save_positions(positions: list[Position], output_path: str | Path) -> Path:
    """
    Save positions to CSV file.

    Args:
        positions: List of Position objects to save
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    records = [position.to_dict() for position in positions]
    return _save_csv(records, POSITIONS_SCHEMA, output_path)


def save_transactions(transactions: list[Transaction], output_path: str | Path) -> Path:
    """
    Save transaction history to CSV file (newest first, as held).

    Returns:
        Path to the saved file
    """
    records = [txn.to_dict() for txn in transactions]
    return _save_csv(records, TRANSACTIONS_SCHEMA, output_path)


def save_dividend_events(events: list[DividendEvent], output_path: str | Path) -> Path:
    """
    Save projected dividend events to CSV file.

    Returns:
        Path to the saved file
    """
    records = [event.to_dict() for event in events]
    return _save_csv(records, DIVIDEND_EVENTS_SCHEMA, output_path)


def _save_csv(records: list[dict], schema: FileSchema, output_path: str | Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(records, columns=schema.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def _load_csv(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV file and validate against schema.

    Args:
        file_path: Path to CSV file
        schema: Expected file schema

    Returns:
        Loaded DataFrame

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        df = pd.read_csv(file_path, dtype={"symbol": str})
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    # Validate columns
    is_valid, missing = schema.validate_columns(df.columns.tolist())
    if not is_valid:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df
