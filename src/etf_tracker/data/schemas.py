"""
Data schemas for CSV file validation.

Defines expected columns and data types for all input and output files.
"""

from dataclasses import dataclass


@dataclass
class ColumnSchema:
    """Schema definition for a single column."""
    name: str
    dtype: str  # pandas dtype string
    required: bool = True
    nullable: bool = False


@dataclass
class FileSchema:
    """Schema definition for a file."""
    name: str
    columns: list[ColumnSchema]
    description: str

    @property
    def required_columns(self) -> list[str]:
        """Get list of required column names."""
        return [c.name for c in self.columns if c.required]

    @property
    def all_columns(self) -> list[str]:
        """Get list of all column names."""
        return [c.name for c in self.columns]

    def validate_columns(self, df_columns: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a dataframe has the required columns.

        Args:
            df_columns: List of column names from the dataframe

        Returns:
            Tuple of (is_valid, list of missing columns)
        """
        missing = [col for col in self.required_columns if col not in df_columns]
        return len(missing) == 0, missing


# Fund Catalog Schema
FUNDS_SCHEMA = FileSchema(
    name="funds",
    description="Fund catalog with last known dividend data",
    columns=[
        ColumnSchema(name="symbol", dtype="str", required=True),
        ColumnSchema(name="name", dtype="str", required=False, nullable=True),
        ColumnSchema(name="price", dtype="float64", required=True),
        ColumnSchema(name="dividend_per_share", dtype="float64", required=True),
        ColumnSchema(name="last_ex_dividend_date", dtype="str", required=True, nullable=True),
        ColumnSchema(name="frequency", dtype="str", required=False, nullable=True),
        ColumnSchema(name="sector", dtype="str", required=False, nullable=True),
    ],
)

# Positions Schema (input/output)
POSITIONS_SCHEMA = FileSchema(
    name="positions",
    description="Aggregated positions with weighted-average cost",
    columns=[
        ColumnSchema(name="symbol", dtype="str", required=True),
        ColumnSchema(name="name", dtype="str", required=False, nullable=True),
        ColumnSchema(name="shares", dtype="float64", required=True),
        ColumnSchema(name="avg_cost", dtype="float64", required=True),
        ColumnSchema(name="cost_basis", dtype="float64", required=True),
        ColumnSchema(name="purchase_date", dtype="str", required=True),
        ColumnSchema(name="sector", dtype="str", required=False, nullable=True),
    ],
)

# Transactions Schema
TRANSACTIONS_SCHEMA = FileSchema(
    name="transactions",
    description="Append-only purchase history, newest first",
    columns=[
        ColumnSchema(name="transaction_id", dtype="str", required=True),
        ColumnSchema(name="type", dtype="str", required=True),
        ColumnSchema(name="symbol", dtype="str", required=True),
        ColumnSchema(name="name", dtype="str", required=False, nullable=True),
        ColumnSchema(name="shares", dtype="float64", required=True),
        ColumnSchema(name="price", dtype="float64", required=True),
        ColumnSchema(name="total", dtype="float64", required=True),
        ColumnSchema(name="date", dtype="str", required=True),
        ColumnSchema(name="timestamp", dtype="str", required=True),
    ],
)

# Upcoming Dividends Output Schema
DIVIDEND_EVENTS_SCHEMA = FileSchema(
    name="dividend_events",
    description="Projected upcoming dividend events",
    columns=[
        ColumnSchema(name="event_id", dtype="str", required=True),
        ColumnSchema(name="symbol", dtype="str", required=True),
        ColumnSchema(name="name", dtype="str", required=True),
        ColumnSchema(name="ex_date", dtype="str", required=True),
        ColumnSchema(name="pay_date", dtype="str", required=True),
        ColumnSchema(name="dividend_per_share", dtype="float64", required=True),
        ColumnSchema(name="shares", dtype="float64", required=True),
        ColumnSchema(name="estimated_amount", dtype="float64", required=True),
        ColumnSchema(name="frequency", dtype="str", required=True),
        ColumnSchema(name="days_until_ex", dtype="int64", required=True),
        ColumnSchema(name="priority", dtype="str", required=True),
    ],
)
