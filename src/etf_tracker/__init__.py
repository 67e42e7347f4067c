"""
ETF Dividend Tracker (etf-tracker)

The calculation core of a personal ETF dividend dashboard. This system keeps
a lot-by-lot purchase ledger merged into average-cost positions, values those
positions against current fund quotes, projects upcoming dividend payments
from each fund's historical cadence, and gates market-data refreshes behind a
daily cooldown.

Projections are heuristic estimates, not financial advice.
"""

__version__ = "0.1.0"
__author__ = "ETF Tracker Team"
