"""Domain models shared by services and API layers."""

from .holding import Holding, PriceSource
from .ledger_entry import (
    TOTAL_GROUP,
    UNKNOWN_GROUP,
    FlagMode,
    GroupBy,
    LedgerEntry,
    LedgerRow,
)
from .snapshot import Snapshot
from .transaction import Transaction
from .valuation import AssetValue, PortfolioValuation

__all__ = ["AssetValue", "FlagMode", "GroupBy", "Holding", "LedgerEntry", "LedgerRow", "PortfolioValuation", "PriceSource", "Snapshot", "TOTAL_GROUP", "Transaction", "UNKNOWN_GROUP"]
