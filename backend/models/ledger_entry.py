"""Asset log models - grouping modes, confirmation modes and ledger rows."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

TOTAL_GROUP = "Total"
UNKNOWN_GROUP = "Unknown"


class GroupBy(str, Enum):
    """Dimension transactions and ledger rows are partitioned by."""

    ASSET_TYPE = "asset_type"
    PAYMENT_METHOD = "payment_method"
    TOTAL = "total"


class FlagMode(str, Enum):
    """Which confirmation flag(s) admit a transaction into aggregation.

    ANY admits a row when either flag is set; CASH requires ``verified``;
    FORECAST requires ``amount_confirmed``.
    """

    ANY = "any"
    CASH = "cash"
    FORECAST = "forecast"


@dataclass(frozen=True)
class LedgerEntry:
    """One asset-log row, identified by its natural key (date, group)."""

    entry_date: date
    group_key: str
    delta: Decimal
    running_balance: Decimal

    @property
    def key(self) -> tuple[date, str]:
        return (self.entry_date, self.group_key)


@dataclass(frozen=True)
class LedgerRow:
    """An existing asset-log row as stored, with its store-assigned id."""

    id: str
    entry_date: date
    group_key: str
    delta: Decimal | None = None
    running_balance: Decimal | None = None

    @property
    def key(self) -> tuple[date, str]:
        return (self.entry_date, self.group_key)
