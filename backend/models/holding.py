"""Holding model - one row of the holdings table, as read for valuation."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class PriceSource(str, Enum):
    """Where a holding's unit price comes from."""

    YAHOO = "Yahoo"
    COINGECKO = "CoinGecko"
    MANUAL = "Manual"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PriceSource":
        """Map a stored label to a source; blank or unknown labels mean Yahoo."""
        for member in cls:
            if value and value.strip().lower() == member.value.lower():
                return member
        return cls.YAHOO


@dataclass(frozen=True)
class Holding:
    """A position in the portfolio.

    ``quantity`` is always positive; rows without a name or with a
    non-positive quantity never become Holding instances.
    """

    name: str
    symbol: str
    quantity: Decimal
    price_source: PriceSource = PriceSource.YAHOO
    category: str = ""
    manual_price: Optional[Decimal] = None
    currency: str = "USD"
    currency_set: bool = True
    price_id: Optional[str] = None

    @property
    def crypto_key(self) -> str:
        """Lookup key for the crypto provider: price id or symbol, lower-cased."""
        return (self.price_id or self.symbol).lower()
