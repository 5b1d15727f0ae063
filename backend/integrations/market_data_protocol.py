"""Market data provider protocol definitions.

Defines the interfaces for live price feeds and exchange-rate feeds.
This is separate from the DocumentStore protocol, which handles the
holdings, snapshots, transactions and ledger records.
"""

from decimal import Decimal
from typing import Protocol


class PriceProvider(Protocol):
    """Protocol for batched live price lookups.

    Implementations issue one request per batch, not one per key.
    """

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'yahoo')."""
        ...

    def get_latest_prices(self, keys: list[str]) -> dict[str, Decimal]:
        """Fetch the latest unit price for each key.

        Args:
            keys: Ticker symbols or provider asset ids.

        Returns:
            Dict mapping each key that has a usable price to that price.
            Unknown keys and non-numeric prices are omitted, not errors.
        """
        ...


class FxRateProvider(Protocol):
    """Protocol for exchange-rate lookups by currency pair."""

    @property
    def provider_name(self) -> str:
        ...

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Return how many units of ``to_currency`` one ``from_currency`` buys.

        Raises:
            RateUnavailable: The provider returned a non-positive or
                non-numeric rate.
        """
        ...
