"""Valuation models - a computed portfolio value and its per-asset breakdown."""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class AssetValue:
    """One holding's value in the base currency."""

    name: str
    symbol: str
    value_in_base: Decimal
    quantity: Decimal


@dataclass
class PortfolioValuation:
    """Total value plus breakdown sorted descending by value."""

    total_value: Decimal
    by_asset: list[AssetValue] = field(default_factory=list)
    base_currency: str = "USD"
