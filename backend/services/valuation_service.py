"""Portfolio valuation service — values holdings in the base currency."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from config import settings
from integrations.exceptions import ProviderError
from models import AssetValue, Holding, PortfolioValuation, PriceSource
from services.fx_service import CurrencyConverter
from services.holdings_service import HoldingsService
from services.price_resolver import PriceResolver, ResolvedPrices
from utils.money import round2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitPrice:
    """A holding's unit price and the currency it is quoted in."""

    amount: Decimal
    currency: str


def resolve_unit_price(
    holding: Holding, prices: ResolvedPrices, base_currency: str
) -> Optional[UnitPrice]:
    """Pick the unit price for a holding from its source.

    Manual prices use the holding's currency, or the base currency when
    none was set. Market prices are in the holding's currency. Crypto
    prices were requested in the base currency and are used as-is.

    Returns:
        The unit price, or None when no positive numeric price exists.
    """
    if holding.price_source is PriceSource.MANUAL:
        amount = holding.manual_price
        currency = holding.currency if holding.currency_set else base_currency
    elif holding.price_source is PriceSource.COINGECKO:
        amount = prices.crypto.get(holding.crypto_key)
        currency = base_currency
    else:
        amount = prices.market.get(holding.symbol)
        currency = holding.currency

    if amount is None or amount <= 0:
        return None
    return UnitPrice(amount=amount, currency=currency.upper())


def value_holdings(
    holdings: list[Holding],
    prices: ResolvedPrices,
    converter: CurrencyConverter,
    isolate_fx_failures: bool = False,
) -> PortfolioValuation:
    """Combine holdings, prices and FX into a valuation.

    Each entry's value is rounded to cents and the total is the sum of
    the rounded entries, so the breakdown always adds up to the total.

    Args:
        holdings: Holdings to value (non-positive quantities are skipped).
        prices: Provider price maps from :class:`PriceResolver`.
        converter: Converter whose base currency the result is in.
        isolate_fx_failures: When True, a holding whose conversion fails
            is dropped and logged; when False the failure aborts the
            whole valuation.

    Raises:
        ProviderError: A conversion failed and isolation is off.
    """
    base = converter.base_currency
    by_asset: list[AssetValue] = []

    for holding in holdings:
        if not holding.name or holding.quantity <= 0:
            continue
        unit = resolve_unit_price(holding, prices, base)
        if unit is None:
            logger.debug(
                "No usable %s price for %s; excluded",
                holding.price_source.value, holding.symbol,
            )
            continue

        unit_in_base = unit.amount
        if unit.currency != base:
            try:
                unit_in_base = converter.to_base(unit.amount, unit.currency)
            except ProviderError:
                if not isolate_fx_failures:
                    raise
                logger.warning(
                    "FX %s->%s failed; excluding %s from valuation",
                    unit.currency, base, holding.symbol, exc_info=True,
                )
                continue

        by_asset.append(
            AssetValue(
                name=holding.name,
                symbol=holding.symbol,
                value_in_base=round2(unit_in_base * holding.quantity),
                quantity=holding.quantity,
            )
        )

    by_asset.sort(key=lambda a: a.value_in_base, reverse=True)
    total = round2(sum((a.value_in_base for a in by_asset), Decimal("0")))
    return PortfolioValuation(total_value=total, by_asset=by_asset, base_currency=base)


class ValuationService:
    """Computes a fresh portfolio valuation on every call."""

    def __init__(
        self,
        holdings_service: HoldingsService,
        price_resolver: Optional[PriceResolver] = None,
        converter: Optional[CurrencyConverter] = None,
        isolate_fx_failures: Optional[bool] = None,
    ):
        self._holdings_service = holdings_service
        self._price_resolver = price_resolver or PriceResolver()
        self._converter = converter or CurrencyConverter()
        if isolate_fx_failures is None:
            isolate_fx_failures = settings.VALUATION_ISOLATE_FX_FAILURES
        self._isolate_fx_failures = isolate_fx_failures

    def compute_valuation(self) -> PortfolioValuation:
        holdings = self._holdings_service.fetch_holdings()
        prices = self._price_resolver.resolve(holdings)
        valuation = value_holdings(
            holdings, prices, self._converter, self._isolate_fx_failures
        )
        logger.info(
            "Valued %d of %d holdings: %s %s",
            len(valuation.by_asset), len(holdings),
            valuation.total_value, valuation.base_currency,
        )
        return valuation
