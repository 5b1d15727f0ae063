"""Price resolver — routes holdings to their price providers in parallel."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from config import settings
from integrations.market_data_protocol import PriceProvider
from models import Holding, PriceSource

logger = logging.getLogger(__name__)


@dataclass
class ResolvedPrices:
    """Unit prices keyed the way each provider was queried.

    ``market`` is keyed by ticker symbol and priced in the listing
    currency. ``crypto`` is keyed by lower-cased coin id and already
    priced in the base currency.
    """

    market: dict[str, Decimal] = field(default_factory=dict)
    crypto: dict[str, Decimal] = field(default_factory=dict)


def partition_keys(holdings: list[Holding]) -> tuple[list[str], list[str]]:
    """Split holdings into (market symbols, crypto ids), de-duplicated in order.

    Manual holdings need no lookup and appear in neither list.
    """
    market: dict[str, None] = {}
    crypto: dict[str, None] = {}
    for h in holdings:
        if h.price_source is PriceSource.YAHOO and h.symbol:
            market[h.symbol] = None
        elif h.price_source is PriceSource.COINGECKO and h.crypto_key:
            crypto[h.crypto_key] = None
    return list(market), list(crypto)


class PriceResolver:
    """Fetches unit prices with one batched request per provider.

    The market-data and crypto fetches are independent, so both run
    concurrently and are joined before returning.
    """

    def __init__(
        self,
        provider: Optional[PriceProvider] = None,
        crypto_provider: Optional[PriceProvider] = None,
    ):
        """Initialize with optional providers for dependency injection.

        Args:
            provider: Market-data provider (equities). If None, a
                      YahooFinanceClient is created on first use.
            crypto_provider: Crypto provider quoting in the base currency.
                             If None, a CoinGeckoClient is created on
                             first use.
        """
        self._provider = provider
        self._crypto_provider = crypto_provider

    @property
    def provider(self) -> PriceProvider:
        """Get the market-data provider, creating if not provided."""
        if self._provider is None:
            from integrations.yahoo_finance_client import YahooFinanceClient

            self._provider = YahooFinanceClient(timeout=settings.PROVIDER_TIMEOUT_SECONDS)
        return self._provider

    @property
    def crypto_provider(self) -> PriceProvider:
        """Get the crypto provider, creating if not provided."""
        if self._crypto_provider is None:
            from integrations.coingecko_client import CoinGeckoClient

            self._crypto_provider = CoinGeckoClient(
                vs_currency=settings.BASE_CURRENCY,
                api_key=settings.COINGECKO_API_KEY or None,
                timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            )
        return self._crypto_provider

    def resolve(self, holdings: list[Holding]) -> ResolvedPrices:
        """Fetch prices for every market and crypto holding.

        Missing or non-numeric prices are simply absent from the maps.

        Raises:
            ProviderError: If either batched fetch fails; the other
                fetch's result is discarded.
        """
        market_keys, crypto_keys = partition_keys(holdings)
        if not market_keys and not crypto_keys:
            return ResolvedPrices()

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="prices") as pool:
            market_future = pool.submit(self._fetch, self.provider, market_keys)
            crypto_future = pool.submit(self._fetch, self.crypto_provider, crypto_keys)
            market = market_future.result()
            crypto = crypto_future.result()

        logger.info(
            "Resolved %d/%d market and %d/%d crypto prices",
            len(market), len(market_keys), len(crypto), len(crypto_keys),
        )
        return ResolvedPrices(market=market, crypto={k.lower(): v for k, v in crypto.items()})

    @staticmethod
    def _fetch(provider: PriceProvider, keys: list[str]) -> dict[str, Decimal]:
        if not keys:
            return {}
        return provider.get_latest_prices(keys)
