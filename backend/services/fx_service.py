"""Currency conversion with a process-wide, time-bounded rate cache."""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from config import settings
from integrations.exceptions import RateUnavailable
from integrations.market_data_protocol import FxRateProvider
from integrations.parsing_utils import parse_positive_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CachedRate:
    rate: Decimal
    fetched_at: float


class RateCache:
    """Maps ``"{FROM}_{TO}"`` to the last fetched rate and when it was fetched.

    Entries are never evicted; a lookup simply ignores an entry older than
    the TTL, and the next fetch overwrites it. Concurrent writers race and
    the last write wins, which is harmless because every stored value is a
    valid rate.
    """

    def __init__(
        self,
        ttl_seconds: float = 1800,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CachedRate] = {}

    @staticmethod
    def key(from_currency: str, to_currency: str) -> str:
        return f"{from_currency}_{to_currency}"

    def get(self, key: str) -> Optional[Decimal]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl:
            return None
        return entry.rate

    def put(self, key: str, rate: Decimal) -> None:
        self._entries[key] = _CachedRate(rate=rate, fetched_at=self._clock())

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one entry, or every entry when ``key`` is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def size(self) -> int:
        return len(self._entries)


_default_cache: Optional[RateCache] = None


def get_default_rate_cache() -> RateCache:
    """Return the process-wide cache, creating it on first use."""
    global _default_cache
    if _default_cache is None:
        _default_cache = RateCache(ttl_seconds=settings.FX_CACHE_TTL_SECONDS)
    return _default_cache


def normalize_currency(code: Optional[str], default: str = "USD") -> str:
    code = (code or "").strip()
    return code.upper() if code else default.upper()


class CurrencyConverter:
    """Resolves and applies exchange rates, consulting the cache first."""

    def __init__(
        self,
        provider: Optional[FxRateProvider] = None,
        base_currency: Optional[str] = None,
        cache: Optional[RateCache] = None,
    ):
        """Initialize with optional collaborators for dependency injection.

        Args:
            provider: Exchange-rate provider. If None, an
                      ExchangeRateClient is created on first use.
            base_currency: Target of :meth:`to_base`. Defaults to
                           settings.BASE_CURRENCY.
            cache: Rate cache. Defaults to the process-wide cache.
        """
        self._provider = provider
        self._base_currency = normalize_currency(base_currency or settings.BASE_CURRENCY)
        self._cache = cache if cache is not None else get_default_rate_cache()

    @property
    def provider(self) -> FxRateProvider:
        """Get the FX provider, creating if not provided."""
        if self._provider is None:
            from integrations.exchange_rate_client import ExchangeRateClient

            self._provider = ExchangeRateClient(
                base_url=settings.FX_API_URL,
                access_key=settings.FX_ACCESS_KEY or None,
                timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            )
        return self._provider

    @property
    def base_currency(self) -> str:
        return self._base_currency

    @property
    def cache(self) -> RateCache:
        return self._cache

    def rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Units of ``to_currency`` per one ``from_currency``.

        Identical currencies short-circuit to 1 without touching the
        cache or the provider.

        Raises:
            RateUnavailable: The provider returned no positive numeric rate.
        """
        source = normalize_currency(from_currency)
        target = normalize_currency(to_currency)
        if source == target:
            return Decimal("1")

        key = RateCache.key(source, target)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        fetched = parse_positive_decimal(self.provider.get_rate(source, target))
        if fetched is None:
            raise RateUnavailable(
                f"FX rate not available {source}->{target}",
                provider_name=getattr(self.provider, "provider_name", ""),
            )
        self._cache.put(key, fetched)
        logger.debug("FX: cached %s = %s", key, fetched)
        return fetched

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        return amount * self.rate(from_currency, to_currency)

    def to_base(self, amount: Decimal, currency: Optional[str]) -> Decimal:
        """Convert into the base currency; a blank currency means base."""
        return self.convert(
            amount,
            normalize_currency(currency, default=self._base_currency),
            self._base_currency,
        )
