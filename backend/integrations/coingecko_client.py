"""CoinGecko market data provider for cryptocurrency prices."""

import logging
from decimal import Decimal
from typing import Optional

import httpx

from integrations.http_utils import send_request
from integrations.parsing_utils import parse_decimal

logger = logging.getLogger(__name__)


class CoinGeckoClient:
    """Price provider using the CoinGecko ``/simple/price`` endpoint.

    Prices are quoted in ``vs_currency`` directly, so callers that ask
    for their base currency receive base-denominated prices and must not
    convert them again.
    """

    def __init__(
        self,
        vs_currency: str = "usd",
        api_key: Optional[str] = None,
        timeout: float = 10.0,
    ):
        """Initialize with the quote currency and optional API key.

        Args:
            vs_currency: Currency code prices are quoted in (case-insensitive).
            api_key: CoinGecko demo API key. If provided, uses the
                     x-cg-demo-api-key header for higher rate limits.
                     If None, uses the keyless public API.
            timeout: Per-request timeout in seconds.
        """
        headers: dict[str, str] = {}
        if api_key:
            headers["x-cg-demo-api-key"] = api_key
        self._vs_currency = vs_currency.lower()
        self._client = httpx.Client(
            base_url="https://api.coingecko.com/api/v3",
            headers=headers,
            timeout=timeout,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "coingecko"

    @property
    def vs_currency(self) -> str:
        return self._vs_currency

    def get_latest_prices(self, keys: list[str]) -> dict[str, Decimal]:
        """Fetch current prices for CoinGecko coin ids in one request.

        Ids are lower-cased and de-duplicated; the returned mapping is
        keyed by the lower-cased id.

        Args:
            keys: CoinGecko coin ids (e.g., ["bitcoin", "ethereum"]).

        Returns:
            Dict mapping each id with a numeric price to that price.
        """
        unique = list(dict.fromkeys(k.lower() for k in keys if k))
        if not unique:
            return {}

        logger.info(
            "CoinGecko: fetching prices for %d ids (vs %s)",
            len(unique), self._vs_currency,
        )

        response = send_request(
            self._client,
            "GET",
            "/simple/price",
            self.provider_name,
            params={"ids": ",".join(unique), "vs_currencies": self._vs_currency},
        )
        data = response.json() or {}

        result: dict[str, Decimal] = {}
        for coin_id in unique:
            entry = data.get(coin_id)
            if not isinstance(entry, dict):
                continue
            price = parse_decimal(entry.get(self._vs_currency))
            if price is None:
                logger.debug("CoinGecko: no usable price for %s", coin_id)
                continue
            result[coin_id] = price
        return result
