"""Exchange-rate provider backed by an exchangerate.host-compatible API."""

import logging
from decimal import Decimal
from typing import Optional

import httpx

from integrations.exceptions import RateUnavailable
from integrations.http_utils import send_request
from integrations.parsing_utils import parse_positive_decimal

logger = logging.getLogger(__name__)

DEFAULT_FX_BASE_URL = "https://api.exchangerate.host"


class ExchangeRateClient:
    """Fetches spot rates from ``GET /latest?base=FROM&symbols=TO``.

    The response body is expected to carry ``{"rates": {"TO": <rate>}}``
    where one unit of FROM buys ``rate`` units of TO.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_FX_BASE_URL,
        access_key: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self._access_key = access_key
        self._client = httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "exchangerate"

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        params = {"base": from_currency, "symbols": to_currency}
        if self._access_key:
            params["access_key"] = self._access_key

        logger.info("FX: fetching rate %s -> %s", from_currency, to_currency)
        response = send_request(
            self._client, "GET", "/latest", self.provider_name, params=params
        )
        data = response.json() or {}
        rates = data.get("rates")
        raw = rates.get(to_currency) if isinstance(rates, dict) else None
        rate = parse_positive_decimal(raw) if not isinstance(raw, str) else None
        if rate is None:
            raise RateUnavailable(
                f"FX rate not available {from_currency}->{to_currency}",
                provider_name=self.provider_name,
            )
        return rate
