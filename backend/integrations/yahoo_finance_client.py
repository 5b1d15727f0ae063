"""Yahoo Finance market data provider implementation."""

import logging
from decimal import Decimal

import yfinance as yf

from integrations.exceptions import UpstreamRequestFailure
from integrations.parsing_utils import parse_positive_decimal

logger = logging.getLogger(__name__)

# Enough trading days to cover a long weekend plus a holiday.
_LOOKBACK_PERIOD = "5d"


class YahooFinanceClient:
    """Price provider using Yahoo Finance (yfinance library).

    Handles equities, ETFs, and other exchange-listed securities. Prices
    are returned in the listing's native currency (e.g., JPY for 9984.T);
    the holding's configured currency tells the valuation how to convert.
    """

    def __init__(self, timeout: float = 10.0):
        self._timeout = timeout

    @property
    def provider_name(self) -> str:
        return "yahoo"

    def get_latest_prices(self, keys: list[str]) -> dict[str, Decimal]:
        """Fetch the most recent price for each ticker in one download.

        Args:
            keys: Ticker symbols (e.g., ["AAPL", "VOO", "9984.T"]).

        Returns:
            Dict mapping each symbol with a usable price to its latest close.

        Raises:
            UpstreamRequestFailure: The batched download itself failed.
        """
        symbols = list(dict.fromkeys(k for k in keys if k))
        if not symbols:
            return {}

        logger.info("Yahoo Finance: fetching prices for %d symbols", len(symbols))

        try:
            df = yf.download(
                tickers=symbols,
                period=_LOOKBACK_PERIOD,
                auto_adjust=False,
                progress=False,
                threads=False,
                timeout=self._timeout,
            )
        except Exception as exc:
            raise UpstreamRequestFailure(
                f"yfinance download failed: {exc}", provider_name=self.provider_name
            ) from exc

        result: dict[str, Decimal] = {}
        if df is None or df.empty:
            return result

        # Newer yfinance releases always return (metric, symbol) columns.
        multi_level = df.columns.nlevels > 1

        for symbol in symbols:
            if multi_level:
                if ("Close", symbol) not in df.columns:
                    continue
                closes = df[("Close", symbol)].dropna()
            else:
                if "Close" not in df.columns or len(symbols) > 1:
                    continue
                closes = df["Close"].dropna()

            if closes.empty:
                logger.debug("Yahoo Finance: no closes for %s", symbol)
                continue

            price = parse_positive_decimal(round(float(closes.iloc[-1]), 6))
            if price is not None:
                result[symbol] = price

        return result
