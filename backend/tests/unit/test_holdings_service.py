"""Tests for reading holdings rows."""

from decimal import Decimal

from models import PriceSource
from services.holdings_service import HoldingsService
from tests.fixtures import HOLDINGS_DB, holding_row


class TestFetchHoldings:
    def test_defaults_applied(self, store, test_settings):
        store.add(HOLDINGS_DB, holding_row("AAPL", 2))
        [holding] = HoldingsService(store, test_settings).fetch_holdings()

        assert holding.symbol == "AAPL"
        assert holding.price_source is PriceSource.YAHOO
        assert holding.currency == "USD"
        assert holding.currency_set is False

    def test_fields_read(self, store, test_settings):
        store.add(HOLDINGS_DB, holding_row(
            "Bitcoin", 0.5, symbol="BTC", source="CoinGecko", currency="usd",
            category="Crypto", price_id="bitcoin",
        ))
        [holding] = HoldingsService(store, test_settings).fetch_holdings()

        assert holding.quantity == Decimal("0.5")
        assert holding.price_source is PriceSource.COINGECKO
        assert holding.currency == "USD"
        assert holding.currency_set is True
        assert holding.crypto_key == "bitcoin"

    def test_invalid_rows_skipped(self, store, test_settings):
        store.add(HOLDINGS_DB, holding_row(None, 1, symbol="NONAME"))
        store.add(HOLDINGS_DB, holding_row("Zero", 0))
        store.add(HOLDINGS_DB, holding_row("Negative", -3))
        store.add(HOLDINGS_DB, {"Name": {"title": [{"plain_text": "NoQty"}]}})
        store.add(HOLDINGS_DB, holding_row("VOO", 1))

        holdings = HoldingsService(store, test_settings).fetch_holdings()

        assert [h.name for h in holdings] == ["VOO"]

    def test_sorted_by_category_then_name(self, store, test_settings):
        store.add(HOLDINGS_DB, holding_row("VOO", 1, category="Stocks"))
        store.add(HOLDINGS_DB, holding_row("BTC", 1, category="Crypto"))
        store.add(HOLDINGS_DB, holding_row("AAPL", 1, category="Stocks"))

        holdings = HoldingsService(store, test_settings).fetch_holdings()

        assert [h.name for h in holdings] == ["BTC", "AAPL", "VOO"]
