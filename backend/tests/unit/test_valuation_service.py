"""Tests for portfolio valuation."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from integrations.exceptions import RateUnavailable
from models import Holding, PriceSource
from services.fx_service import CurrencyConverter, RateCache
from services.price_resolver import PriceResolver, ResolvedPrices
from services.valuation_service import (
    ValuationService,
    resolve_unit_price,
    value_holdings,
)
from tests.fixtures.mocks import MockFxProvider, MockPriceProvider


def _holding(name, qty, source=PriceSource.YAHOO, **kwargs):
    kwargs.setdefault("symbol", name)
    return Holding(name=name, quantity=Decimal(str(qty)), price_source=source, **kwargs)


@pytest.fixture
def fx():
    return MockFxProvider({("JPY", "USD"): Decimal("0.01"), ("EUR", "USD"): Decimal("1.1")})


@pytest.fixture
def converter(fx):
    return CurrencyConverter(provider=fx, base_currency="USD", cache=RateCache())


class TestResolveUnitPrice:
    def test_manual_without_currency_uses_base(self):
        h = _holding("Art", 1, PriceSource.MANUAL, manual_price=Decimal("500"),
                     currency="USD", currency_set=False)
        unit = resolve_unit_price(h, ResolvedPrices(), "EUR")
        assert unit.amount == Decimal("500")
        assert unit.currency == "EUR"

    def test_manual_with_currency(self):
        h = _holding("Flat", 1, PriceSource.MANUAL, manual_price=Decimal("100"), currency="JPY")
        assert resolve_unit_price(h, ResolvedPrices(), "USD").currency == "JPY"

    def test_crypto_is_base_currency(self):
        h = _holding("BTC", 1, PriceSource.COINGECKO, price_id="bitcoin", currency="JPY")
        unit = resolve_unit_price(h, ResolvedPrices(crypto={"bitcoin": Decimal("60000")}), "USD")
        assert unit.currency == "USD"

    def test_missing_or_non_positive_price(self):
        h = _holding("AAPL", 1)
        assert resolve_unit_price(h, ResolvedPrices(), "USD") is None
        assert resolve_unit_price(h, ResolvedPrices(market={"AAPL": Decimal("0")}), "USD") is None


class TestValueHoldings:
    def test_single_stock_example(self, converter):
        prices = ResolvedPrices(market={"AAPL": Decimal("150")})
        valuation = value_holdings([_holding("AAPL", 2)], prices, converter)

        assert valuation.total_value == Decimal("300.00")
        assert len(valuation.by_asset) == 1
        asset = valuation.by_asset[0]
        assert (asset.symbol, asset.value_in_base, asset.quantity) == ("AAPL", Decimal("300.00"), Decimal("2"))

    def test_non_positive_quantity_excluded(self, converter):
        prices = ResolvedPrices(market={"AAPL": Decimal("150"), "VOO": Decimal("400")})
        valuation = value_holdings(
            [_holding("AAPL", 0), _holding("VOO", -1), _holding("MSFT", 1)], prices, converter
        )
        assert valuation.by_asset == []
        assert valuation.total_value == Decimal("0.00")

    def test_crypto_makes_no_fx_calls(self, converter, fx):
        h = _holding("BTC", "0.5", PriceSource.COINGECKO, price_id="bitcoin", currency="JPY")
        prices = ResolvedPrices(crypto={"bitcoin": Decimal("60000")})

        valuation = value_holdings([h], prices, converter)

        assert valuation.total_value == Decimal("30000.00")
        assert fx.requests == []

    def test_foreign_listing_converted(self, converter, fx):
        h = _holding("9984.T", 100, currency="JPY")
        prices = ResolvedPrices(market={"9984.T": Decimal("8000")})

        valuation = value_holdings([h], prices, converter)

        assert valuation.total_value == Decimal("8000.00")
        assert fx.requests == [("JPY", "USD")]

    def test_total_is_sum_of_rounded_entries(self, converter):
        prices = ResolvedPrices(market={"A": Decimal("0.333"), "B": Decimal("0.333"), "C": Decimal("0.333")})
        valuation = value_holdings(
            [_holding("A", 1), _holding("B", 1), _holding("C", 1)], prices, converter
        )
        assert [a.value_in_base for a in valuation.by_asset] == [Decimal("0.33")] * 3
        assert valuation.total_value == Decimal("0.99")

    def test_sorted_descending(self, converter):
        prices = ResolvedPrices(market={"A": Decimal("1"), "B": Decimal("10")})
        valuation = value_holdings([_holding("A", 1), _holding("B", 1)], prices, converter)
        assert [a.symbol for a in valuation.by_asset] == ["B", "A"]

    def test_fx_failure_aborts_by_default(self, converter):
        prices = ResolvedPrices(market={"AAPL": Decimal("150"), "BP.L": Decimal("5")})
        holdings = [_holding("AAPL", 1), _holding("BP.L", 10, currency="GBP")]
        with pytest.raises(RateUnavailable):
            value_holdings(holdings, prices, converter)

    def test_fx_failure_isolated_when_enabled(self, converter):
        prices = ResolvedPrices(market={"AAPL": Decimal("150"), "BP.L": Decimal("5")})
        holdings = [_holding("AAPL", 1), _holding("BP.L", 10, currency="GBP")]

        valuation = value_holdings(holdings, prices, converter, isolate_fx_failures=True)

        assert [a.symbol for a in valuation.by_asset] == ["AAPL"]
        assert valuation.total_value == Decimal("150.00")


class TestValuationService:
    def test_compute_valuation(self, converter):
        holdings_service = MagicMock()
        holdings_service.fetch_holdings.return_value = [
            _holding("AAPL", 2),
            _holding("House", 1, PriceSource.MANUAL, manual_price=Decimal("1000")),
        ]
        resolver = PriceResolver(
            provider=MockPriceProvider({"AAPL": Decimal("150")}),
            crypto_provider=MockPriceProvider(),
        )
        service = ValuationService(holdings_service, resolver, converter, isolate_fx_failures=False)

        valuation = service.compute_valuation()

        assert valuation.total_value == Decimal("1300.00")
        assert [a.symbol for a in valuation.by_asset] == ["House", "AAPL"]
