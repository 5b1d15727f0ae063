"""Integration tests for valuation and snapshot endpoints."""

from datetime import date
from decimal import Decimal

import pytest

import config
from api.portfolio import set_valuation_service_override
from services.fx_service import CurrencyConverter, RateCache
from services.holdings_service import HoldingsService
from services.price_resolver import PriceResolver
from services.valuation_service import ValuationService
from tests.fixtures import HOLDINGS_DB, SNAPSHOTS_DB, holding_row, snapshot_row
from tests.fixtures.mocks import MockFxProvider, MockPriceProvider


@pytest.fixture
def market():
    return MockPriceProvider({"AAPL": Decimal("150"), "7203.T": Decimal("2500")}, name="yahoo")


@pytest.fixture
def valuation(store, market):
    service = ValuationService(
        HoldingsService(store),
        PriceResolver(
            provider=market,
            crypto_provider=MockPriceProvider({"bitcoin": Decimal("60000")}, name="coingecko"),
        ),
        CurrencyConverter(
            provider=MockFxProvider({("JPY", "USD"): Decimal("0.0067")}),
            base_currency="USD",
            cache=RateCache(),
        ),
        isolate_fx_failures=False,
    )
    set_valuation_service_override(service)
    yield service
    set_valuation_service_override(None)


@pytest.fixture
def holdings(store):
    store.add(HOLDINGS_DB, holding_row("AAPL", 2))
    store.add(HOLDINGS_DB, holding_row("Bitcoin", 0.1, symbol="BTC", source="CoinGecko", price_id="bitcoin"))
    store.add(HOLDINGS_DB, holding_row("Toyota", 100, symbol="7203.T", currency="JPY"))
    store.add(HOLDINGS_DB, holding_row("Watch", 1, source="Manual", manual_price=1200))


class TestCompute:
    def test_valuation_without_snapshots(self, client, valuation, holdings):
        response = client.get("/api/compute")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["valuation"]["total_value"]) == Decimal("9175.00")
        assert data["valuation"]["base_currency"] == "USD"
        assert [a["symbol"] for a in data["valuation"]["by_asset"]] == ["BTC", "7203.T", "Watch", "AAPL"]
        assert data["last_snapshot"] is None
        assert data["change_absolute"] is None

    def test_change_against_latest_snapshot(self, client, store, valuation, holdings):
        store.add(SNAPSHOTS_DB, snapshot_row(date(2025, 1, 1), 9000))

        data = client.get("/api/compute").json()

        assert Decimal(data["change_absolute"]) == Decimal("175.00")
        assert Decimal(data["change_percent"]) == Decimal("1.94")
        assert data["last_snapshot"]["date"] == "2025-01-01"

    def test_compute_does_not_write(self, client, store, valuation, holdings):
        client.get("/api/compute")
        assert store.count("create") == 0

    def test_provider_failure_is_502(self, client, store, valuation, holdings, market):
        market._should_fail = True

        response = client.get("/api/compute")

        assert response.status_code == 502
        assert "yahoo" in response.json()["detail"]

    def test_missing_table_setting_is_500(self, client, monkeypatch, valuation):
        monkeypatch.setattr(config.settings, "NOTION_HOLDINGS_DB_ID", "")

        response = client.get("/api/compute")

        assert response.status_code == 500
        assert "NOTION_HOLDINGS_DB_ID" in response.json()["detail"]


class TestSnapshots:
    def test_list_oldest_first(self, client, store):
        store.add(SNAPSHOTS_DB, snapshot_row(date(2025, 1, 2), 200, change=100, pct=100))
        store.add(SNAPSHOTS_DB, snapshot_row(date(2025, 1, 1), 100))

        items = client.get("/api/snapshots").json()["items"]

        assert [i["date"] for i in items] == ["2025-01-01", "2025-01-02"]
        assert items[0]["change_absolute"] is None
        assert Decimal(items[1]["change_percent"]) == Decimal("100")

    def test_limit_applied(self, client, store):
        for day in range(1, 11):
            store.add(SNAPSHOTS_DB, snapshot_row(date(2025, 1, day), day))

        items = client.get("/api/snapshots?limit=3").json()["items"]

        assert [i["date"] for i in items] == ["2025-01-08", "2025-01-09", "2025-01-10"]

    def test_record_snapshot(self, client, store, valuation, holdings):
        store.add(SNAPSHOTS_DB, snapshot_row(date(2025, 1, 1), 10000))

        response = client.post("/api/snapshots/record")

        assert response.status_code == 200
        data = response.json()
        assert data["snapshot"]["date"] == date.today().isoformat()
        assert Decimal(data["snapshot"]["change_absolute"]) == Decimal("-825.00")
        assert data["previous"]["date"] == "2025-01-01"
        assert data["replaced"] is False
        assert len(store.rows(SNAPSHOTS_DB)) == 2

    def test_record_failure_writes_nothing(self, client, store, valuation, holdings, market):
        market._should_fail = True

        response = client.post("/api/snapshots/record")

        assert response.status_code == 502
        assert store.rows(SNAPSHOTS_DB) == []


class TestCronAuth:
    @pytest.fixture(autouse=True)
    def cron_secret(self, configured, monkeypatch):
        monkeypatch.setattr(config.settings, "CRON_SECRET", "cron-token")

    def test_missing_secret_rejected(self, client, valuation, holdings):
        response = client.post("/api/snapshots/record")
        assert response.status_code == 401
        assert response.json() == {"detail": "unauthorized"}

    def test_bearer_accepted(self, client, valuation, holdings):
        response = client.post(
            "/api/snapshots/record", headers={"Authorization": "Bearer cron-token"}
        )
        assert response.status_code == 200

    def test_scheduler_header_accepted(self, client, valuation, holdings):
        response = client.post("/api/snapshots/record", headers={"x-vercel-cron": "1"})
        assert response.status_code == 200

    def test_wrong_secret_rejected(self, client, valuation, holdings):
        response = client.post(
            "/api/snapshots/record", headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401
