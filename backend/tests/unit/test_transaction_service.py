"""Tests for transaction reading, aggregation and creation."""

import hashlib
from datetime import date
from decimal import Decimal

import pytest

from models import TOTAL_GROUP, UNKNOWN_GROUP, FlagMode, GroupBy, Transaction
from services.transaction_service import (
    DuplicateTransactionError,
    TransactionService,
    aggregate_transactions,
    derive_external_id,
    is_due_soon,
    is_expense,
    is_large_expense,
    passes_flag_filter,
)
from tests.fixtures import TRANSACTIONS_DB, transaction_row


def _tx(amount="10", confirmed=False, verified=False, day=1, **kwargs):
    return Transaction(
        id=f"tx-{day}",
        date=date(2025, 1, day),
        amount=Decimal(amount),
        amount_confirmed=confirmed,
        verified=verified,
        **kwargs,
    )


class TestFlagFilter:
    @pytest.mark.parametrize(
        "mode,confirmed,verified,expected",
        [
            (FlagMode.ANY, False, False, False),
            (FlagMode.ANY, True, False, True),
            (FlagMode.ANY, False, True, True),
            (FlagMode.CASH, True, False, False),
            (FlagMode.CASH, False, True, True),
            (FlagMode.FORECAST, True, False, True),
            (FlagMode.FORECAST, False, True, False),
        ],
    )
    def test_modes(self, mode, confirmed, verified, expected):
        assert passes_flag_filter(_tx(confirmed=confirmed, verified=verified), mode) is expected


class TestAggregateTransactions:
    def test_sums_by_date_and_group(self):
        txs = [
            _tx("-50", verified=True, asset_type="Cash"),
            _tx("-25", verified=True, asset_type="Cash"),
            _tx("100", verified=True, asset_type="Brokerage"),
            _tx("200", verified=True, day=2, asset_type="Cash"),
        ]
        deltas = aggregate_transactions(txs, GroupBy.ASSET_TYPE)
        assert deltas == {
            (date(2025, 1, 1), "Cash"): Decimal("-75"),
            (date(2025, 1, 1), "Brokerage"): Decimal("100"),
            (date(2025, 1, 2), "Cash"): Decimal("200"),
        }

    def test_missing_group_is_unknown(self):
        deltas = aggregate_transactions([_tx(verified=True)], GroupBy.PAYMENT_METHOD)
        assert deltas == {(date(2025, 1, 1), UNKNOWN_GROUP): Decimal("10")}

    def test_total_grouping(self):
        txs = [
            _tx("5", verified=True, asset_type="A"),
            _tx("7", confirmed=True, asset_type="B"),
        ]
        deltas = aggregate_transactions(txs, GroupBy.TOTAL)
        assert deltas == {(date(2025, 1, 1), TOTAL_GROUP): Decimal("12")}

    def test_unflagged_ignored(self):
        assert aggregate_transactions([_tx()], GroupBy.TOTAL) == {}


class TestDeriveExternalId:
    def test_stable_and_distinct(self):
        a = derive_external_id("Rent", date(2025, 1, 1), Decimal("-1000"))
        assert a == derive_external_id("Rent", date(2025, 1, 1), Decimal("-1000"))
        assert a != derive_external_id("Rent", date(2025, 1, 2), Decimal("-1000"))
        assert len(a) == 40

    def test_amount_hashed_without_trailing_zeros(self):
        expected = hashlib.sha1("Rent|2025-01-01|100".encode("utf-8")).hexdigest()
        for amount in (Decimal("100"), Decimal("100.0"), Decimal("100.00"), 100.0, 100):
            assert derive_external_id("Rent", date(2025, 1, 1), amount) == expected

    def test_fractional_and_large_amounts(self):
        def hashed(text):
            return hashlib.sha1(f"Rent|2025-01-01|{text}".encode("utf-8")).hexdigest()

        assert derive_external_id("Rent", date(2025, 1, 1), Decimal("-82.40")) == hashed("-82.4")
        assert derive_external_id("Rent", date(2025, 1, 1), Decimal("1E+3")) == hashed("1000")
        assert derive_external_id("Rent", date(2025, 1, 1), Decimal("-0.00")) == hashed("0")


class TestEnrichment:
    def test_is_expense(self):
        assert is_expense(_tx(transaction_type="Expense"))
        assert is_expense(_tx(transaction_type="支出"))
        assert not is_expense(_tx(transaction_type="Income"))
        assert not is_expense(_tx())

    def test_is_due_soon(self):
        today = date(2025, 1, 1)
        assert is_due_soon(_tx(due_date=date(2025, 1, 1)), today)
        assert is_due_soon(_tx(due_date=date(2025, 3, 2)), today)
        assert not is_due_soon(_tx(due_date=date(2025, 3, 3)), today)
        assert not is_due_soon(_tx(due_date=date(2024, 12, 31)), today)
        assert not is_due_soon(_tx(), today)

    def test_is_large_expense(self):
        assert is_large_expense(_tx("-10000", transaction_type="Expense"))
        assert not is_large_expense(_tx("-9999.99", transaction_type="Expense"))
        assert not is_large_expense(_tx("20000", transaction_type="Income"))


class TestTransactionService:
    def test_fetch_applies_window_and_flags(self, store, test_settings):
        store.add(TRANSACTIONS_DB, transaction_row(date(2024, 12, 31), -1, verified=True))
        store.add(TRANSACTIONS_DB, transaction_row(date(2025, 1, 5), -50, verified=True))
        store.add(TRANSACTIONS_DB, transaction_row(date(2025, 1, 3), 20, confirmed=True))
        store.add(TRANSACTIONS_DB, transaction_row(date(2025, 1, 4), 99))
        store.add(TRANSACTIONS_DB, transaction_row(date(2025, 2, 1), 5, verified=True))
        service = TransactionService(store, test_settings)

        window = (date(2025, 1, 1), date(2025, 1, 31))
        any_mode = service.fetch_transactions(*window)
        cash = service.fetch_transactions(*window, flag_mode=FlagMode.CASH)
        forecast = service.fetch_transactions(*window, flag_mode=FlagMode.FORECAST)

        assert [t.amount for t in any_mode] == [Decimal("20"), Decimal("-50")]
        assert [t.amount for t in cash] == [Decimal("-50")]
        assert [t.amount for t in forecast] == [Decimal("20")]

    def test_undated_rows_skipped(self, store, test_settings):
        store.add(TRANSACTIONS_DB, transaction_row(None, 10, verified=True))
        assert TransactionService(store, test_settings).fetch_transactions() == []

    def test_fetch_drains_all_pages(self, store, test_settings):
        for day in range(1, 29):
            for _ in range(5):
                store.add(TRANSACTIONS_DB, transaction_row(date(2025, 2, day), 1, verified=True))

        txs = TransactionService(store, test_settings).fetch_transactions()

        assert len(txs) == 140
        assert store.count("query") == 2

    def test_aggregate(self, store, test_settings):
        store.add(TRANSACTIONS_DB, transaction_row(date(2025, 1, 1), -50, verified=True, asset_type="Cash"))
        store.add(TRANSACTIONS_DB, transaction_row(date(2025, 1, 2), 200, verified=True, asset_type="Cash"))

        deltas = TransactionService(store, test_settings).aggregate(
            date(2025, 1, 1), date(2025, 1, 31), GroupBy.ASSET_TYPE
        )

        assert deltas == {
            (date(2025, 1, 1), "Cash"): Decimal("-50"),
            (date(2025, 1, 2), "Cash"): Decimal("200"),
        }

    def test_list_most_recent_first(self, store, test_settings):
        store.add(TRANSACTIONS_DB, transaction_row(date(2025, 1, 1), 1))
        store.add(TRANSACTIONS_DB, transaction_row(date(2025, 1, 3), 3))
        store.add(TRANSACTIONS_DB, transaction_row(date(2025, 1, 2), 2))

        txs = TransactionService(store, test_settings).list_transactions(limit=2)

        assert [t.date.day for t in txs] == [3, 2]

    def test_create_writes_row(self, store, test_settings):
        service = TransactionService(store, test_settings)

        record_id, ext = service.create_transaction(
            "Coffee", date(2025, 1, 1), Decimal("-4.5"),
            verified=True, payment_method="Card", transaction_type="Expense",
        )

        [row] = store.rows(TRANSACTIONS_DB)
        assert row.id == record_id
        assert ext == derive_external_id("Coffee", date(2025, 1, 1), Decimal("-4.5"))
        assert row.properties["Amount"] == {"number": -4.5}
        assert row.properties["Verified"] == {"checkbox": True}
        assert row.properties["Payment Method"] == {"select": {"name": "Card"}}
        assert "Due Date" not in row.properties

    def test_create_duplicate_rejected(self, store, test_settings):
        service = TransactionService(store, test_settings)
        service.create_transaction("Coffee", date(2025, 1, 1), Decimal("-4.5"), external_id="abc")

        with pytest.raises(DuplicateTransactionError) as exc_info:
            service.create_transaction("Other", date(2025, 1, 2), Decimal("1"), external_id="abc")

        assert exc_info.value.external_id == "abc"
        assert len(store.rows(TRANSACTIONS_DB)) == 1

    def test_metadata(self, store, test_settings):
        meta = TransactionService(store, test_settings).fetch_metadata()
        assert meta.payment_methods == ["Card", "Bank"]
        assert meta.transaction_types == ["Expense", "Income"]
