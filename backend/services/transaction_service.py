"""Transaction service - reads, filters, aggregates and creates transactions."""

import hashlib
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from config import Settings, settings
from integrations.document_store import (
    CheckboxEquals,
    DateOnOrAfter,
    DateOnOrBefore,
    DocumentStore,
    Filter,
    Or,
    SortSpec,
    StoreRecord,
    TextEquals,
    all_of,
    query_all,
)
from integrations.exceptions import DataQualityGap
from integrations.notion_properties import (
    PropertyReader,
    checkbox_value,
    date_value,
    number_value,
    rich_text_value,
    select_options,
    select_value,
    title_value,
)
from models import TOTAL_GROUP, UNKNOWN_GROUP, FlagMode, GroupBy, Transaction

logger = logging.getLogger(__name__)

DailyDeltas = dict[tuple[date, str], Decimal]


class DuplicateTransactionError(Exception):
    """A transaction with the same external id already exists."""

    def __init__(self, external_id: str):
        self.external_id = external_id
        super().__init__(f"duplicate transaction {external_id}")


@dataclass
class TransactionMetadata:
    """Select options configured on the transactions table."""

    payment_methods: list[str] = field(default_factory=list)
    transaction_types: list[str] = field(default_factory=list)


def passes_flag_filter(tx: Transaction, flag_mode: FlagMode) -> bool:
    if flag_mode is FlagMode.CASH:
        return tx.verified
    if flag_mode is FlagMode.FORECAST:
        return tx.amount_confirmed
    return tx.amount_confirmed or tx.verified


def group_key(tx: Transaction, group_by: GroupBy) -> str:
    if group_by is GroupBy.ASSET_TYPE:
        return tx.asset_type or UNKNOWN_GROUP
    if group_by is GroupBy.PAYMENT_METHOD:
        return tx.payment_method or UNKNOWN_GROUP
    return TOTAL_GROUP


def aggregate_transactions(
    transactions: list[Transaction],
    group_by: GroupBy,
    flag_mode: FlagMode = FlagMode.ANY,
) -> DailyDeltas:
    """Sum signed amounts into (date, group) buckets.

    Transactions that fail the confirmation filter are ignored.
    """
    deltas: DailyDeltas = defaultdict(lambda: Decimal("0"))
    for tx in transactions:
        if not passes_flag_filter(tx, flag_mode):
            continue
        deltas[(tx.date, group_key(tx, group_by))] += tx.amount
    return dict(deltas)


def _amount_text(amount: Decimal | float) -> str:
    """Render an amount the way a JSON number prints: no trailing zeros or exponent."""
    value = Decimal(str(amount))
    if value == 0:
        return "0"
    return format(value.normalize(), "f")


def derive_external_id(title: str, tx_date: date, amount: Decimal | float) -> str:
    """Stable id for de-duplicating creates: SHA-1 of ``title|date|amount``.

    ``100``, ``100.0`` and ``100.00`` all hash alike.
    """
    raw = f"{title}|{tx_date.isoformat()}|{_amount_text(amount)}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def parse_transaction(record: StoreRecord, config: Settings) -> Transaction:
    """Build a Transaction from a transactions row.

    Raises:
        DataQualityGap: The row has no date or no numeric amount.
    """
    reader = PropertyReader(record)
    return Transaction(
        id=record.id,
        date=reader.require_date(config.TR_PROP_DATE),
        amount=reader.require_number(config.TR_PROP_AMOUNT),
        title=reader.title(config.TR_PROP_TITLE) or "",
        amount_confirmed=reader.checkbox(config.TR_PROP_AMOUNT_CONFIRMED) is True,
        verified=reader.checkbox(config.TR_PROP_VERIFIED) is True,
        due_date=reader.date(config.TR_PROP_DUE_DATE),
        transaction_type=reader.select(config.TR_PROP_TRANSACTION_TYPE),
        payment_method=reader.select(config.TR_PROP_PAYMENT_METHOD),
        asset_type=reader.select(config.TR_PROP_ASSET_TYPE),
        external_id=reader.rich_text(config.TR_PROP_EXTERNAL_ID),
    )


class TransactionService:
    """Reads the transactions table and builds daily deltas from it."""

    def __init__(self, store: DocumentStore, config: Optional[Settings] = None):
        self._store = store
        self._config = config or settings

    def _flag_filter(self, flag_mode: FlagMode) -> Filter:
        cfg = self._config
        confirmed = CheckboxEquals(cfg.TR_PROP_AMOUNT_CONFIRMED, True)
        verified = CheckboxEquals(cfg.TR_PROP_VERIFIED, True)
        if flag_mode is FlagMode.CASH:
            return verified
        if flag_mode is FlagMode.FORECAST:
            return confirmed
        return Or((confirmed, verified))

    def _parse_all(self, records: list[StoreRecord]) -> list[Transaction]:
        transactions: list[Transaction] = []
        for record in records:
            try:
                transactions.append(parse_transaction(record, self._config))
            except DataQualityGap as gap:
                logger.debug("Skipping transaction: %s", gap)
        return transactions

    def fetch_transactions(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        flag_mode: FlagMode = FlagMode.ANY,
    ) -> list[Transaction]:
        """Fetch confirmed transactions dated within ``[from_date, to_date]``.

        Either bound may be None for an open range. All pages are drained
        (ascending by date) before returning.
        """
        cfg = self._config
        query_filter = all_of(
            self._flag_filter(flag_mode),
            DateOnOrAfter(cfg.TR_PROP_DATE, from_date.isoformat()) if from_date else None,
            DateOnOrBefore(cfg.TR_PROP_DATE, to_date.isoformat()) if to_date else None,
        )
        records = query_all(
            self._store,
            cfg.NOTION_TRANSACTIONS_DB_ID,
            filter=query_filter,
            sorts=[SortSpec(cfg.TR_PROP_DATE)],
        )
        transactions = [
            tx
            for tx in self._parse_all(records)
            if passes_flag_filter(tx, flag_mode)
            and (from_date is None or tx.date >= from_date)
            and (to_date is None or tx.date <= to_date)
        ]
        logger.debug(
            "Fetched %d transactions (%s..%s, %s)",
            len(transactions), from_date, to_date, flag_mode.value,
        )
        return transactions

    def aggregate(
        self,
        from_date: date,
        to_date: date,
        group_by: GroupBy,
        flag_mode: FlagMode = FlagMode.ANY,
    ) -> DailyDeltas:
        """Daily signed deltas per (date, group) for the inclusive window."""
        transactions = self.fetch_transactions(from_date, to_date, flag_mode)
        return aggregate_transactions(transactions, group_by, flag_mode)

    def retrieve_record(self, record_id: str) -> StoreRecord:
        return self._store.retrieve(record_id)

    def list_transactions(self, limit: int = 1000) -> list[Transaction]:
        """Most recent transactions first, regardless of confirmation flags."""
        cfg = self._config
        records = query_all(
            self._store,
            cfg.NOTION_TRANSACTIONS_DB_ID,
            sorts=[SortSpec(cfg.TR_PROP_DATE, ascending=False)],
            limit=limit,
        )
        return self._parse_all(records)

    def create_transaction(
        self,
        title: str,
        tx_date: date,
        amount: Decimal,
        amount_confirmed: bool = False,
        verified: bool = False,
        due_date: Optional[date] = None,
        transaction_type: Optional[str] = None,
        payment_method: Optional[str] = None,
        external_id: Optional[str] = None,
    ) -> tuple[str, str]:
        """Create a transaction unless one with the same external id exists.

        Returns:
            (record id, external id)

        Raises:
            DuplicateTransactionError: The external id is already present.
        """
        cfg = self._config
        ext = external_id or derive_external_id(title, tx_date, amount)

        existing = self._store.query(
            cfg.NOTION_TRANSACTIONS_DB_ID,
            filter=TextEquals(cfg.TR_PROP_EXTERNAL_ID, ext),
            page_size=1,
        )
        if existing.records:
            raise DuplicateTransactionError(ext)

        properties: dict[str, Any] = {
            cfg.TR_PROP_TITLE: title_value(title),
            cfg.TR_PROP_DATE: date_value(tx_date),
            cfg.TR_PROP_AMOUNT: number_value(amount),
            cfg.TR_PROP_AMOUNT_CONFIRMED: checkbox_value(amount_confirmed),
            cfg.TR_PROP_VERIFIED: checkbox_value(verified),
            cfg.TR_PROP_EXTERNAL_ID: rich_text_value(ext),
        }
        if due_date:
            properties[cfg.TR_PROP_DUE_DATE] = date_value(due_date)
        if transaction_type:
            properties[cfg.TR_PROP_TRANSACTION_TYPE] = select_value(transaction_type)
        if payment_method:
            properties[cfg.TR_PROP_PAYMENT_METHOD] = select_value(payment_method)

        record = self._store.create(cfg.NOTION_TRANSACTIONS_DB_ID, properties)
        logger.info("Created transaction %s (%s)", record.id, ext)
        return record.id, ext

    def fetch_metadata(self) -> TransactionMetadata:
        cfg = self._config
        schema = self._store.retrieve_database(cfg.NOTION_TRANSACTIONS_DB_ID)
        return TransactionMetadata(
            payment_methods=select_options(schema, cfg.TR_PROP_PAYMENT_METHOD),
            transaction_types=select_options(schema, cfg.TR_PROP_TRANSACTION_TYPE),
        )


DUE_SOON_DAYS = 60
LARGE_EXPENSE_THRESHOLD = Decimal("10000")


def is_expense(tx: Transaction) -> bool:
    kind = (tx.transaction_type or "").strip()
    return kind.lower() == "expense" or "支出" in kind


def is_due_soon(tx: Transaction, today: date) -> bool:
    """True when the due date falls within the next DUE_SOON_DAYS days."""
    if tx.due_date is None:
        return False
    return 0 <= (tx.due_date - today).days <= DUE_SOON_DAYS


def is_large_expense(tx: Transaction) -> bool:
    return is_expense(tx) and abs(tx.amount) >= LARGE_EXPENSE_THRESHOLD
