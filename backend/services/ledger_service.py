"""Ledger service — idempotent create-or-update of asset-log rows."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterator, Optional

from config import Settings, settings
from integrations.document_store import (
    DateOnOrAfter,
    DateOnOrBefore,
    DocumentStore,
    SortSpec,
    StoreRecord,
    all_of,
    query_all,
)
from integrations.exceptions import DataQualityGap, ProviderError
from integrations.notion_properties import (
    PropertyReader,
    date_value,
    number_value,
    select_value,
)
from models import GroupBy, LedgerEntry, LedgerRow

logger = logging.getLogger(__name__)


class RecomputeInProgressError(Exception):
    """Another recompute holds a lease on an overlapping window."""

    def __init__(self, group_by: GroupBy, from_date: date, to_date: date):
        self.group_by = group_by
        self.from_date = from_date
        self.to_date = to_date
        super().__init__(
            f"Recompute already in progress for {group_by.value} "
            f"overlapping {from_date}..{to_date}"
        )


@dataclass(frozen=True)
class WindowLease:
    group_by: GroupBy
    from_date: date
    to_date: date

    def overlaps(self, other: "WindowLease") -> bool:
        return (
            self.group_by == other.group_by
            and self.from_date <= other.to_date
            and other.from_date <= self.to_date
        )


@dataclass
class UpsertResult:
    created: int = 0
    updated: int = 0

    @property
    def written(self) -> int:
        return self.created + self.updated


def parse_ledger_row(record: StoreRecord, config: Settings) -> LedgerRow:
    """Build a LedgerRow from an asset-log row.

    Raises:
        DataQualityGap: The row has no date or no group.
    """
    reader = PropertyReader(record)
    return LedgerRow(
        id=record.id,
        entry_date=reader.require_date(config.ALOG_PROP_DATE),
        group_key=reader.require_select(config.ALOG_PROP_GROUP),
        delta=reader.number(config.ALOG_PROP_NUMBER),
        running_balance=reader.number(config.ALOG_PROP_BALANCE),
    )


class LedgerService:
    """Reconciles computed ledger entries with the asset-log table.

    Rows are matched by their natural key (date, group): a match is
    updated in place, anything else is created. Re-running the same
    window over unchanged transactions therefore rewrites the same rows
    rather than adding new ones.
    """

    # Shared by every instance in the process; held leases never overlap.
    _lease_cond = threading.Condition()
    _active_leases: list[WindowLease] = []

    def __init__(self, store: DocumentStore, config: Optional[Settings] = None):
        self._store = store
        self._config = config or settings

    @classmethod
    def _overlaps_held(cls, lease: WindowLease) -> bool:
        return any(lease.overlaps(held) for held in cls._active_leases)

    @classmethod
    @contextmanager
    def window_lease(
        cls,
        group_by: GroupBy,
        from_date: date,
        to_date: date,
        blocking: bool = False,
        timeout: Optional[float] = None,
    ) -> Iterator[WindowLease]:
        """Hold exclusive rights to recompute a window for one grouping.

        Args:
            blocking: Wait for overlapping leases to be released instead of
                failing immediately. A waiter acquires only after the holder
                has finished writing, so it reads every change made while
                the holder was running.
            timeout: Seconds to wait when blocking; None waits indefinitely.

        Raises:
            RecomputeInProgressError: An overlapping lease is held (or is
                still held after ``timeout`` when blocking).
        """
        lease = WindowLease(group_by, from_date, to_date)
        with cls._lease_cond:
            if blocking:
                acquired = cls._lease_cond.wait_for(
                    lambda: not cls._overlaps_held(lease), timeout=timeout
                )
            else:
                acquired = not cls._overlaps_held(lease)
            if not acquired:
                raise RecomputeInProgressError(group_by, from_date, to_date)
            cls._active_leases.append(lease)
        try:
            yield lease
        finally:
            with cls._lease_cond:
                cls._active_leases.remove(lease)
                cls._lease_cond.notify_all()

    @classmethod
    def is_window_locked(cls, group_by: GroupBy, from_date: date, to_date: date) -> bool:
        with cls._lease_cond:
            return cls._overlaps_held(WindowLease(group_by, from_date, to_date))

    def ensure_balance_field(self) -> bool:
        """Add a numeric balance field to the asset log if it is missing.

        Best effort: the date, group and delta fields are never created,
        and a failure here is logged rather than raised.

        Returns:
            True if the field was created.
        """
        cfg = self._config
        try:
            schema = self._store.retrieve_database(cfg.NOTION_ASSET_LOG_DB_ID)
            if cfg.ALOG_PROP_BALANCE in schema:
                return False
            self._store.update_database(
                cfg.NOTION_ASSET_LOG_DB_ID, {cfg.ALOG_PROP_BALANCE: {"number": {}}}
            )
        except ProviderError:
            logger.warning(
                "Could not ensure %r field on asset log", cfg.ALOG_PROP_BALANCE,
                exc_info=True,
            )
            return False
        logger.info("Added %r field to asset log", cfg.ALOG_PROP_BALANCE)
        return True

    def fetch_ledger_rows(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[LedgerRow]:
        """Asset-log rows dated within the inclusive window, oldest first."""
        cfg = self._config
        records = query_all(
            self._store,
            cfg.NOTION_ASSET_LOG_DB_ID,
            filter=all_of(
                DateOnOrAfter(cfg.ALOG_PROP_DATE, from_date.isoformat()) if from_date else None,
                DateOnOrBefore(cfg.ALOG_PROP_DATE, to_date.isoformat()) if to_date else None,
            ),
            sorts=[SortSpec(cfg.ALOG_PROP_DATE)],
            limit=limit,
        )
        rows: list[LedgerRow] = []
        for record in records:
            try:
                rows.append(parse_ledger_row(record, cfg))
            except DataQualityGap as gap:
                logger.debug("Skipping asset log row: %s", gap)
        return rows

    def _entry_properties(self, entry: LedgerEntry) -> dict[str, Any]:
        cfg = self._config
        return {
            cfg.ALOG_PROP_DATE: date_value(entry.entry_date),
            cfg.ALOG_PROP_GROUP: select_value(entry.group_key),
            cfg.ALOG_PROP_NUMBER: number_value(entry.delta),
            cfg.ALOG_PROP_BALANCE: number_value(entry.running_balance),
        }

    def upsert(
        self, entries: list[LedgerEntry], from_date: date, to_date: date
    ) -> UpsertResult:
        """Write entries, updating rows whose (date, group) already exists.

        Existing rows are indexed once for the window; rows created during
        this call join the index immediately so a repeated key in the same
        batch updates instead of duplicating.
        """
        self.ensure_balance_field()

        index: dict[tuple[date, str], str] = {
            row.key: row.id for row in self.fetch_ledger_rows(from_date, to_date)
        }
        result = UpsertResult()
        db_id = self._config.NOTION_ASSET_LOG_DB_ID

        for entry in entries:
            properties = self._entry_properties(entry)
            existing_id = index.get(entry.key)
            if existing_id:
                self._store.update(existing_id, properties)
                result.updated += 1
            else:
                created = self._store.create(db_id, properties)
                index[entry.key] = created.id
                result.created += 1

        logger.info(
            "Asset log upsert %s..%s: %d created, %d updated",
            from_date, to_date, result.created, result.updated,
        )
        return result
