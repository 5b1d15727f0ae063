"""Snapshot service — records and lists daily portfolio valuation snapshots."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from config import Settings, settings
from integrations.document_store import (
    DateOnOrBefore,
    DocumentStore,
    SortSpec,
    StoreRecord,
    query_all,
)
from integrations.exceptions import DataQualityGap
from integrations.notion_properties import (
    PropertyReader,
    date_value,
    find_title_property,
    number_value,
    title_value,
)
from models import PortfolioValuation, Snapshot
from services.valuation_service import ValuationService
from utils.money import change_between

logger = logging.getLogger(__name__)

_UNSET = object()

LATEST_SCAN_PAGE_SIZE = 10


@dataclass
class ValuationComparison:
    """A live valuation alongside the latest stored snapshot."""

    valuation: PortfolioValuation
    last_snapshot: Optional[Snapshot]
    change_absolute: Optional[Decimal]
    change_percent: Optional[Decimal]


@dataclass
class SnapshotResult:
    """A snapshot that was just written, and the one it was compared to."""

    snapshot: Snapshot
    previous: Optional[Snapshot]
    replaced: bool = False


def parse_snapshot(record: StoreRecord, config: Settings) -> Snapshot:
    """Build a Snapshot from a snapshots row.

    Raises:
        DataQualityGap: The row has no date or no numeric total.
    """
    reader = PropertyReader(record)
    return Snapshot(
        snapshot_date=reader.require_date(config.SNAPSHOT_PROP_DATE),
        total_value=reader.require_number(config.SNAPSHOT_PROP_TOTAL),
        change_absolute=reader.number(config.SNAPSHOT_PROP_CHANGE),
        change_percent=reader.number(config.SNAPSHOT_PROP_CHANGE_PCT),
        id=record.id,
    )


class SnapshotService:
    """Reads and appends rows in the snapshots table.

    Snapshots are append-only: recording twice on the same date creates
    two rows unless ``replace_same_day`` is enabled, in which case the
    existing row for that date is overwritten and the change is computed
    against the latest snapshot from an earlier date.
    """

    def __init__(
        self,
        store: DocumentStore,
        valuation_service: Optional[ValuationService] = None,
        config: Optional[Settings] = None,
        replace_same_day: Optional[bool] = None,
    ):
        self._store = store
        self._valuation_service = valuation_service
        self._config = config or settings
        if replace_same_day is None:
            replace_same_day = self._config.SNAPSHOT_REPLACE_SAME_DAY
        self._replace_same_day = replace_same_day
        self._title_prop: Any = _UNSET

    @property
    def valuation_service(self) -> ValuationService:
        if self._valuation_service is None:
            raise RuntimeError("SnapshotService was created without a ValuationService")
        return self._valuation_service

    def _title_property(self) -> Optional[str]:
        """Look up the snapshots table's title field once per instance."""
        if self._title_prop is _UNSET:
            schema = self._store.retrieve_database(self._config.NOTION_SNAPSHOTS_DB_ID)
            self._title_prop = find_title_property(schema)
        return self._title_prop

    def _before_filter(self, before: Optional[date]) -> Optional[DateOnOrBefore]:
        if before is None:
            return None
        return DateOnOrBefore(
            self._config.SNAPSHOT_PROP_DATE, (before - timedelta(days=1)).isoformat()
        )

    def fetch_recent_snapshots(
        self, limit: int = 90, before: Optional[date] = None
    ) -> list[Snapshot]:
        """Return up to ``limit`` most recent snapshots, oldest first.

        Args:
            limit: Maximum number of snapshots.
            before: When set, only snapshots dated strictly before it.
        """
        cfg = self._config
        records = query_all(
            self._store,
            cfg.NOTION_SNAPSHOTS_DB_ID,
            filter=self._before_filter(before),
            sorts=[SortSpec(cfg.SNAPSHOT_PROP_DATE, ascending=False)],
            page_size=limit,
            limit=limit,
        )
        snapshots: list[Snapshot] = []
        for record in records:
            try:
                snapshots.append(parse_snapshot(record, cfg))
            except DataQualityGap as gap:
                logger.debug("Skipping snapshot: %s", gap)
        snapshots.sort(key=lambda s: s.snapshot_date)
        return snapshots

    def fetch_latest_snapshot(self, before: Optional[date] = None) -> Optional[Snapshot]:
        """Newest snapshot that parses, skipping malformed rows.

        Pages newest-first until a valid row turns up, so a broken latest
        row never hides an earlier good one.
        """
        cfg = self._config
        cursor: Optional[str] = None
        while True:
            page = self._store.query(
                cfg.NOTION_SNAPSHOTS_DB_ID,
                filter=self._before_filter(before),
                sorts=[SortSpec(cfg.SNAPSHOT_PROP_DATE, ascending=False)],
                cursor=cursor,
                page_size=LATEST_SCAN_PAGE_SIZE,
            )
            for record in page.records:
                try:
                    return parse_snapshot(record, cfg)
                except DataQualityGap as gap:
                    logger.debug("Skipping snapshot: %s", gap)
            cursor = page.next_cursor
            if not cursor:
                return None

    def _snapshot_properties(self, snapshot: Snapshot) -> dict[str, Any]:
        cfg = self._config
        properties: dict[str, Any] = {
            cfg.SNAPSHOT_PROP_DATE: date_value(snapshot.snapshot_date),
            cfg.SNAPSHOT_PROP_TOTAL: number_value(snapshot.total_value),
        }
        title_prop = self._title_property()
        if title_prop:
            properties[title_prop] = title_value(f"Snapshot {snapshot.snapshot_date.isoformat()}")
        if snapshot.change_absolute is not None:
            properties[cfg.SNAPSHOT_PROP_CHANGE] = number_value(snapshot.change_absolute)
        if snapshot.change_percent is not None:
            properties[cfg.SNAPSHOT_PROP_CHANGE_PCT] = number_value(snapshot.change_percent)
        return properties

    def create_snapshot(self, snapshot: Snapshot) -> Snapshot:
        record = self._store.create(
            self._config.NOTION_SNAPSHOTS_DB_ID, self._snapshot_properties(snapshot)
        )
        snapshot.id = record.id
        return snapshot

    def compare_with_latest(self) -> ValuationComparison:
        """Compute a live valuation and diff it against the latest snapshot."""
        valuation = self.valuation_service.compute_valuation()
        last = self.fetch_latest_snapshot()
        change, pct = change_between(
            valuation.total_value, last.total_value if last else None
        )
        return ValuationComparison(
            valuation=valuation,
            last_snapshot=last,
            change_absolute=change,
            change_percent=pct,
        )

    def record_snapshot(self, snapshot_date: Optional[date] = None) -> SnapshotResult:
        """Value the portfolio now and persist it as the snapshot for a date.

        Args:
            snapshot_date: Calendar date to record under; defaults to today.
        """
        snapshot_date = snapshot_date or date.today()
        valuation = self.valuation_service.compute_valuation()

        same_day: Optional[Snapshot] = None
        if self._replace_same_day:
            latest = self.fetch_latest_snapshot()
            if latest is not None and latest.snapshot_date == snapshot_date:
                same_day = latest
            previous = self.fetch_latest_snapshot(before=snapshot_date)
        else:
            previous = self.fetch_latest_snapshot()

        change, pct = change_between(
            valuation.total_value, previous.total_value if previous else None
        )
        snapshot = Snapshot(
            snapshot_date=snapshot_date,
            total_value=valuation.total_value,
            change_absolute=change,
            change_percent=pct,
        )

        if same_day is not None and same_day.id:
            self._store.update(same_day.id, self._snapshot_properties(snapshot))
            snapshot.id = same_day.id
            logger.info(
                "Snapshot %s replaced: total=%s change=%s (%s%%)",
                snapshot_date, snapshot.total_value, change, pct,
            )
            return SnapshotResult(snapshot=snapshot, previous=previous, replaced=True)

        self.create_snapshot(snapshot)
        logger.info(
            "Snapshot %s recorded: total=%s change=%s (%s%%)",
            snapshot_date, snapshot.total_value, change, pct,
        )
        return SnapshotResult(snapshot=snapshot, previous=previous)
