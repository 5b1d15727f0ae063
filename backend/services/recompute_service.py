"""Recompute service - rebuilds asset-log rows for a date window."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

from config import Settings, settings
from integrations.document_store import DocumentStore
from integrations.exceptions import ProviderError
from integrations.notion_properties import PropertyReader
from models import FlagMode, GroupBy
from services.balance_service import BalanceReconciler
from services.ledger_service import LedgerService
from services.transaction_service import TransactionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecomputeWindow:
    from_date: date
    to_date: date
    focal_date: Optional[date] = None


class RecomputeWindowPolicy:
    """Resolves the inclusive window a recompute covers.

    A focal date yields ``[focal - focus_days, focal + focus_days]``.
    Without one, the window is ``[today - default_days, today]`` with
    either bound replaced by an explicit value when given.
    """

    def __init__(
        self,
        focus_days: int = 30,
        default_days: int = 180,
        today: Callable[[], date] = date.today,
    ):
        self.focus_days = focus_days
        self.default_days = default_days
        self._today = today

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "RecomputeWindowPolicy":
        cfg = config or settings
        return cls(cfg.RECOMPUTE_FOCUS_DAYS, cfg.RECOMPUTE_DEFAULT_DAYS)

    def today(self) -> date:
        return self._today()

    def resolve(
        self,
        focal_date: Optional[date] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> RecomputeWindow:
        if focal_date is not None:
            span = timedelta(days=self.focus_days)
            return RecomputeWindow(focal_date - span, focal_date + span, focal_date)

        today = self._today()
        window_to = to_date or today
        window_from = from_date or (window_to - timedelta(days=self.default_days))
        if window_from > window_to:
            raise ValueError(f"Window start {window_from} is after its end {window_to}")
        return RecomputeWindow(window_from, window_to)


@dataclass
class RecomputeResult:
    window_from: date
    window_to: date
    entries_written: int
    created: int = 0
    updated: int = 0
    group_by: GroupBy = GroupBy.ASSET_TYPE
    flag_mode: FlagMode = FlagMode.ANY
    focus_record_id: Optional[str] = None
    focus_asset_type: Optional[str] = None


class RecomputeService:
    """Aggregate, reconcile and upsert one window of the asset log.

    Each run holds a lease on its (grouping, window) so two overlapping
    recomputes in the same process cannot interleave their writes.
    """

    def __init__(
        self,
        transaction_service: TransactionService,
        ledger_service: LedgerService,
        reconciler: Optional[BalanceReconciler] = None,
        policy: Optional[RecomputeWindowPolicy] = None,
        group_by: Optional[GroupBy] = None,
        config: Optional[Settings] = None,
    ):
        self._config = config or settings
        self._transactions = transaction_service
        self._ledger = ledger_service
        self._reconciler = reconciler or BalanceReconciler(transaction_service)
        self._policy = policy or RecomputeWindowPolicy.from_settings(self._config)
        self._group_by = group_by or GroupBy(self._config.AGGREGATE_BY)

    @classmethod
    def for_store(
        cls, store: DocumentStore, config: Optional[Settings] = None
    ) -> "RecomputeService":
        cfg = config or settings
        return cls(TransactionService(store, cfg), LedgerService(store, cfg), config=cfg)

    @property
    def policy(self) -> RecomputeWindowPolicy:
        return self._policy

    def recompute(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        flag_mode: FlagMode = FlagMode.ANY,
        group_by: Optional[GroupBy] = None,
        focal_date: Optional[date] = None,
        wait: bool = False,
    ) -> RecomputeResult:
        """Rebuild the asset log for a window.

        Args:
            wait: Queue behind an overlapping recompute (up to
                RECOMPUTE_LEASE_WAIT_SECONDS) instead of failing at once.

        Raises:
            RecomputeInProgressError: An overlapping window is being
                recomputed (and, with ``wait``, did not finish in time).
            ValueError: ``from_date`` is after ``to_date``.
        """
        group_by = group_by or self._group_by
        window = self._policy.resolve(focal_date, from_date, to_date)

        with LedgerService.window_lease(
            group_by,
            window.from_date,
            window.to_date,
            blocking=wait,
            timeout=self._config.RECOMPUTE_LEASE_WAIT_SECONDS,
        ):
            deltas = self._transactions.aggregate(
                window.from_date, window.to_date, group_by, flag_mode
            )
            entries = self._reconciler.reconcile(
                deltas, window.from_date, group_by, flag_mode
            )
            upserted = self._ledger.upsert(entries, window.from_date, window.to_date)

        logger.info(
            "Recomputed %s..%s by %s (%s): %d entries written",
            window.from_date, window.to_date, group_by.value, flag_mode.value,
            upserted.written,
        )
        return RecomputeResult(
            window_from=window.from_date,
            window_to=window.to_date,
            entries_written=upserted.written,
            created=upserted.created,
            updated=upserted.updated,
            group_by=group_by,
            flag_mode=flag_mode,
        )

    def recompute_for_record(
        self, record_id: Optional[str], flag_mode: FlagMode = FlagMode.ANY
    ) -> RecomputeResult:
        """Recompute around one changed transaction.

        The record's date becomes the focal date (today when it has none).
        If the record cannot be read, the default window is used instead.
        The record's asset type is returned as a hint only; all groups in
        the window are still recomputed. An overlapping run already in
        progress is waited for, so an edit it missed is picked up here.
        """
        focal: Optional[date] = None
        asset_type: Optional[str] = None
        if record_id:
            try:
                record = self._transactions.retrieve_record(record_id)
            except ProviderError:
                logger.warning(
                    "Could not read record %s; using default window", record_id,
                    exc_info=True,
                )
            else:
                reader = PropertyReader(record)
                focal = reader.date(self._config.TR_PROP_DATE) or self._policy.today()
                asset_type = reader.select(self._config.TR_PROP_ASSET_TYPE)

        result = self.recompute(flag_mode=flag_mode, focal_date=focal, wait=True)
        result.focus_record_id = record_id
        result.focus_asset_type = asset_type
        return result
