"""Balance reconciler - folds daily deltas into running balances per group."""

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from models import FlagMode, GroupBy, LedgerEntry, Transaction
from services.transaction_service import DailyDeltas, TransactionService, group_key
from utils.money import round2

logger = logging.getLogger(__name__)


def starting_balances(
    transactions: list[Transaction], group_by: GroupBy
) -> dict[str, Decimal]:
    """Sum every transaction per group, bucketed like the window aggregation."""
    balances: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for tx in transactions:
        balances[group_key(tx, group_by)] += tx.amount
    return dict(balances)


def fold_running_balances(
    daily_deltas: DailyDeltas, starting: dict[str, Decimal]
) -> list[LedgerEntry]:
    """Emit one ledger entry per (date, group) with the cumulative balance.

    Within a group, days are folded in ascending date order starting from
    that group's starting balance (zero when absent). Groups without any
    delta produce no entries. The result is ordered by group, then date.
    Rounding is applied to each emitted value, not to the running sum.
    """
    by_group: dict[str, list[tuple[date, Decimal]]] = defaultdict(list)
    for (entry_date, group), delta in daily_deltas.items():
        by_group[group].append((entry_date, delta))

    entries: list[LedgerEntry] = []
    for group in sorted(by_group):
        balance = starting.get(group, Decimal("0"))
        for entry_date, delta in sorted(by_group[group]):
            balance += delta
            entries.append(
                LedgerEntry(
                    entry_date=entry_date,
                    group_key=group,
                    delta=round2(delta),
                    running_balance=round2(balance),
                )
            )
    return entries


class BalanceReconciler:
    """Seeds each group with its pre-window balance, then folds the window."""

    def __init__(self, transaction_service: TransactionService):
        self._transactions = transaction_service

    def starting_balances(
        self,
        window_start: Optional[date],
        group_by: GroupBy,
        flag_mode: FlagMode = FlagMode.ANY,
    ) -> dict[str, Decimal]:
        """Balance per group from all history strictly before ``window_start``.

        Scans the full history on every call so the seed is exact no
        matter how far back transactions go. No window start means no
        history to seed from.
        """
        if window_start is None:
            return {}
        prior = self._transactions.fetch_transactions(
            to_date=window_start - timedelta(days=1), flag_mode=flag_mode
        )
        balances = starting_balances(prior, group_by)
        logger.debug(
            "Starting balances before %s from %d transactions: %s",
            window_start, len(prior), balances,
        )
        return balances

    def reconcile(
        self,
        daily_deltas: DailyDeltas,
        window_start: Optional[date],
        group_by: GroupBy,
        flag_mode: FlagMode = FlagMode.ANY,
    ) -> list[LedgerEntry]:
        seed = self.starting_balances(window_start, group_by, flag_mode)
        return fold_running_balances(daily_deltas, seed)
