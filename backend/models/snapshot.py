"""Snapshot model - one daily portfolio valuation record."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass
class Snapshot:
    """A persisted valuation for a calendar date.

    ``change_absolute`` and ``change_percent`` compare against the
    snapshot that was latest when this one was recorded; both are None
    for the first snapshot, and ``change_percent`` is None when the
    prior total was zero.
    """

    snapshot_date: date
    total_value: Decimal
    change_absolute: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None
    id: Optional[str] = None
