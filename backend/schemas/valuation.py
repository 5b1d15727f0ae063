"""Pydantic schemas for portfolio valuation and snapshot endpoints."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class AssetValueResponse(BaseModel):
    """One holding's contribution to the portfolio total."""

    name: str
    symbol: str
    value: Decimal
    quantity: Decimal


class ValuationResponse(BaseModel):
    total_value: Decimal
    base_currency: str
    by_asset: list[AssetValueResponse]


class SnapshotResponse(BaseModel):
    """A stored daily valuation."""

    id: Optional[str] = None
    date: date
    total_value: Decimal
    change_absolute: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None


class ComputeResponse(BaseModel):
    """A live valuation compared against the most recent snapshot."""

    valuation: ValuationResponse
    last_snapshot: Optional[SnapshotResponse] = None
    change_absolute: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None


class SnapshotListResponse(BaseModel):
    items: list[SnapshotResponse]


class RecordSnapshotResponse(BaseModel):
    """Result of recording today's snapshot."""

    snapshot: SnapshotResponse
    previous: Optional[SnapshotResponse] = None
    replaced: bool = False
