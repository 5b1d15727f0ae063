"""Pydantic schemas for asset log (ledger) endpoints."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class LedgerRowResponse(BaseModel):
    id: str
    date: date
    group: str
    delta: Optional[Decimal] = None
    balance: Optional[Decimal] = None


class LedgerListResponse(BaseModel):
    items: list[LedgerRowResponse]


class WebhookRequest(BaseModel):
    """Body sent by the store's automation when a transaction changes."""

    page_id: Optional[str] = None


class RecomputeResponse(BaseModel):
    """Window a recompute covered and how many asset log rows it wrote."""

    window_from: date
    window_to: date
    entries_written: int
    created: int = 0
    updated: int = 0
    group_by: str
    mode: str
    focus_record_id: Optional[str] = None
    focus_asset_type: Optional[str] = None
