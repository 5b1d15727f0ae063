"""Portfolio valuation and snapshot API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.helpers import (
    require_cron_secret,
    snapshot_response,
    translate_errors,
    valuation_response,
)
from config import require_settings
from integrations.document_store import DocumentStore
from schemas import (
    ComputeResponse,
    RecordSnapshotResponse,
    SnapshotListResponse,
)
from services.holdings_service import HoldingsService
from services.snapshot_service import SnapshotService
from services.valuation_service import ValuationService
from store import get_store
from utils.query_params import clamp_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["portfolio"])

MAX_SNAPSHOTS = 365
DEFAULT_SNAPSHOTS = 90

# Dependency injection for testing
_valuation_service_override: Optional[ValuationService] = None


def get_valuation_service(store: DocumentStore = Depends(get_store)) -> ValuationService:
    """Get ValuationService instance, allowing for test overrides."""
    if _valuation_service_override is not None:
        return _valuation_service_override
    return ValuationService(HoldingsService(store))


def set_valuation_service_override(service: Optional[ValuationService]) -> None:
    """Set a ValuationService override for testing."""
    global _valuation_service_override
    _valuation_service_override = service


def get_snapshot_service(
    store: DocumentStore = Depends(get_store),
    valuation_service: ValuationService = Depends(get_valuation_service),
) -> SnapshotService:
    return SnapshotService(store, valuation_service)


@router.get("/compute", response_model=ComputeResponse)
def compute_valuation(service: SnapshotService = Depends(get_snapshot_service)):
    """Value the portfolio now and compare it with the latest snapshot.

    Nothing is persisted. Changes are null when there is no prior
    snapshot; the percentage is also null when the prior total was zero.
    """
    with translate_errors("valuation"):
        require_settings("NOTION_HOLDINGS_DB_ID", "NOTION_SNAPSHOTS_DB_ID")
        comparison = service.compare_with_latest()
    return ComputeResponse(
        valuation=valuation_response(comparison.valuation),
        last_snapshot=snapshot_response(comparison.last_snapshot),
        change_absolute=comparison.change_absolute,
        change_percent=comparison.change_percent,
    )


@router.get("/snapshots", response_model=SnapshotListResponse)
def list_snapshots(
    limit: Optional[int] = Query(None, description="Maximum snapshots to return (≤365)"),
    service: SnapshotService = Depends(get_snapshot_service),
):
    """Most recent snapshots, returned oldest first."""
    limit = clamp_limit(limit, DEFAULT_SNAPSHOTS, MAX_SNAPSHOTS)
    with translate_errors("snapshot listing"):
        require_settings("NOTION_SNAPSHOTS_DB_ID")
        snapshots = service.fetch_recent_snapshots(limit=limit)
    return SnapshotListResponse(items=[snapshot_response(s) for s in snapshots])


@router.post(
    "/snapshots/record",
    response_model=RecordSnapshotResponse,
    dependencies=[Depends(require_cron_secret)],
)
def record_snapshot(service: SnapshotService = Depends(get_snapshot_service)):
    """Value the portfolio and store it as today's snapshot.

    Intended for a daily scheduler. Raises 502 without writing anything
    if any price, FX or store call fails.
    """
    with translate_errors("snapshot"):
        require_settings("NOTION_HOLDINGS_DB_ID", "NOTION_SNAPSHOTS_DB_ID")
        result = service.record_snapshot()
    return RecordSnapshotResponse(
        snapshot=snapshot_response(result.snapshot),
        previous=snapshot_response(result.previous),
        replaced=result.replaced,
    )
