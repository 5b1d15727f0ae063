"""Asset log (ledger) API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError

from api.helpers import (
    ledger_row_response,
    require_webhook_secret,
    require_write_secret,
    translate_errors,
)
from config import require_settings
from integrations.document_store import DocumentStore
from models import FlagMode, GroupBy
from schemas import LedgerListResponse, RecomputeResponse, WebhookRequest
from services.ledger_service import LedgerService
from services.recompute_service import RecomputeResult, RecomputeService
from store import get_store
from utils.query_params import clamp_limit, parse_date_param

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ledger", tags=["ledger"])

MAX_LEDGER_ROWS = 2000
DEFAULT_LEDGER_ROWS = 365

RECOMPUTE_SETTINGS = ("NOTION_TRANSACTIONS_DB_ID", "NOTION_ASSET_LOG_DB_ID")

# Dependency injection for testing
_recompute_service_override: Optional[RecomputeService] = None


def get_recompute_service(store: DocumentStore = Depends(get_store)) -> RecomputeService:
    """Get RecomputeService instance, allowing for test overrides."""
    if _recompute_service_override is not None:
        return _recompute_service_override
    return RecomputeService.for_store(store)


def set_recompute_service_override(service: Optional[RecomputeService]) -> None:
    """Set a RecomputeService override for testing."""
    global _recompute_service_override
    _recompute_service_override = service


def get_ledger_service(store: DocumentStore = Depends(get_store)) -> LedgerService:
    return LedgerService(store)


def _parse_enum(enum_cls, value: Optional[str], name: str):
    if not value:
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise HTTPException(status_code=400, detail=f"Invalid {name} '{value}'; expected one of: {allowed}")


def _recompute_response(result: RecomputeResult) -> RecomputeResponse:
    return RecomputeResponse(
        window_from=result.window_from,
        window_to=result.window_to,
        entries_written=result.entries_written,
        created=result.created,
        updated=result.updated,
        group_by=result.group_by.value,
        mode=result.flag_mode.value,
        focus_record_id=result.focus_record_id,
        focus_asset_type=result.focus_asset_type,
    )


@router.get("", response_model=LedgerListResponse)
def list_ledger(
    from_: Optional[str] = Query(None, alias="from", description="Start date (YYYY-MM-DD, inclusive)"),
    to: Optional[str] = Query(None, description="End date (YYYY-MM-DD, inclusive)"),
    limit: Optional[int] = Query(None, description="Maximum rows to return (≤2000)"),
    service: LedgerService = Depends(get_ledger_service),
):
    """Asset log rows in date order."""
    from_date = parse_date_param(from_, "from")
    to_date = parse_date_param(to, "to")
    limit = clamp_limit(limit, DEFAULT_LEDGER_ROWS, MAX_LEDGER_ROWS)
    with translate_errors("ledger listing"):
        require_settings("NOTION_ASSET_LOG_DB_ID")
        rows = service.fetch_ledger_rows(from_date, to_date, limit=limit)
    return LedgerListResponse(items=[ledger_row_response(r) for r in rows])


@router.post(
    "/recompute",
    response_model=RecomputeResponse,
    dependencies=[Depends(require_write_secret)],
)
def recompute_ledger(
    from_: Optional[str] = Query(None, alias="from", description="Window start (YYYY-MM-DD)"),
    to: Optional[str] = Query(None, description="Window end (YYYY-MM-DD)"),
    mode: Optional[str] = Query(None, description="Confirmation filter: any, cash or forecast"),
    group_by: Optional[str] = Query(None, description="asset_type, payment_method or total"),
    service: RecomputeService = Depends(get_recompute_service),
):
    """Rebuild asset log rows for a window.

    Without bounds the window is the last RECOMPUTE_DEFAULT_DAYS days.

    Raises:
        HTTPException:
            - 400 Bad Request: Invalid date, mode or window
            - 409 Conflict: An overlapping recompute is already running
    """
    from_date = parse_date_param(from_, "from")
    to_date = parse_date_param(to, "to")
    flag_mode = _parse_enum(FlagMode, mode, "mode") or FlagMode.ANY
    grouping = _parse_enum(GroupBy, group_by, "group_by")

    with translate_errors("recompute"):
        require_settings(*RECOMPUTE_SETTINGS)
        try:
            result = service.recompute(from_date, to_date, flag_mode, grouping)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return _recompute_response(result)


async def webhook_payload(request: Request) -> WebhookRequest:
    """Read the webhook body leniently.

    An empty, non-JSON or unexpected body is treated as carrying no
    ``page_id``, so the recompute still runs over the default window.
    """
    try:
        data = await request.json()
    except ValueError:
        logger.debug("Webhook body is not JSON; using default window")
        return WebhookRequest()
    try:
        return WebhookRequest.model_validate(data)
    except ValidationError:
        logger.debug("Webhook body has no usable page_id; using default window")
        return WebhookRequest()


@router.post(
    "/webhook",
    response_model=RecomputeResponse,
    dependencies=[Depends(require_webhook_secret)],
)
def ledger_webhook(
    payload: WebhookRequest = Depends(webhook_payload),
    service: RecomputeService = Depends(get_recompute_service),
):
    """Recompute around a changed transaction.

    The window is centred on the changed record's date. Without a
    ``page_id`` (or if the record cannot be read) the default window is
    used. If an overlapping recompute is running, this one waits for it
    rather than being rejected.
    """
    with translate_errors("webhook recompute"):
        require_settings(*RECOMPUTE_SETTINGS)
        result = service.recompute_for_record(payload.page_id)
    return _recompute_response(result)
