"""Shared API helpers for route handlers.

Shared-secret authentication dependencies, error translation and
response builders used across multiple route files.
"""

import logging
import secrets
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Header, HTTPException

from config import ConfigurationError, settings
from integrations.exceptions import ProviderAuthError, ProviderError
from models import LedgerRow, PortfolioValuation, Snapshot
from schemas import (
    AssetValueResponse,
    LedgerRowResponse,
    SnapshotResponse,
    ValuationResponse,
)
from services.ledger_service import RecomputeInProgressError

logger = logging.getLogger(__name__)


def _secret_matches(provided: Optional[str], expected: str) -> bool:
    if provided is None:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def _bearer_matches(authorization: Optional[str], secret: str) -> bool:
    return _secret_matches(authorization, f"Bearer {secret}")


def require_write_secret(authorization: Optional[str] = Header(default=None)) -> None:
    """Require ``Authorization: Bearer <WRITE_SECRET>`` when one is configured."""
    secret = settings.WRITE_SECRET
    if secret and not _bearer_matches(authorization, secret):
        raise HTTPException(status_code=401, detail="unauthorized")


def require_cron_secret(
    authorization: Optional[str] = Header(default=None),
    x_vercel_cron: Optional[str] = Header(default=None),
) -> None:
    """Allow the scheduler header or ``Bearer <CRON_SECRET>``.

    With no cron secret configured every caller is allowed.
    """
    secret = settings.CRON_SECRET
    if not secret or x_vercel_cron is not None:
        return
    if not _bearer_matches(authorization, secret):
        raise HTTPException(status_code=401, detail="unauthorized")


def require_webhook_secret(x_webhook_secret: Optional[str] = Header(default=None)) -> None:
    """Require ``X-Webhook-Secret`` to equal WEBHOOK_SECRET when one is configured."""
    secret = settings.WEBHOOK_SECRET
    if secret and not _secret_matches(x_webhook_secret, secret):
        raise HTTPException(status_code=401, detail="unauthorized")


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Map service exceptions onto HTTP responses.

    Raises:
        HTTPException:
            - 409 Conflict: An overlapping recompute is in progress
            - 500 Internal Server Error: Required settings are missing
            - 502 Bad Gateway: Store or provider request failed
    """
    try:
        yield
    except ConfigurationError as e:
        logger.error("Configuration error during %s: %s", action, e)
        raise HTTPException(status_code=500, detail=str(e))
    except RecomputeInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ProviderAuthError as e:
        logger.warning("Provider auth error during %s: %s", action, e)
        raise HTTPException(
            status_code=502,
            detail=f"Authentication failed for {e.provider_name}. Check the configured credentials.",
        )
    except ProviderError as e:
        logger.warning("Provider error during %s: %s", action, e)
        raise HTTPException(
            status_code=502,
            detail=f"Upstream request to {e.provider_name} failed during {action}.",
        )


def snapshot_response(snapshot: Optional[Snapshot]) -> Optional[SnapshotResponse]:
    if snapshot is None:
        return None
    return SnapshotResponse(
        id=snapshot.id,
        date=snapshot.snapshot_date,
        total_value=snapshot.total_value,
        change_absolute=snapshot.change_absolute,
        change_percent=snapshot.change_percent,
    )


def valuation_response(valuation: PortfolioValuation) -> ValuationResponse:
    return ValuationResponse(
        total_value=valuation.total_value,
        base_currency=valuation.base_currency,
        by_asset=[
            AssetValueResponse(
                name=a.name,
                symbol=a.symbol,
                value=a.value_in_base,
                quantity=a.quantity,
            )
            for a in valuation.by_asset
        ],
    )


def ledger_row_response(row: LedgerRow) -> LedgerRowResponse:
    return LedgerRowResponse(
        id=row.id,
        date=row.entry_date,
        group=row.group_key,
        delta=row.delta,
        balance=row.running_balance,
    )
