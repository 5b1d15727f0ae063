"""Transaction API endpoints."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.helpers import require_write_secret, translate_errors
from config import require_settings
from integrations.document_store import DocumentStore
from models import Transaction
from schemas import (
    TransactionCreate,
    TransactionCreateResponse,
    TransactionListResponse,
    TransactionMetaResponse,
    TransactionResponse,
)
from services.transaction_service import (
    DuplicateTransactionError,
    TransactionService,
    is_due_soon,
    is_expense,
    is_large_expense,
)
from store import get_store
from utils.query_params import clamp_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transactions", tags=["transactions"])

MAX_TRANSACTIONS = 2000
DEFAULT_TRANSACTIONS = 1000


def get_transaction_service(store: DocumentStore = Depends(get_store)) -> TransactionService:
    return TransactionService(store)


def transaction_response(tx: Transaction, today: date) -> TransactionResponse:
    return TransactionResponse(
        id=tx.id,
        title=tx.title,
        date=tx.date,
        amount=tx.amount,
        amount_confirmed=tx.amount_confirmed,
        verified=tx.verified,
        due_date=tx.due_date,
        transaction_type=tx.transaction_type,
        payment_method=tx.payment_method,
        asset_type=tx.asset_type,
        external_id=tx.external_id,
        month=tx.date.strftime("%Y-%m"),
        is_due_soon=is_due_soon(tx, today),
        is_expense=is_expense(tx),
        gte_10k=is_large_expense(tx),
    )


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    limit: Optional[int] = Query(None, description="Maximum transactions to return (≤2000)"),
    service: TransactionService = Depends(get_transaction_service),
):
    """Most recent transactions first, with display flags."""
    limit = clamp_limit(limit, DEFAULT_TRANSACTIONS, MAX_TRANSACTIONS)
    with translate_errors("transaction listing"):
        require_settings("NOTION_TRANSACTIONS_DB_ID")
        transactions = service.list_transactions(limit=limit)
    today = date.today()
    return TransactionListResponse(items=[transaction_response(t, today) for t in transactions])


@router.get("/meta", response_model=TransactionMetaResponse)
def transaction_metadata(service: TransactionService = Depends(get_transaction_service)):
    """Payment method and transaction type options from the table schema."""
    with translate_errors("transaction metadata"):
        require_settings("NOTION_TRANSACTIONS_DB_ID")
        meta = service.fetch_metadata()
    return TransactionMetaResponse(
        payment_methods=meta.payment_methods,
        transaction_types=meta.transaction_types,
    )


@router.post(
    "",
    response_model=TransactionCreateResponse,
    dependencies=[Depends(require_write_secret)],
)
def create_transaction(
    data: TransactionCreate,
    service: TransactionService = Depends(get_transaction_service),
):
    """Create a transaction.

    The external id defaults to a hash of title, date and amount, so
    submitting the same transaction twice is rejected.

    Raises:
        HTTPException:
            - 409 Conflict: A transaction with the same external id exists
    """
    with translate_errors("transaction create"):
        require_settings("NOTION_TRANSACTIONS_DB_ID")
        try:
            record_id, external_id = service.create_transaction(
                title=data.title,
                tx_date=data.date,
                amount=data.amount,
                amount_confirmed=data.amount_confirmed,
                verified=data.verified,
                due_date=data.due_date,
                transaction_type=data.transaction_type,
                payment_method=data.payment_method,
                external_id=data.external_id,
            )
        except DuplicateTransactionError as e:
            raise HTTPException(
                status_code=409,
                detail={"error": "duplicate", "external_id": e.external_id},
            )
    return TransactionCreateResponse(id=record_id, external_id=external_id)
