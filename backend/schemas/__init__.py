"""Pydantic request/response schemas."""

from .ledger import (
    LedgerListResponse,
    LedgerRowResponse,
    RecomputeResponse,
    WebhookRequest,
)
from .transaction import (
    TransactionCreate,
    TransactionCreateResponse,
    TransactionListResponse,
    TransactionMetaResponse,
    TransactionResponse,
)
from .valuation import (
    AssetValueResponse,
    ComputeResponse,
    RecordSnapshotResponse,
    SnapshotListResponse,
    SnapshotResponse,
    ValuationResponse,
)

__all__ = [
    "AssetValueResponse",
    "ComputeResponse",
    "LedgerListResponse",
    "LedgerRowResponse",
    "RecomputeResponse",
    "RecordSnapshotResponse",
    "SnapshotListResponse",
    "SnapshotResponse",
    "TransactionCreate",
    "TransactionCreateResponse",
    "TransactionListResponse",
    "TransactionMetaResponse",
    "TransactionResponse",
    "ValuationResponse",
    "WebhookRequest",
]
