"""Pydantic schemas for transaction endpoints."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class TransactionResponse(BaseModel):
    """A transaction plus fields derived for display."""

    id: str
    title: str
    date: date
    amount: Decimal
    amount_confirmed: bool
    verified: bool
    due_date: Optional[date] = None
    transaction_type: Optional[str] = None
    payment_method: Optional[str] = None
    asset_type: Optional[str] = None
    external_id: Optional[str] = None
    month: str
    is_due_soon: bool
    is_expense: bool
    gte_10k: bool


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]


class TransactionCreate(BaseModel):
    """Schema for creating a transaction."""

    title: str = Field(..., min_length=1, max_length=2000)
    date: date
    amount: Decimal
    amount_confirmed: bool = False
    verified: bool = False
    due_date: Optional[date] = None
    transaction_type: Optional[str] = None
    payment_method: Optional[str] = None
    external_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @field_validator("amount")
    @classmethod
    def amount_is_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("amount must be a finite number")
        return v


class TransactionCreateResponse(BaseModel):
    id: str
    external_id: str


class TransactionMetaResponse(BaseModel):
    """Select options available when entering a transaction."""

    payment_methods: list[str]
    transaction_types: list[str]
