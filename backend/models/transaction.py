"""Transaction model - an income or expense row from the transactions table."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Transaction:
    """A single money movement.

    ``amount`` is signed: negative for expenses, positive for income.
    """

    id: str
    date: date
    amount: Decimal
    title: str = ""
    amount_confirmed: bool = False
    verified: bool = False
    due_date: Optional[date] = None
    transaction_type: Optional[str] = None
    payment_method: Optional[str] = None
    asset_type: Optional[str] = None
    external_id: Optional[str] = None
