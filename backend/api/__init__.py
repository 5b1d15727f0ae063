"""API route handlers."""
from . import ledger, portfolio, transactions

__all__ = ["ledger", "portfolio", "transactions"]
