"""Test fixtures and sample data."""
from datetime import date
from typing import Optional

from tests.fixtures.mocks import (
    checkbox_prop,
    date_prop,
    number_prop,
    select_prop,
    text_prop,
    title_prop,
)

HOLDINGS_DB = "db-holdings"
SNAPSHOTS_DB = "db-snapshots"
TRANSACTIONS_DB = "db-transactions"
ASSET_LOG_DB = "db-asset-log"

SNAPSHOTS_SCHEMA = {
    "Name": {"type": "title", "title": {}},
    "Date": {"type": "date", "date": {}},
    "Total USD": {"type": "number", "number": {}},
    "Change USD": {"type": "number", "number": {}},
    "Change %": {"type": "number", "number": {}},
}

TRANSACTIONS_SCHEMA = {
    "Name": {"type": "title", "title": {}},
    "Payment Method": {
        "type": "select",
        "select": {"options": [{"name": "Card"}, {"name": "Bank"}]},
    },
    "Transaction Type": {
        "type": "select",
        "select": {"options": [{"name": "Expense"}, {"name": "Income"}]},
    },
}

ASSET_LOG_SCHEMA = {
    "Date": {"type": "date", "date": {}},
    "Asset Type": {"type": "select", "select": {}},
    "Number": {"type": "number", "number": {}},
}


def holding_row(
    name: Optional[str],
    quantity,
    symbol: Optional[str] = None,
    source: Optional[str] = None,
    manual_price=None,
    currency: Optional[str] = None,
    category: Optional[str] = None,
    price_id: Optional[str] = None,
) -> dict:
    """Properties for a holdings row using the default field names."""
    props = {"Quantity": number_prop(quantity)}
    if name is not None:
        props["Name"] = title_prop(name)
    if symbol is not None:
        props["Symbol"] = text_prop(symbol)
    if source is not None:
        props["Price Source"] = select_prop(source)
    if manual_price is not None:
        props["Manual Price"] = number_prop(manual_price)
    if currency is not None:
        props["Currency"] = select_prop(currency)
    if category is not None:
        props["Category"] = select_prop(category)
    if price_id is not None:
        props["Price ID"] = text_prop(price_id)
    return props


def transaction_row(
    tx_date: date | str | None,
    amount,
    verified: bool = False,
    confirmed: bool = False,
    asset_type: Optional[str] = None,
    payment_method: Optional[str] = None,
    title: str = "Transaction",
    due_date: Optional[date] = None,
    transaction_type: Optional[str] = None,
    external_id: Optional[str] = None,
) -> dict:
    props = {
        "Name": title_prop(title),
        "Date": date_prop(tx_date),
        "Amount": number_prop(amount),
        "Verified": checkbox_prop(verified),
        "Amount Confirmed": checkbox_prop(confirmed),
        "Asset Type": select_prop(asset_type),
        "Payment Method": select_prop(payment_method),
    }
    if due_date is not None:
        props["Due Date"] = date_prop(due_date)
    if transaction_type is not None:
        props["Transaction Type"] = select_prop(transaction_type)
    if external_id is not None:
        props["External ID"] = text_prop(external_id)
    return props


def snapshot_row(snapshot_date: date, total, change=None, pct=None) -> dict:
    props = {"Date": date_prop(snapshot_date), "Total USD": number_prop(total)}
    if change is not None:
        props["Change USD"] = number_prop(change)
    if pct is not None:
        props["Change %"] = number_prop(pct)
    return props


def ledger_row(entry_date: date, group: str, number, balance=None) -> dict:
    props = {
        "Date": date_prop(entry_date),
        "Asset Type": select_prop(group),
        "Number": number_prop(number),
    }
    if balance is not None:
        props["Balance"] = number_prop(balance)
    return props
