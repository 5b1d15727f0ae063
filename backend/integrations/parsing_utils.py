"""Shared parsing utilities for store records and provider payloads.

Centralises the date and number coercion every integration needs:
ISO 8601 strings with or without a time component, and JSON numbers that
may arrive as bools, strings or NaN.
"""

import math
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation


def parse_iso_date(value) -> date | None:
    """Parse an ISO 8601 date or datetime string to a calendar date.

    Handles the formats the document store produces:
    - Date-only strings ("2025-01-02")
    - Datetimes with a Z suffix ("2025-01-02T10:30:00.000Z")
    - Datetimes with an offset ("2025-01-02T10:30:00+09:00")
    - date/datetime objects passed through

    Datetimes are normalised to UTC before the date is taken.

    Args:
        value: A string, date, datetime, or None.

    Returns:
        The calendar date, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value

    value_str = str(value).strip()
    if not value_str:
        return None

    try:
        return date.fromisoformat(value_str)
    except ValueError:
        pass

    # Handle Z suffix: "2024-01-15T10:30:00Z" -> "2024-01-15T10:30:00+00:00"
    if value_str.endswith("Z"):
        value_str = value_str[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(value_str)
    except ValueError:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date()


def parse_decimal(value) -> Decimal | None:
    """Coerce a JSON number to Decimal.

    Bools, non-finite floats and anything non-numeric return None.
    Strings are accepted only when they hold a plain number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None
    return None


def parse_positive_decimal(value) -> Decimal | None:
    """Like :func:`parse_decimal` but only accepts values greater than zero."""
    parsed = parse_decimal(value)
    if parsed is None or parsed <= 0:
        return None
    return parsed
