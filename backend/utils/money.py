"""Decimal rounding helpers for monetary values."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    """Round to two decimal places, halves away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def change_between(current: Decimal, previous: Decimal | None) -> tuple[Decimal | None, Decimal | None]:
    """Absolute and percentage change from ``previous`` to ``current``.

    Both are None when there is no previous value; the percentage is
    None when the previous value is zero. Each is rounded to 2 places.
    """
    if previous is None:
        return None, None
    change = round2(current - previous)
    if previous == 0:
        return change, None
    return change, round2((current - previous) / previous * 100)
