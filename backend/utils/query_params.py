"""Shared query parameter parsing utilities."""

from datetime import date

from fastapi import HTTPException


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    """Return a page limit in ``[1, maximum]``, using ``default`` when unset.

    Non-positive values fall back to the default rather than erroring.
    """
    if limit is None or limit <= 0:
        return min(default, maximum)
    return min(limit, maximum)


def parse_date_param(value: str | None, name: str) -> date | None:
    """Parse an optional ``YYYY-MM-DD`` query parameter.

    Raises:
        HTTPException: 400 if the value is present but not an ISO date.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {name} date (expected YYYY-MM-DD): {value}",
        )
