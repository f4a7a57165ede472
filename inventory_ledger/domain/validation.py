"""
Input normalisation for ledger requests.

Pure checks with no I/O.  Every public ledger operation runs its arguments
through these helpers before opening a unit of work, so a rejected request
never touches the database.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from inventory_ledger.domain.limits import DEFAULT_LIMITS, LedgerLimits
from inventory_ledger.exceptions import InvalidInputError


def require_positive_int(value: Any, field: str) -> int:
    """Return ``value`` if it is an int > 0 (bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(field, f"must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise InvalidInputError(field, f"must be greater than zero, got {value}")
    return value


def require_quantity(value: Any, limits: LedgerLimits = DEFAULT_LIMITS) -> int:
    """Return ``value`` if it is an int in ``1..limits.max_quantity``."""
    quantity = require_positive_int(value, "quantity")
    if quantity > limits.max_quantity:
        raise InvalidInputError(
            "quantity", f"must be at most {limits.max_quantity}, got {quantity}"
        )
    return quantity


def require_actor(
    value: Any,
    field: str,
    limits: LedgerLimits = DEFAULT_LIMITS,
) -> str:
    """Trim an actor identifier; blank or oversized values are rejected."""
    if value is None:
        raise InvalidInputError(field, "is required")
    if not isinstance(value, str):
        raise InvalidInputError(field, f"must be a string, got {type(value).__name__}")
    actor = value.strip()
    if not actor:
        raise InvalidInputError(field, "is required")
    if len(actor) > limits.max_actor_length:
        raise InvalidInputError(
            field, f"must be at most {limits.max_actor_length} characters"
        )
    return actor


def normalize_remarks(
    value: Any,
    limits: LedgerLimits = DEFAULT_LIMITS,
) -> str | None:
    """Trim remarks; blank becomes None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInputError("remarks", f"must be a string, got {type(value).__name__}")
    remarks = value.strip()
    if not remarks:
        return None
    if len(remarks) > limits.max_remarks_length:
        raise InvalidInputError(
            "remarks", f"must be at most {limits.max_remarks_length} characters"
        )
    return remarks


def normalize_occurred_at(value: Any) -> datetime | None:
    """Coerce to an aware UTC datetime.  Naive values are taken as UTC."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        raise InvalidInputError(
            "occurred_at", f"must be a datetime, got {type(value).__name__}"
        )
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def require_code(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError("code", "is required")
    return value.strip()


def validate_date_range(date_from: date | None, date_to: date | None) -> None:
    if date_from is not None and date_to is not None and date_from > date_to:
        raise InvalidInputError(
            "date_range", f"date_from {date_from} is after date_to {date_to}"
        )


def validate_page(
    page: Any,
    page_size: Any,
    limits: LedgerLimits = DEFAULT_LIMITS,
) -> tuple[int, int]:
    """Return (page, page_size); page_size None means the default."""
    page = require_positive_int(page, "page")
    if page_size is None:
        return page, limits.default_page_size
    page_size = require_positive_int(page_size, "page_size")
    if page_size > limits.max_page_size:
        raise InvalidInputError(
            "page_size", f"must be at most {limits.max_page_size}, got {page_size}"
        )
    return page, page_size
