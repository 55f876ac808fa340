"""Shared utility functions."""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypeVar

from app.shared.schemas import PaginatedResponse, PaginationParams

T = TypeVar("T")


def paginate_response(
    items: list[T],
    total: int,
    pagination: PaginationParams,
) -> PaginatedResponse[T]:
    """Create a paginated response from items and total count.

    Args:
        items: List of items for the current page.
        total: Total count of all items.
        pagination: Pagination parameters used for the query.

    Returns:
        PaginatedResponse with computed page count.
    """
    pages = math.ceil(total / pagination.page_size) if total > 0 else 0
    return PaginatedResponse[T](
        items=items,
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
        pages=pages,
    )


def to_decimal(value: Any) -> Decimal:  # noqa: ANN401
    """Coerce an int/float/str/Decimal (or None) to Decimal.

    Floats go through ``str`` so 1.5 stays 1.5 rather than its binary
    expansion.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_cents(value: Any) -> Decimal:  # noqa: ANN401
    """Coerce to Decimal at the two-place scale of the quantity and price columns."""
    return to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def round_half_up(value: Decimal | float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
