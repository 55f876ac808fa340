"""Field-level validation for customers.

``validate_customer`` is run against the full, merged field set before
every insert or update and returns one error per failing field instead of
stopping at the first.
"""

import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from app.features.customers.models import CustomerStatus

PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")
MIN_NAME_LENGTH = 2
MIN_MILK_PER_DAY = Decimal("0.5")

FieldError = dict[str, str]


def _error(field: str, message: str, kind: str) -> FieldError:
    return {"field": field, "message": message, "type": kind}


def _as_decimal(value: Any) -> Decimal | None:  # noqa: ANN401
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def validate_customer(data: Mapping[str, Any]) -> list[FieldError]:
    """Validate a customer's field values.

    Args:
        data: Field name to value, using model attribute names.

    Returns:
        Field errors; empty when the customer is valid.
    """
    errors: list[FieldError] = []

    name = (data.get("name") or "").strip()
    if not name:
        errors.append(_error("name", "Customer name is required", "missing"))
    elif len(name) < MIN_NAME_LENGTH:
        errors.append(_error("name", "Name must be at least 2 characters long", "too_short"))

    for field, label in (("address", "Address"), ("area", "Area/Locality")):
        if not (data.get(field) or "").strip():
            errors.append(_error(field, f"{label} is required", "missing"))

    phone = data.get("phone")
    if not phone:
        errors.append(_error("phone", "Phone number is required", "missing"))
    elif not PHONE_PATTERN.match(str(phone)):
        errors.append(
            _error("phone", "Please enter a valid 10-digit Indian phone number", "pattern")
        )

    milk = _as_decimal(data.get("milk_per_day"))
    if milk is None:
        errors.append(_error("milk_per_day", "Daily milk requirement is required", "missing"))
    elif milk < MIN_MILK_PER_DAY:
        errors.append(
            _error("milk_per_day", "Minimum milk per day is 0.5 litres", "greater_than_equal")
        )

    price = _as_decimal(data.get("price_per_litre"))
    if price is None or price < 0:
        errors.append(
            _error("price_per_litre", "Price per litre must be zero or more", "greater_than_equal")
        )

    lat = data.get("lat")
    if lat is not None and not -90 <= lat <= 90:
        errors.append(_error("location.lat", "Latitude must be between -90 and 90", "range"))
    lng = data.get("lng")
    if lng is not None and not -180 <= lng <= 180:
        errors.append(_error("location.lng", "Longitude must be between -180 and 180", "range"))

    status = data.get("status")
    if status is not None and status not in {s.value for s in CustomerStatus}:
        errors.append(_error("status", f"Invalid status '{status}'", "enum"))

    return errors
