"""Tests for customer field validation."""

from decimal import Decimal
from typing import Any

import pytest

from app.features.customers.validation import validate_customer


def _valid(**overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "name": "Asha Patil",
        "address": "12 Paud Road",
        "phone": "9876543210",
        "area": "Kothrud",
        "milk_per_day": Decimal("2"),
        "price_per_litre": Decimal("60"),
        "lat": None,
        "lng": None,
        "status": "Active",
    }
    values.update(overrides)
    return values


def _fields(values: dict[str, Any]) -> list[str]:
    return [e["field"] for e in validate_customer(values)]


class TestValidateCustomer:
    """Tests for validate_customer."""

    def test_valid_customer_has_no_errors(self) -> None:
        assert validate_customer(_valid()) == []

    @pytest.mark.parametrize("phone", ["5876543210", "987654321", "98765432100", "98765x3210"])
    def test_rejects_bad_phone(self, phone: str) -> None:
        assert _fields(_valid(phone=phone)) == ["phone"]

    def test_accepts_phone_starting_with_six(self) -> None:
        assert validate_customer(_valid(phone="6000000000")) == []

    def test_short_name(self) -> None:
        errors = validate_customer(_valid(name="A"))

        assert errors[0]["message"] == "Name must be at least 2 characters long"

    def test_milk_minimum_is_half_litre(self) -> None:
        assert _fields(_valid(milk_per_day=Decimal("0.4"))) == ["milk_per_day"]
        assert validate_customer(_valid(milk_per_day=Decimal("0.5"))) == []

    def test_zero_price_is_allowed(self) -> None:
        assert validate_customer(_valid(price_per_litre=Decimal("0"))) == []

    def test_negative_price_rejected(self) -> None:
        assert _fields(_valid(price_per_litre=Decimal("-1"))) == ["price_per_litre"]

    def test_coordinate_ranges(self) -> None:
        assert _fields(_valid(lat=91.0, lng=-181.0)) == ["location.lat", "location.lng"]
        assert validate_customer(_valid(lat=18.5, lng=73.8)) == []

    def test_reports_every_failing_field(self) -> None:
        fields = _fields(_valid(name="", address=" ", area="", phone=""))

        assert fields == ["name", "address", "area", "phone"]

    def test_unknown_status(self) -> None:
        assert _fields(_valid(status="Deleted")) == ["status"]
