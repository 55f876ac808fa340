"""Test fixtures for customers module."""

from typing import Any

import pytest


@pytest.fixture
def customer_payload() -> dict[str, Any]:
    """Valid POST /customers body; price_per_litre omitted so the default applies."""
    return {
        "name": "Kavita Deshmukh",
        "address": "7 Karve Road",
        "phone": "9988776655",
        "area": "Kothrud",
        "milk_per_day": 1.5,
    }
