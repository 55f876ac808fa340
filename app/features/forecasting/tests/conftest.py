"""Test fixtures for forecasting module."""

from decimal import Decimal

import numpy as np
import pytest

from app.features.analytics.aggregations import MonthBucket


@pytest.fixture
def sample_monthly_revenue() -> np.ndarray:
    """Three months of revenue with a mean of 20."""
    return np.array([10.0, 20.0, 30.0])


@pytest.fixture
def sample_history() -> list[MonthBucket]:
    """March and April 2024 buckets matching the seeded delivery log.

    Mean revenue is 277.5 and mean litres 4.75.
    """
    return [
        MonthBucket(2024, 3, total_litres=Decimal("7.5"), total_revenue=Decimal("435")),
        MonthBucket(2024, 4, total_litres=Decimal("2"), total_revenue=Decimal("120")),
    ]
