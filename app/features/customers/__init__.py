"""Customer subscriptions and per-operator access policy."""

from app.features.customers.models import Customer, CustomerStatus

__all__ = ["Customer", "CustomerStatus"]
