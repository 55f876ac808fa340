"""Per-operator data isolation for customers.

Two entry points, applied uniformly by every service that reads or writes
customer data (directly or through delivery records):

- ``can_access_customer`` checks one loaded customer.
- ``customer_scope`` returns the equivalent SQL predicate for queries.

Rules:
- admin sees every customer;
- manager sees customers it created;
- delivery staff see customers they created, customers assigned to them,
  and customers in one of their assigned areas.
"""

from typing import Any, TypeVar

from sqlalchemy import ColumnElement, Select, or_

from app.core.exceptions import ForbiddenError
from app.core.security import Caller, Role
from app.features.customers.models import Customer

S = TypeVar("S", bound=Select[Any])


def can_access_customer(caller: Caller, customer: Customer) -> bool:
    """Return True if ``caller`` may see and modify ``customer``."""
    if caller.role == Role.ADMIN:
        return True
    if customer.created_by == caller.id:
        return True
    if caller.role == Role.DELIVERY:
        if customer.assigned_to is not None and customer.assigned_to == caller.id:
            return True
        if customer.area in caller.assigned_areas:
            return True
    return False


def ensure_customer_access(caller: Caller, customer: Customer) -> None:
    """Raise ForbiddenError unless ``caller`` may access ``customer``."""
    if not can_access_customer(caller, customer):
        raise ForbiddenError(
            "Access denied. You can only access customers you created or are assigned to.",
            details={"customer_id": customer.id},
        )


def customer_scope(caller: Caller) -> ColumnElement[bool] | None:
    """SQL predicate on Customer matching ``can_access_customer``.

    Returns:
        The predicate, or None when the caller is unrestricted (admin).
    """
    if caller.role == Role.ADMIN:
        return None

    clauses: list[ColumnElement[bool]] = [Customer.created_by == caller.id]
    if caller.role == Role.DELIVERY:
        clauses.append(Customer.assigned_to == caller.id)
        if caller.assigned_areas:
            clauses.append(Customer.area.in_(caller.assigned_areas))
    return or_(*clauses)


def scope_query(stmt: S, caller: Caller) -> S:
    """Apply ``customer_scope`` to a statement that already involves Customer."""
    predicate = customer_scope(caller)
    if predicate is None:
        return stmt
    return stmt.where(predicate)
