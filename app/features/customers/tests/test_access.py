"""Tests for per-operator customer access rules."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError
from app.core.security import Caller, Role
from app.features.customers.access import (
    can_access_customer,
    customer_scope,
    ensure_customer_access,
    scope_query,
)
from app.features.customers.models import Customer


def _customer(created_by: str = "mgr-1", area: str = "Kothrud", assigned_to: str | None = None):
    return Customer(
        id="c1",
        name="Asha",
        phone="9876543210",
        address="x",
        area=area,
        created_by=created_by,
        assigned_to=assigned_to,
    )


class TestCanAccessCustomer:
    """Tests for can_access_customer."""

    def test_admin_sees_everything(self, admin: Caller) -> None:
        assert can_access_customer(admin, _customer(created_by="someone-else"))

    def test_manager_sees_own_customers_only(self, manager: Caller) -> None:
        assert can_access_customer(manager, _customer(created_by="mgr-1"))
        assert not can_access_customer(manager, _customer(created_by="mgr-2"))

    def test_manager_area_does_not_grant_access(self) -> None:
        caller = Caller(id="mgr-1", role=Role.MANAGER, assigned_areas=("Kothrud",))

        assert not can_access_customer(caller, _customer(created_by="mgr-2"))

    def test_delivery_by_area(self, delivery: Caller) -> None:
        assert can_access_customer(delivery, _customer(created_by="mgr-2", area="Kothrud"))
        assert not can_access_customer(delivery, _customer(created_by="mgr-2", area="Baner"))

    def test_delivery_by_assignment(self, delivery: Caller) -> None:
        customer = _customer(created_by="mgr-2", area="Baner", assigned_to="dlv-1")

        assert can_access_customer(delivery, customer)

    def test_ensure_raises_forbidden(self, other_manager: Caller) -> None:
        with pytest.raises(ForbiddenError):
            ensure_customer_access(other_manager, _customer())


class TestCustomerScope:
    """The SQL predicate selects the same customers as can_access_customer."""

    def test_admin_is_unrestricted(self, admin: Caller) -> None:
        assert customer_scope(admin) is None

    async def test_manager_scope(self, db_session: AsyncSession, seeded, manager: Caller) -> None:
        stmt = scope_query(select(Customer.id), manager).order_by(Customer.id)
        ids = (await db_session.execute(stmt)).scalars().all()

        assert ids == ["cust-asha-000001", "cust-ravi-000002"]

    async def test_delivery_scope(self, db_session: AsyncSession, seeded, delivery: Caller) -> None:
        stmt = scope_query(select(Customer.id), delivery).order_by(Customer.id)
        ids = (await db_session.execute(stmt)).scalars().all()

        # asha by area (Kothrud), ravi by assignment
        assert ids == ["cust-asha-000001", "cust-ravi-000002"]

    async def test_scope_matches_predicate(
        self, db_session: AsyncSession, seeded, other_manager: Caller, delivery: Caller
    ) -> None:
        all_customers = (await db_session.execute(select(Customer))).scalars().all()
        for caller in (other_manager, delivery):
            stmt = scope_query(select(Customer.id), caller)
            scoped = set((await db_session.execute(stmt)).scalars().all())
            expected = {c.id for c in all_customers if can_access_customer(caller, c)}
            assert scoped == expected
