"""Tests for caller identity parsing and role checks."""

import pytest

from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.security import Caller, Role, get_caller, get_manager, require_role


class TestGetCaller:
    """Forwarded X-User-* headers become a Caller."""

    @pytest.mark.asyncio
    async def test_parses_headers(self):
        caller = await get_caller(
            x_user_id="dlv-1", x_user_role="Delivery", x_user_areas="Kothrud, Baner ,"
        )

        assert caller == Caller(id="dlv-1", role=Role.DELIVERY, assigned_areas=("Kothrud", "Baner"))

    @pytest.mark.asyncio
    async def test_missing_id_raises(self):
        with pytest.raises(UnauthorizedError):
            await get_caller(x_user_id=None, x_user_role="admin", x_user_areas=None)

    @pytest.mark.asyncio
    async def test_unknown_role_raises(self):
        with pytest.raises(UnauthorizedError) as exc_info:
            await get_caller(x_user_id="u-1", x_user_role="owner", x_user_areas=None)

        assert exc_info.value.details["valid_roles"] == ["admin", "manager", "delivery"]

    @pytest.mark.asyncio
    async def test_areas_default_to_empty(self):
        caller = await get_caller(x_user_id="mgr-1", x_user_role="manager", x_user_areas=None)

        assert caller.assigned_areas == ()


class TestRoles:
    def test_role_flags(self, admin, manager, delivery):
        assert admin.is_admin and admin.is_admin_or_manager
        assert not manager.is_admin and manager.is_admin_or_manager
        assert not delivery.is_admin_or_manager

    def test_require_role_allows_listed_role(self, manager):
        require_role(manager, Role.ADMIN, Role.MANAGER)

    def test_require_role_rejects_other_roles(self, delivery):
        with pytest.raises(ForbiddenError) as exc_info:
            require_role(delivery, Role.ADMIN, Role.MANAGER)

        assert exc_info.value.details["required_roles"] == ["admin", "manager"]

    @pytest.mark.asyncio
    async def test_get_manager_rejects_delivery(self, delivery):
        with pytest.raises(ForbiddenError):
            await get_manager(caller=delivery)
