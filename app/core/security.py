"""Caller identity forwarded by the upstream authentication layer.

Authentication itself happens outside this service. The gateway forwards
the authenticated staff member as request headers, which are parsed into
a ``Caller`` and injected into route handlers.
"""

from dataclasses import dataclass, field
from enum import Enum

from fastapi import Depends, Header

from app.core.exceptions import ForbiddenError, UnauthorizedError


class Role(str, Enum):
    """Staff roles known to the access policy."""

    ADMIN = "admin"
    MANAGER = "manager"
    DELIVERY = "delivery"


@dataclass(frozen=True)
class Caller:
    """Authenticated staff member making the request.

    Attributes:
        id: Staff identity (matches Customer.created_by / assigned_to).
        role: Staff role.
        assigned_areas: Areas a delivery staff member covers.
    """

    id: str
    role: Role
    assigned_areas: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_admin_or_manager(self) -> bool:
        return self.role in (Role.ADMIN, Role.MANAGER)


def require_role(caller: Caller, *roles: Role) -> None:
    """Raise ForbiddenError unless the caller holds one of ``roles``."""
    if caller.role not in roles:
        raise ForbiddenError(
            f"Role '{caller.role.value}' is not allowed to perform this action",
            details={"required_roles": [r.value for r in roles]},
        )


async def get_caller(
    x_user_id: str | None = Header(None, description="Authenticated staff id."),
    x_user_role: str | None = Header(None, description="admin, manager or delivery."),
    x_user_areas: str | None = Header(None, description="Comma-separated assigned areas."),
) -> Caller:
    """FastAPI dependency building the Caller from forwarded headers.

    Raises:
        UnauthorizedError: If the id is missing or the role is unknown.
    """
    if not x_user_id:
        raise UnauthorizedError("Missing X-User-Id header")

    try:
        role = Role((x_user_role or "").strip().lower())
    except ValueError as e:
        raise UnauthorizedError(
            f"Unknown role '{x_user_role}'",
            details={"valid_roles": [r.value for r in Role]},
        ) from e

    areas = tuple(a.strip() for a in (x_user_areas or "").split(",") if a.strip())
    return Caller(id=x_user_id, role=role, assigned_areas=areas)


async def get_manager(caller: Caller = Depends(get_caller)) -> Caller:
    """Dependency for admin/manager-only endpoints."""
    require_role(caller, Role.ADMIN, Role.MANAGER)
    return caller
