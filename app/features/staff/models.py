"""Staff ORM model.

Staff rows mirror the identities managed by the authentication service.
They are only joined for display names; a customer or delivery record
may reference a staff id that has no row here.
"""

from __future__ import annotations

from sqlalchemy import JSON, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.shared.models import TimestampMixin


class Staff(TimestampMixin, Base):
    """Dairy staff member (admin, manager or delivery).

    Attributes:
        id: Identity shared with the auth service.
        username: Login name.
        full_name: Display name.
        role: admin, manager or delivery.
        phone: Contact number.
        assigned_areas: Areas a delivery staff member covers.
    """

    __tablename__ = "staff"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(String(20), default="delivery")
    phone: Mapped[str | None] = mapped_column(String(15), nullable=True)
    assigned_areas: Mapped[list[str]] = mapped_column(JSON, default=list)

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'manager', 'delivery')",
            name="ck_staff_valid_role",
        ),
    )
