"""create_dairy_tables

Revision ID: 3c1e7a9d0b42
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1e7a9d0b42"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Apply migration - create staff, customer and delivery_record tables."""
    op.create_table(
        "staff",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("phone", sa.String(length=15), nullable=True),
        sa.Column("assigned_areas", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "role IN ('admin', 'manager', 'delivery')",
            name="ck_staff_valid_role",
        ),
    )
    op.create_index("ix_staff_username", "staff", ["username"], unique=True)

    op.create_table(
        "customer",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=10), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("area", sa.String(length=100), nullable=False),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        sa.Column("milk_per_day", sa.Numeric(8, 2), nullable=False),
        sa.Column("price_per_litre", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("assigned_to", sa.String(length=32), nullable=True),
        sa.Column("created_by", sa.String(length=32), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('Active', 'Inactive', 'Suspended')",
            name="ck_customer_valid_status",
        ),
        sa.CheckConstraint("milk_per_day >= 0.5", name="ck_customer_milk_per_day_min"),
        sa.CheckConstraint("price_per_litre >= 0", name="ck_customer_price_positive"),
    )
    op.create_index("ix_customer_phone", "customer", ["phone"])
    op.create_index("ix_customer_assigned_to", "customer", ["assigned_to"])
    op.create_index("ix_customer_created_by", "customer", ["created_by"])
    op.create_index("ix_customer_area_status", "customer", ["area", "status"])

    op.create_table(
        "delivery_record",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("customer_id", sa.String(length=32), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("litres", sa.Numeric(8, 2), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("price_per_litre", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 4), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("delivered_by", sa.String(length=32), nullable=True),
        sa.Column("delivery_time", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("signature", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["customer_id"], ["customer.id"]),
        sa.CheckConstraint("litres >= 0", name="ck_delivery_record_litres_positive"),
        sa.CheckConstraint(
            "status IN ('Delivered', 'Pending', 'Cancelled', 'Skipped')",
            name="ck_delivery_record_valid_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('Paid', 'Pending', 'Partial')",
            name="ck_delivery_record_valid_payment_status",
        ),
    )
    op.create_index("ix_delivery_record_customer_id", "delivery_record", ["customer_id"])
    op.create_index("ix_delivery_record_delivered_by", "delivery_record", ["delivered_by"])
    op.create_index(
        "ix_delivery_record_customer_date", "delivery_record", ["customer_id", "date"]
    )
    op.create_index("ix_delivery_record_status_date", "delivery_record", ["status", "date"])
    op.create_index(
        "ix_delivery_record_staff_date", "delivery_record", ["delivered_by", "date"]
    )


def downgrade() -> None:
    """Revert migration - drop dairy tables."""
    op.drop_table("delivery_record")
    op.drop_table("customer")
    op.drop_table("staff")
