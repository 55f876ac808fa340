"""Shared pytest fixtures for Milkr tests.

Every test gets a fresh in-memory SQLite database (one shared connection via
StaticPool) and an HTTP client whose ``get_db`` dependency uses it.
"""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.security import Caller, Role
from app.features.customers.models import Customer
from app.features.deliveries.models import DeliveryRecord
from app.features.staff.models import Staff
from app.main import app


@pytest.fixture
async def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_maker):
    """Session for seeding and direct service tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker):
    """Create async HTTP client for testing FastAPI endpoints."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


# =============================================================================
# Callers
# =============================================================================


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-User-Id": "admin-1", "X-User-Role": "admin"}


@pytest.fixture
def manager_headers() -> dict[str, str]:
    return {"X-User-Id": "mgr-1", "X-User-Role": "manager"}


@pytest.fixture
def other_manager_headers() -> dict[str, str]:
    return {"X-User-Id": "mgr-2", "X-User-Role": "manager"}


@pytest.fixture
def delivery_headers() -> dict[str, str]:
    return {"X-User-Id": "dlv-1", "X-User-Role": "delivery", "X-User-Areas": "Kothrud"}


@pytest.fixture
def admin() -> Caller:
    return Caller(id="admin-1", role=Role.ADMIN)


@pytest.fixture
def manager() -> Caller:
    return Caller(id="mgr-1", role=Role.MANAGER)


@pytest.fixture
def other_manager() -> Caller:
    return Caller(id="mgr-2", role=Role.MANAGER)


@pytest.fixture
def delivery() -> Caller:
    return Caller(id="dlv-1", role=Role.DELIVERY, assigned_areas=("Kothrud",))


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
async def seeded(db_session: AsyncSession) -> SimpleNamespace:
    """Two managers' customers and a March 2024 delivery log.

    - asha (mgr-1, Kothrud, 2 L/day at 60): Delivered on Mar 5 (Pending),
      Mar 6 (Paid), Mar 31 23:30 (Pending) and Apr 1 00:00 (Pending).
    - ravi (mgr-1, Baner, assigned to dlv-1, 1.5 L/day at 50): Pending on
      Mar 10, Delivered on Mar 11.
    - sunil (mgr-2, Aundh, 1 L/day at 60): Delivered on Mar 12.
    """
    db_session.add_all(
        [
            Staff(id="mgr-1", username="meera", full_name="Meera Joshi", role="manager"),
            Staff(
                id="dlv-1",
                username="dev",
                full_name="Dev Shinde",
                role="delivery",
                assigned_areas=["Kothrud"],
            ),
        ]
    )

    asha = Customer(
        id="cust-asha-000001",
        name="Asha Patil",
        phone="9876543210",
        address="12 Paud Road",
        area="Kothrud",
        milk_per_day=Decimal("2"),
        price_per_litre=Decimal("60"),
        status="Active",
        created_by="mgr-1",
        start_date=datetime(2024, 1, 1),
        notes="",
    )
    ravi = Customer(
        id="cust-ravi-000002",
        name="Ravi Kumar",
        phone="9123456780",
        address="4 Baner Road",
        area="Baner",
        milk_per_day=Decimal("1.5"),
        price_per_litre=Decimal("50"),
        status="Active",
        created_by="mgr-1",
        assigned_to="dlv-1",
        start_date=datetime(2024, 1, 1),
        notes="",
    )
    sunil = Customer(
        id="cust-sunil-00003",
        name="Sunil Rao",
        phone="8123456789",
        address="9 ITI Road",
        area="Aundh",
        milk_per_day=Decimal("1"),
        price_per_litre=Decimal("60"),
        status="Active",
        created_by="mgr-2",
        start_date=datetime(2024, 1, 1),
        notes="",
    )
    db_session.add_all([asha, ravi, sunil])
    await db_session.flush()

    def record(
        record_id: str,
        customer: Customer,
        day: datetime,
        litres: str,
        status: str = "Delivered",
        payment_status: str = "Pending",
    ) -> DeliveryRecord:
        return DeliveryRecord(
            id=record_id,
            customer_id=customer.id,
            date=day,
            litres=Decimal(litres),
            price_per_litre=customer.price_per_litre,
            status=status,
            payment_status=payment_status,
            delivered_by="dlv-1",
            delivery_time=day if status == "Delivered" else None,
            notes="",
        )

    records = {
        "asha_mar05": record("rec-asha-mar05", asha, datetime(2024, 3, 5, 7, 30), "2"),
        "asha_mar06": record(
            "rec-asha-mar06", asha, datetime(2024, 3, 6, 7, 30), "2", payment_status="Paid"
        ),
        "asha_mar31": record("rec-asha-mar31", asha, datetime(2024, 3, 31, 23, 30), "1"),
        "asha_apr01": record("rec-asha-apr01", asha, datetime(2024, 4, 1, 0, 0), "2"),
        "ravi_mar10": record(
            "rec-ravi-mar10", ravi, datetime(2024, 3, 10, 7, 0), "1.5", status="Pending"
        ),
        "ravi_mar11": record("rec-ravi-mar11", ravi, datetime(2024, 3, 11, 7, 0), "1.5"),
        "sunil_mar12": record("rec-sunil-mar12", sunil, datetime(2024, 3, 12, 6, 45), "1"),
    }
    db_session.add_all(records.values())
    await db_session.commit()

    return SimpleNamespace(asha=asha, ravi=ravi, sunil=sunil, records=records)
