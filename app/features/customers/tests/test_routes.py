"""Tests for customer API routes."""

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.customers.models import Customer


class TestListCustomers:
    """Tests for GET /customers."""

    async def test_manager_sees_own_customers(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.get("/customers", headers=manager_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {c["name"] for c in data["items"]} == {"Asha Patil", "Ravi Kumar"}

    async def test_admin_sees_everyone(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.get("/customers", headers=admin_headers)

        assert response.json()["total"] == 3

    async def test_delivery_sees_area_and_assignments(
        self, client: AsyncClient, seeded, delivery_headers
    ) -> None:
        response = await client.get("/customers", headers=delivery_headers)

        ids = {c["id"] for c in response.json()["items"]}
        assert ids == {seeded.asha.id, seeded.ravi.id}

    async def test_monthly_bill_is_computed(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.get(f"/customers/{seeded.asha.id}", headers=manager_headers)

        assert response.json()["monthly_bill"] == 3600.0

    async def test_search_and_area_filters(
        self, client: AsyncClient, seeded, admin_headers
    ) -> None:
        by_search = await client.get("/customers?search=ravi", headers=admin_headers)
        by_area = await client.get("/customers?area=aun", headers=admin_headers)

        assert [c["id"] for c in by_search.json()["items"]] == [seeded.ravi.id]
        assert [c["id"] for c in by_area.json()["items"]] == [seeded.sunil.id]

    async def test_pagination(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.get("/customers?page=2&page_size=2", headers=admin_headers)

        data = response.json()
        assert data["pages"] == 2
        assert len(data["items"]) == 1


class TestGetCustomer:
    """Tests for GET /customers/{id}."""

    async def test_other_manager_is_forbidden(
        self, client: AsyncClient, seeded, other_manager_headers
    ) -> None:
        response = await client.get(f"/customers/{seeded.asha.id}", headers=other_manager_headers)

        assert response.status_code == 403

    async def test_unknown_customer(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.get("/customers/missing", headers=admin_headers)

        assert response.status_code == 404


class TestCreateCustomer:
    """Tests for POST /customers."""

    async def test_create_defaults_price(
        self, client: AsyncClient, customer_payload, seeded, manager_headers
    ) -> None:
        response = await client.post("/customers", json=customer_payload, headers=manager_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Customer created successfully"
        customer = data["customer"]
        assert customer["price_per_litre"] == 60.0
        assert customer["created_by"] == "mgr-1"
        assert customer["status"] == "Active"
        assert customer["monthly_bill"] == 2700.0
        assert len(customer["id"]) == 32

    async def test_create_with_top_level_location(
        self, client: AsyncClient, customer_payload, manager_headers
    ) -> None:
        response = await client.post(
            "/customers",
            json={
                **customer_payload,
                "location": {"lat": 1.0, "lng": 2.0},
                "lat": 18.5,
                "lng": 73.8,
            },
            headers=manager_headers,
        )

        assert response.json()["customer"]["location"] == {"lat": 18.5, "lng": 73.8}

    async def test_delivery_cannot_create(
        self, client: AsyncClient, customer_payload, delivery_headers
    ) -> None:
        response = await client.post("/customers", json=customer_payload, headers=delivery_headers)

        assert response.status_code == 403

    async def test_validation_errors_listed(
        self, client: AsyncClient, customer_payload, manager_headers
    ) -> None:
        response = await client.post(
            "/customers",
            json={**customer_payload, "phone": "12345", "milk_per_day": 0.2},
            headers=manager_headers,
        )

        assert response.status_code == 422
        fields = {e["field"] for e in response.json()["errors"]}
        assert fields == {"phone", "milk_per_day"}

    async def test_duplicate_phone_same_owner(
        self, client: AsyncClient, customer_payload, seeded, manager_headers
    ) -> None:
        response = await client.post(
            "/customers",
            json={**customer_payload, "phone": seeded.asha.phone},
            headers=manager_headers,
        )

        assert response.status_code == 409

    async def test_same_phone_other_owner_allowed(
        self, client: AsyncClient, customer_payload, seeded, other_manager_headers
    ) -> None:
        response = await client.post(
            "/customers",
            json={**customer_payload, "phone": seeded.asha.phone},
            headers=other_manager_headers,
        )

        assert response.status_code == 201


class TestUpdateCustomer:
    """Tests for PUT /customers/{id}."""

    async def test_partial_update_revalidates(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.put(
            f"/customers/{seeded.asha.id}",
            json={"milk_per_day": 3, "notes": "leave at gate"},
            headers=manager_headers,
        )

        assert response.status_code == 200
        customer = response.json()["customer"]
        assert customer["milk_per_day"] == 3.0
        assert customer["notes"] == "leave at gate"
        assert customer["name"] == "Asha Patil"

    async def test_invalid_update_rejected(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.put(
            f"/customers/{seeded.asha.id}", json={"phone": "1234567890"}, headers=manager_headers
        )

        assert response.status_code == 422

    async def test_delivery_cannot_reassign(
        self, client: AsyncClient, seeded, delivery_headers
    ) -> None:
        response = await client.put(
            f"/customers/{seeded.asha.id}", json={"assigned_to": "dlv-9"}, headers=delivery_headers
        )

        assert response.status_code == 403


class TestDeleteCustomer:
    """Tests for DELETE /customers/{id}."""

    async def test_soft_delete(
        self, client: AsyncClient, db_session: AsyncSession, seeded, manager_headers
    ) -> None:
        customer_id = seeded.asha.id
        response = await client.delete(f"/customers/{customer_id}", headers=manager_headers)

        assert response.status_code == 200
        assert response.json()["customer"]["status"] == "Inactive"
        db_session.expire_all()
        customer = (
            await db_session.execute(select(Customer).where(Customer.id == customer_id))
        ).scalar_one()
        assert customer.status == "Inactive"
        assert customer.end_date is not None

    async def test_other_manager_cannot_delete(
        self, client: AsyncClient, seeded, other_manager_headers
    ) -> None:
        response = await client.delete(
            f"/customers/{seeded.asha.id}", headers=other_manager_headers
        )

        assert response.status_code == 403

    async def test_delivery_cannot_delete(
        self, client: AsyncClient, seeded, delivery_headers
    ) -> None:
        response = await client.delete(f"/customers/{seeded.asha.id}", headers=delivery_headers)

        assert response.status_code == 403


class TestAreaAndStats:
    """Tests for GET /customers/area/{area} and /customers/stats/summary."""

    async def test_by_area(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.get("/customers/area/kot", headers=admin_headers)

        assert [c["id"] for c in response.json()] == [seeded.asha.id]

    async def test_stats_summary(self, client: AsyncClient, seeded, manager_headers) -> None:
        response = await client.get("/customers/stats/summary", headers=manager_headers)

        data = response.json()
        assert data["total_customers"] == 2
        assert data["total_milk_per_day"] == 3.5
        assert {a["area"] for a in data["customers_by_area"]} == {"Kothrud", "Baner"}
