"""Tests for delivery record API routes."""

from datetime import UTC, datetime
from decimal import Decimal

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.deliveries.models import DeliveryRecord


class TestListDeliveries:
    """Tests for GET /deliveries."""

    async def test_admin_sees_all(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.get("/deliveries", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 7

    async def test_scoped_to_callers_customers(
        self, client: AsyncClient, seeded, other_manager_headers
    ) -> None:
        response = await client.get("/deliveries", headers=other_manager_headers)

        items = response.json()["items"]
        assert [r["id"] for r in items] == ["rec-sunil-mar12"]

    async def test_newest_first_with_display_fields(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.get("/deliveries", headers=manager_headers)

        items = response.json()["items"]
        assert items[0]["id"] == "rec-asha-apr01"
        assert items[0]["customer_name"] == "Asha Patil"
        assert items[0]["delivered_by_name"] == "Dev Shinde"

    async def test_date_range_includes_whole_end_day(
        self, client: AsyncClient, seeded, admin_headers
    ) -> None:
        response = await client.get(
            "/deliveries?start_date=2024-03-31&end_date=2024-03-31", headers=admin_headers
        )

        assert [r["id"] for r in response.json()["items"]] == ["rec-asha-mar31"]

    async def test_status_filter(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.get("/deliveries?status=Pending", headers=admin_headers)

        assert [r["id"] for r in response.json()["items"]] == ["rec-ravi-mar10"]


class TestCustomerAndDaily:
    """Tests for GET /deliveries/customer/{id} and /deliveries/daily/{day}."""

    async def test_customer_records_with_summary(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.get(
            f"/deliveries/customer/{seeded.asha.id}?start_date=2024-03-01&end_date=2024-03-31",
            headers=manager_headers,
        )

        data = response.json()
        assert [r["id"] for r in data["records"]] == [
            "rec-asha-mar31",
            "rec-asha-mar06",
            "rec-asha-mar05",
        ]
        assert data["summary"] == {
            "total_litres": 5.0,
            "total_amount": 300.0,
            "delivered": 3,
            "pending": 0,
        }

    async def test_customer_records_forbidden(
        self, client: AsyncClient, seeded, other_manager_headers
    ) -> None:
        response = await client.get(
            f"/deliveries/customer/{seeded.asha.id}", headers=other_manager_headers
        )

        assert response.status_code == 403

    async def test_daily_records(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.get("/deliveries/daily/2024-03-31", headers=admin_headers)

        data = response.json()
        assert data["date"] == "2024-03-31"
        assert [r["id"] for r in data["records"]] == ["rec-asha-mar31"]
        assert data["summary"]["total_records"] == 1
        assert data["summary"]["total_litres"] == 1.0

    async def test_stats_summary(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.get("/deliveries/stats/summary", headers=admin_headers)

        stats = response.json()["stats"]
        assert [s["status"] for s in stats] == ["Delivered", "Pending"]
        assert stats[0]["count"] == 6
        assert stats[0]["total_litres"] == 9.5
        assert stats[1]["total_amount"] == 75.0


class TestCreateDelivery:
    """Tests for POST /deliveries."""

    async def test_defaults_from_customer(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.post(
            "/deliveries",
            json={
                "customer_id": seeded.asha.id,
                "date": "2024-03-07T07:30:00",
                "status": "Delivered",
            },
            headers=manager_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Milk record created successfully"
        record = data["record"]
        assert record["litres"] == 2.0
        assert record["price_per_litre"] == 60.0
        assert record["total_amount"] == 120.0
        assert record["delivered_by"] == "mgr-1"
        assert record["delivered_by_name"] == "Meera Joshi"
        assert record["delivery_time"] is not None

    async def test_pending_record_has_no_delivery_time(
        self, client: AsyncClient, seeded, delivery_headers
    ) -> None:
        response = await client.post(
            "/deliveries",
            json={"customer_id": seeded.ravi.id, "litres": 3},
            headers=delivery_headers,
        )

        record = response.json()["record"]
        assert record["status"] == "Pending"
        assert record["delivery_time"] is None
        assert record["total_amount"] == 150.0

    async def test_fractional_input_priced_at_stored_scale(
        self, client: AsyncClient, db_session: AsyncSession, seeded, manager_headers
    ) -> None:
        response = await client.post(
            "/deliveries",
            json={"customer_id": seeded.asha.id, "litres": "1.555", "price_per_litre": "60.555"},
            headers=manager_headers,
        )

        assert response.status_code == 201
        record_id = response.json()["record"]["id"]
        db_session.expire_all()
        stored = (
            await db_session.execute(select(DeliveryRecord).where(DeliveryRecord.id == record_id))
        ).scalar_one()
        assert Decimal(stored.litres) == Decimal("1.56")
        assert Decimal(stored.price_per_litre) == Decimal("60.56")
        assert Decimal(stored.total_amount) == Decimal(stored.litres) * Decimal(
            stored.price_per_litre
        )

    async def test_offset_date_stored_as_server_local(
        self, client: AsyncClient, db_session: AsyncSession, seeded, manager_headers
    ) -> None:
        response = await client.post(
            "/deliveries",
            json={"customer_id": seeded.asha.id, "date": "2024-03-15T07:00:00Z"},
            headers=manager_headers,
        )

        assert response.status_code == 201
        expected = datetime(2024, 3, 15, 7, 0, tzinfo=UTC).astimezone().replace(tzinfo=None)
        record = response.json()["record"]
        assert datetime.fromisoformat(record["date"]) == expected
        db_session.expire_all()
        stored = (
            await db_session.execute(
                select(DeliveryRecord).where(DeliveryRecord.id == record["id"])
            )
        ).scalar_one()
        assert stored.date == expected

    async def test_negative_litres_rejected(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.post(
            "/deliveries",
            json={"customer_id": seeded.asha.id, "litres": -1},
            headers=manager_headers,
        )

        assert response.status_code == 422

    async def test_outside_scope_forbidden(
        self, client: AsyncClient, seeded, other_manager_headers
    ) -> None:
        response = await client.post(
            "/deliveries", json={"customer_id": seeded.asha.id}, headers=other_manager_headers
        )

        assert response.status_code == 403


class TestUpdateDelivery:
    """Tests for PUT /deliveries/{id}."""

    async def test_litres_change_reprices(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.put(
            "/deliveries/rec-asha-mar05", json={"litres": 3}, headers=manager_headers
        )

        assert response.status_code == 200
        assert response.json()["record"]["total_amount"] == 180.0

    async def test_delivery_time_stamped_once(
        self, client: AsyncClient, seeded, delivery_headers
    ) -> None:
        first = await client.put(
            "/deliveries/rec-ravi-mar10", json={"status": "Delivered"}, headers=delivery_headers
        )
        stamped = first.json()["record"]["delivery_time"]
        await client.put(
            "/deliveries/rec-ravi-mar10", json={"status": "Pending"}, headers=delivery_headers
        )
        again = await client.put(
            "/deliveries/rec-ravi-mar10", json={"status": "Delivered"}, headers=delivery_headers
        )

        assert stamped is not None
        assert again.json()["record"]["delivery_time"] == stamped


class TestDeleteDelivery:
    """Tests for DELETE /deliveries/{id}."""

    async def test_delivery_staff_deletes_own_pending(
        self, client: AsyncClient, db_session: AsyncSession, seeded, delivery_headers
    ) -> None:
        response = await client.delete("/deliveries/rec-ravi-mar10", headers=delivery_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Record deleted successfully"
        remaining = await db_session.execute(
            select(DeliveryRecord.id).where(DeliveryRecord.id == "rec-ravi-mar10")
        )
        assert remaining.first() is None

    async def test_delivery_staff_cannot_delete_delivered(
        self, client: AsyncClient, seeded, delivery_headers
    ) -> None:
        response = await client.delete("/deliveries/rec-asha-mar05", headers=delivery_headers)

        assert response.status_code == 403

    async def test_manager_cannot_delete(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.delete("/deliveries/rec-ravi-mar10", headers=manager_headers)

        assert response.status_code == 403

    async def test_admin_deletes_any(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.delete("/deliveries/rec-sunil-mar12", headers=admin_headers)

        assert response.status_code == 200

    async def test_unknown_record(self, client: AsyncClient, seeded, admin_headers) -> None:
        response = await client.delete("/deliveries/missing", headers=admin_headers)

        assert response.status_code == 404


class TestBulkCreate:
    """Tests for POST /deliveries/bulk."""

    async def test_one_record_per_active_customer(
        self, client: AsyncClient, seeded, manager_headers
    ) -> None:
        response = await client.post(
            "/deliveries/bulk",
            json={"date": "2024-03-20T07:00:00", "status": "Delivered"},
            headers=manager_headers,
        )

        assert response.status_code == 201
        assert response.json() == {"message": "2 records created successfully", "count": 2}

    async def test_no_active_customers(self, client: AsyncClient, manager_headers) -> None:
        response = await client.post("/deliveries/bulk", json={}, headers=manager_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "No active customers found"
