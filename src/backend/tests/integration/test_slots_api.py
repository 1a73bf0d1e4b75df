"""
Integration tests for the slot API endpoints.

Tests:
- Public listing of available slots
- Slot creation (single and bulk) restricted to system admins
- Booking and releasing through HTTP, including conflict bodies
- Deleting slots
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient

from tests.factories import SlotFactory, TechRequestFactory, future_date

API = "/api/v1/slots"


@pytest_asyncio.fixture
async def free_slot(db_session):
    slot = SlotFactory.create(date="2025-03-10", start_time="10:00", end_time="11:00")
    db_session.add(slot)
    await db_session.commit()
    await db_session.refresh(slot)
    return slot


@pytest_asyncio.fixture
async def open_request(db_session):
    request = TechRequestFactory.create()
    db_session.add(request)
    await db_session.commit()
    await db_session.refresh(request)
    return request


class TestAvailableSlots:
    @pytest.mark.asyncio
    async def test_available_is_public_and_ordered(self, client: AsyncClient, db_session):
        db_session.add_all(
            [
                SlotFactory.create(date="2025-03-11", start_time="09:00", end_time="10:00"),
                SlotFactory.create(date="2025-03-10", start_time="14:00", end_time="15:00"),
                SlotFactory.create(date="2025-03-10", start_time="09:00", end_time="10:00"),
                SlotFactory.create(date="2025-03-10", start_time="11:00", end_time="12:00", is_booked=True),
            ]
        )
        await db_session.commit()

        response = await client.get(f"{API}/available")

        assert response.status_code == 200
        windows = [(s["date"], s["startTime"]) for s in response.json()]
        assert windows == [
            ("2025-03-10", "09:00"),
            ("2025-03-10", "14:00"),
            ("2025-03-11", "09:00"),
        ]

    @pytest.mark.asyncio
    async def test_available_filtered_by_date(self, client: AsyncClient, db_session):
        db_session.add_all(
            [
                SlotFactory.create(date="2025-03-10"),
                SlotFactory.create(date="2025-03-11"),
            ]
        )
        await db_session.commit()

        response = await client.get(f"{API}/available", params={"date": "2025-03-11"})

        assert [s["date"] for s in response.json()] == ["2025-03-11"]

    @pytest.mark.asyncio
    async def test_malformed_date_filter_is_400(self, client: AsyncClient):
        response = await client.get(f"{API}/available", params={"date": "10/03/2025"})

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_date"

    @pytest.mark.asyncio
    async def test_admin_listing_includes_booked(
        self, client: AsyncClient, db_session, volunteer_headers
    ):
        db_session.add_all([SlotFactory.create(), SlotFactory.create(start_time="13:00", end_time="14:00", is_booked=True)])
        await db_session.commit()

        response = await client.get(API, params={"isBooked": "true"}, headers=volunteer_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["slots"][0]["isBooked"] is True


class TestCreateSlots:
    @pytest.mark.asyncio
    async def test_system_admin_creates_slot(self, client: AsyncClient, admin_headers):
        response = await client.post(
            API,
            json={"date": "2025-04-01", "startTime": "9:00", "endTime": "10:30"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["startTime"] == "09:00"
        assert body["isBooked"] is False

    @pytest.mark.asyncio
    async def test_volunteer_cannot_create_slot(self, client: AsyncClient, volunteer_headers):
        response = await client.post(
            API,
            json={"date": "2025-04-01", "startTime": "09:00", "endTime": "10:00"},
            headers=volunteer_headers,
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_end_before_start_is_rejected(self, client: AsyncClient, admin_headers):
        response = await client.post(
            API,
            json={"date": "2025-04-01", "startTime": "11:00", "endTime": "10:00"},
            headers=admin_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_duplicate_window_conflicts(self, client: AsyncClient, free_slot, admin_headers):
        response = await client.post(
            API,
            json={"date": free_slot.date, "startTime": "10:00", "endTime": "11:00"},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["code"] == "slot_exists"

    @pytest.mark.asyncio
    async def test_bulk_create_skips_existing(self, client: AsyncClient, admin_headers):
        dates = [future_date(1), future_date(2)]
        payload = {"dates": dates, "startTime": "16:00", "endTime": "17:00"}

        first = await client.post(f"{API}/bulk", json=payload, headers=admin_headers)
        second = await client.post(
            f"{API}/bulk",
            json=dict(payload, dates=dates + [future_date(3)]),
            headers=admin_headers,
        )

        assert first.status_code == 201
        assert first.json()["created"] == 2
        assert second.json()["created"] == 1
        assert second.json()["skipped"] == 2
        assert [s["date"] for s in second.json()["slots"]] == [future_date(3)]

    @pytest.mark.asyncio
    async def test_bulk_with_invalid_date_is_rejected(self, client: AsyncClient, admin_headers):
        response = await client.post(
            f"{API}/bulk",
            json={"dates": ["2025-02-30"], "startTime": "16:00", "endTime": "17:00"},
            headers=admin_headers,
        )

        assert response.status_code == 422


class TestBookAndRelease:
    @pytest.mark.asyncio
    async def test_book_returns_both_sides(
        self, client: AsyncClient, free_slot, open_request, volunteer_headers
    ):
        response = await client.put(
            f"{API}/{free_slot.id}/book",
            json={"requestId": open_request.id},
            headers=volunteer_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["slot"]["isBooked"] is True
        assert body["request"]["bookedSlotId"] == free_slot.id
        assert body["request"]["scheduledDate"] == "2025-03-10"
        assert body["request"]["scheduledTime"] == "10:00"

    @pytest.mark.asyncio
    async def test_book_requires_authentication(self, client: AsyncClient, free_slot, open_request):
        response = await client.put(
            f"{API}/{free_slot.id}/book", json={"requestId": open_request.id}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_book_unknown_slot_is_404(self, client: AsyncClient, open_request, admin_headers):
        response = await client.put(
            f"{API}/9999/book", json={"requestId": open_request.id}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json() == {
            "detail": "Slot not found",
            "kind": "not_found",
            "code": "slot_not_found",
        }

    @pytest.mark.asyncio
    async def test_book_unknown_request_is_404(self, client: AsyncClient, free_slot, admin_headers):
        response = await client.put(
            f"{API}/{free_slot.id}/book", json={"requestId": 9999}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json()["code"] == "request_not_found"

    @pytest.mark.asyncio
    async def test_request_with_slot_cannot_book_another(
        self, client: AsyncClient, db_session, free_slot, open_request, admin_headers
    ):
        second = SlotFactory.create(date="2025-03-10", start_time="12:00", end_time="13:00")
        db_session.add(second)
        await db_session.commit()
        await db_session.refresh(second)
        await client.put(
            f"{API}/{free_slot.id}/book", json={"requestId": open_request.id}, headers=admin_headers
        )

        response = await client.put(
            f"{API}/{second.id}/book", json={"requestId": open_request.id}, headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["code"] == "request_has_slot"

    @pytest.mark.asyncio
    async def test_release_unbooked_slot_conflicts(
        self, client: AsyncClient, free_slot, admin_headers
    ):
        response = await client.put(f"{API}/{free_slot.id}/release", headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "slot_not_booked"

    @pytest.mark.asyncio
    async def test_release_unschedules_request(
        self, client: AsyncClient, free_slot, open_request, admin_headers
    ):
        await client.put(
            f"{API}/{free_slot.id}/book", json={"requestId": open_request.id}, headers=admin_headers
        )

        response = await client.put(f"{API}/{free_slot.id}/release", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["clearedRequestIds"] == [open_request.id]
        assert response.json()["slot"]["isBooked"] is False
        detail = await client.get(f"/api/v1/requests/{open_request.id}", headers=admin_headers)
        assert detail.json()["scheduledDate"] is None
        assert detail.json()["bookedSlotId"] is None


class TestDeleteSlot:
    @pytest.mark.asyncio
    async def test_delete_free_slot(self, client: AsyncClient, free_slot, admin_headers):
        response = await client.delete(f"{API}/{free_slot.id}", headers=admin_headers)

        assert response.status_code == 204
        available = await client.get(f"{API}/available")
        assert available.json() == []

    @pytest.mark.asyncio
    async def test_delete_booked_slot_conflicts(
        self, client: AsyncClient, free_slot, open_request, admin_headers
    ):
        await client.put(
            f"{API}/{free_slot.id}/book", json={"requestId": open_request.id}, headers=admin_headers
        )

        response = await client.delete(f"{API}/{free_slot.id}", headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "slot_in_use"

    @pytest.mark.asyncio
    async def test_volunteer_cannot_delete(self, client: AsyncClient, free_slot, volunteer_headers):
        response = await client.delete(f"{API}/{free_slot.id}", headers=volunteer_headers)

        assert response.status_code == 403
