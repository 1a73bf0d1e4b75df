"""
Integration tests for authentication and the admin area.

Tests:
- Login and /auth/me
- Admin management (create, list, deactivate, delete)
- Dashboard statistics
- Role-scoped calendar
- Notification log listing
- Root, health and correlation id
"""

import pytest
from httpx import AsyncClient

from db.enums import RequestStatus
from tests.factories import (
    DEFAULT_PASSWORD,
    AdminUserFactory,
    SlotFactory,
    TechRequestFactory,
)

AUTH = "/api/v1/auth"
ADMINS = "/api/v1/admin/admins"


# ============================================================================
# Authentication
# ============================================================================

class TestLogin:
    @pytest.mark.asyncio
    async def test_login_returns_token_and_admin(self, client: AsyncClient, volunteer):
        response = await client.post(
            f"{AUTH}/login", json={"username": "volunteer_a", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["tokenType"] == "bearer"
        assert body["expiresIn"] > 0
        assert body["admin"]["id"] == volunteer.id
        assert body["admin"]["role"] == "VOLUNTEER"
        assert "passwordHash" not in body["admin"]

        me = await client.get(
            f"{AUTH}/me", headers={"Authorization": f"Bearer {body['accessToken']}"}
        )
        assert me.json()["username"] == "volunteer_a"

    @pytest.mark.asyncio
    async def test_wrong_password_is_401(self, client: AsyncClient, volunteer):
        response = await client.post(
            f"{AUTH}/login", json={"username": "volunteer_a", "password": "wrong-password"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_username_is_401(self, client: AsyncClient):
        response = await client.post(
            f"{AUTH}/login", json={"username": "nobody", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_inactive_admin_cannot_log_in(self, client: AsyncClient, db_session):
        db_session.add(AdminUserFactory.create_volunteer(username="retired", is_active=False))
        await db_session.commit()

        response = await client.post(
            f"{AUTH}/login", json={"username": "retired", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get(f"{AUTH}/me")

        assert response.status_code == 401


# ============================================================================
# Admin management
# ============================================================================

class TestAdminManagement:
    @pytest.mark.asyncio
    async def test_system_admin_creates_volunteer(self, client: AsyncClient, admin_headers):
        response = await client.post(
            ADMINS,
            json={"username": "new.helper", "password": "long-enough-pw", "role": "VOLUNTEER"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["isActive"] is True

        login = await client.post(
            f"{AUTH}/login", json={"username": "new.helper", "password": "long-enough-pw"}
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_duplicate_username_conflicts(
        self, client: AsyncClient, volunteer, admin_headers
    ):
        response = await client.post(
            ADMINS,
            json={"username": "volunteer_a", "password": "long-enough-pw"},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["code"] == "admin_exists"

    @pytest.mark.asyncio
    async def test_volunteer_cannot_manage_admins(self, client: AsyncClient, volunteer_headers):
        listing = await client.get(ADMINS, headers=volunteer_headers)
        created = await client.post(
            ADMINS,
            json={"username": "sneaky", "password": "long-enough-pw", "role": "SYSTEM_ADMIN"},
            headers=volunteer_headers,
        )

        assert listing.status_code == 403
        assert created.status_code == 403

    @pytest.mark.asyncio
    async def test_list_admins(self, client: AsyncClient, volunteer, admin_headers):
        response = await client.get(ADMINS, headers=admin_headers)

        assert {a["username"] for a in response.json()} == {"sysadmin", "volunteer_a"}

    @pytest.mark.asyncio
    async def test_deactivate_blocks_existing_token(
        self, client: AsyncClient, volunteer, volunteer_headers, admin_headers
    ):
        response = await client.post(f"{ADMINS}/{volunteer.id}/deactivate", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["isActive"] is False
        me = await client.get(f"{AUTH}/me", headers=volunteer_headers)
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_delete_admin_with_requests_conflicts(
        self, client: AsyncClient, db_session, volunteer, admin_headers
    ):
        db_session.add(TechRequestFactory.create(assigned_admin_id=volunteer.id))
        await db_session.commit()

        response = await client.delete(f"{ADMINS}/{volunteer.id}", headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "admin_has_requests"

    @pytest.mark.asyncio
    async def test_delete_admin_without_requests(
        self, client: AsyncClient, volunteer, admin_headers
    ):
        response = await client.delete(f"{ADMINS}/{volunteer.id}", headers=admin_headers)

        assert response.status_code == 204
        again = await client.delete(f"{ADMINS}/{volunteer.id}", headers=admin_headers)
        assert again.status_code == 404


# ============================================================================
# Dashboard and calendar
# ============================================================================

class TestDashboard:
    @pytest.mark.asyncio
    async def test_counts(self, client: AsyncClient, db_session, volunteer_headers):
        db_session.add_all(
            [
                TechRequestFactory.create(status=RequestStatus.PENDING),
                TechRequestFactory.create(status=RequestStatus.PENDING),
                TechRequestFactory.create(status=RequestStatus.IN_PROGRESS),
                TechRequestFactory.create(status=RequestStatus.CANCELLED),
                SlotFactory.create(start_time="08:00", end_time="09:00"),
                SlotFactory.create(start_time="09:00", end_time="10:00", is_booked=True),
            ]
        )
        await db_session.commit()

        response = await client.get("/api/v1/admin/dashboard", headers=volunteer_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["requests"] == {
            "total": 4,
            "pending": 2,
            "inProgress": 1,
            "completed": 0,
            "cancelled": 1,
        }
        assert body["slots"] == {"total": 2, "booked": 1, "available": 1}
        assert len(body["recentRequests"]) == 4
        assert len(body["inProgressRequests"]) == 1


class TestCalendar:
    @pytest.mark.asyncio
    async def test_system_admin_sees_visits_and_free_slots(
        self, client: AsyncClient, db_session, volunteer, admin_headers
    ):
        db_session.add_all(
            [
                TechRequestFactory.create(
                    assigned_admin_id=volunteer.id,
                    scheduled_date="2025-03-10",
                    scheduled_time="09:30",
                ),
                SlotFactory.create(date="2025-03-11", start_time="10:00", end_time="11:00"),
            ]
        )
        await db_session.commit()

        response = await client.get(
            "/api/v1/admin/calendar",
            params={"dateFrom": "2025-03-01", "dateTo": "2025-03-31"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        events = response.json()
        assert [e["kind"] for e in events] == ["request", "slot"]
        assert events[0]["start"] == "2025-03-10T09:30"
        assert events[0]["end"] == "2025-03-10T10:30"
        assert events[1]["start"] == "2025-03-11T10:00"

    @pytest.mark.asyncio
    async def test_volunteer_sees_only_own_visits(
        self, client: AsyncClient, db_session, volunteer, other_volunteer, volunteer_headers
    ):
        db_session.add_all(
            [
                TechRequestFactory.create(
                    assigned_admin_id=volunteer.id, scheduled_date="2025-03-10", scheduled_time="09:00"
                ),
                TechRequestFactory.create(
                    assigned_admin_id=other_volunteer.id, scheduled_date="2025-03-10", scheduled_time="11:00"
                ),
                SlotFactory.create(date="2025-03-12"),
            ]
        )
        await db_session.commit()

        response = await client.get(
            "/api/v1/admin/calendar",
            params={"dateFrom": "2025-03-01", "dateTo": "2025-03-31"},
            headers=volunteer_headers,
        )

        events = response.json()
        assert len(events) == 1
        assert events[0]["assignedAdminId"] == volunteer.id

    @pytest.mark.asyncio
    async def test_reversed_range_is_400(self, client: AsyncClient, admin_headers):
        response = await client.get(
            "/api/v1/admin/calendar",
            params={"dateFrom": "2025-03-31", "dateTo": "2025-03-01"},
            headers=admin_headers,
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_range_is_required(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/v1/admin/calendar", headers=admin_headers)

        assert response.status_code == 422


# ============================================================================
# Notification log
# ============================================================================

class TestNotificationLogs:
    @pytest.mark.asyncio
    async def test_submission_is_logged(self, client: AsyncClient, admin_headers):
        await client.post(
            "/api/v1/requests",
            json={
                "fullName": "Eitan Azulay",
                "phone": "048123456",
                "email": "eitan@example.com",
                "address": "9 Moriah Ave, Haifa",
                "problemDescription": "Email client keeps asking for a password",
            },
        )

        response = await client.get("/api/v1/admin/notifications", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["logs"][0]["recipient"] == "eitan@example.com"
        assert body["logs"][0]["status"] == "sent"

    @pytest.mark.asyncio
    async def test_volunteer_cannot_read_log(self, client: AsyncClient, volunteer_headers):
        response = await client.get("/api/v1/admin/notifications", headers=volunteer_headers)

        assert response.status_code == 403


# ============================================================================
# Service endpoints
# ============================================================================

class TestServiceEndpoints:
    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/api/docs"

    @pytest.mark.asyncio
    async def test_health_ok(self, client: AsyncClient, monkeypatch):
        async def healthy():
            return True

        monkeypatch.setattr("app.routes.health.check_database", healthy)

        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_reports_unreachable_database(self, client: AsyncClient, monkeypatch):
        async def unhealthy():
            return False

        monkeypatch.setattr("app.routes.health.check_database", unhealthy)

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["services"]["database"]["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_correlation_id_is_echoed(self, client: AsyncClient):
        response = await client.get("/", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_correlation_id_is_generated(self, client: AsyncClient):
        response = await client.get("/")

        assert response.headers["X-Correlation-ID"]

    @pytest.mark.asyncio
    async def test_metrics_exposition(self, monkeypatch):
        from httpx import ASGITransport

        from app.factory import create_app
        from core.config import settings

        monkeypatch.setattr(settings.monitoring, "enable_metrics", True)
        app = create_app()

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/metrics/")

        assert response.status_code == 200
        assert "booking_operations_total" in response.text
