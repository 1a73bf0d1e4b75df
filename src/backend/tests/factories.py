"""
Test data factories for generating realistic test data.

Usage:
    admin = AdminUserFactory.create_system_admin()
    request = TechRequestFactory.create(assigned_admin_id=admin.id)
    slot = SlotFactory.create(date="2025-03-10")
"""

import uuid
from datetime import date as date_type, timedelta
from typing import List, Optional, Tuple

import bcrypt

from core.security import create_access_token
from db.enums import AdminRole, RequestStatus, UrgencyLevel
from db.models import AdminUser, AvailableSlot, TechRequest

DEFAULT_PASSWORD = "correct-horse-42"

# Hashed once per run; bcrypt at the lowest cost is still the slow part
_DEFAULT_HASH = bcrypt.hashpw(DEFAULT_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


def _unique_suffix() -> str:
    """Generate a unique suffix for test data."""
    return uuid.uuid4().hex[:8]


class AdminUserFactory:
    """Factory for creating AdminUser instances."""

    @classmethod
    def create(
        cls,
        username: Optional[str] = None,
        role: AdminRole = AdminRole.VOLUNTEER,
        is_active: bool = True,
        password: Optional[str] = None,
    ) -> AdminUser:
        """Create an AdminUser; the password defaults to DEFAULT_PASSWORD."""
        if username is None:
            username = f"{role.value.lower()}_{_unique_suffix()}"

        password_hash = _DEFAULT_HASH
        if password is not None:
            password_hash = bcrypt.hashpw(
                password.encode("utf-8"), bcrypt.gensalt(rounds=4)
            ).decode("utf-8")

        return AdminUser(
            username=username,
            password_hash=password_hash,
            role=role.value,
            is_active=is_active,
        )

    @classmethod
    def create_system_admin(cls, **kwargs) -> AdminUser:
        kwargs.setdefault("role", AdminRole.SYSTEM_ADMIN)
        return cls.create(**kwargs)

    @classmethod
    def create_volunteer(cls, **kwargs) -> AdminUser:
        kwargs.setdefault("role", AdminRole.VOLUNTEER)
        return cls.create(**kwargs)


class TechRequestFactory:
    """Factory for creating TechRequest instances."""

    FIRST_NAMES = ["Dana", "Yossi", "Miriam", "Avi", "Noa", "Eitan", "Ruth", "Moshe"]
    LAST_NAMES = ["Cohen", "Levi", "Mizrahi", "Peretz", "Biton", "Friedman", "Azulay", "Katz"]

    @classmethod
    def create(
        cls,
        full_name: Optional[str] = None,
        phone: str = "0501234567",
        email: Optional[str] = None,
        address: str = "12 Herzl Street, Haifa",
        problem_description: str = "Printer stopped working after an update",
        urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM,
        status: RequestStatus = RequestStatus.PENDING,
        notes: Optional[str] = None,
        assigned_admin_id: Optional[int] = None,
        booked_slot_id: Optional[int] = None,
        scheduled_date: Optional[str] = None,
        scheduled_time: Optional[str] = None,
    ) -> TechRequest:
        """Create a TechRequest with realistic defaults."""
        suffix = _unique_suffix()
        idx = int(suffix, 16) % len(cls.FIRST_NAMES)

        if full_name is None:
            full_name = f"{cls.FIRST_NAMES[idx]} {cls.LAST_NAMES[idx]}"
        if email is None:
            email = f"customer_{suffix}@example.com"

        return TechRequest(
            full_name=full_name,
            phone=phone,
            email=email,
            address=address,
            problem_description=problem_description,
            urgency_level=urgency_level.value,
            status=status.value,
            notes=notes,
            assigned_admin_id=assigned_admin_id,
            booked_slot_id=booked_slot_id,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
        )


class SlotFactory:
    """Factory for creating AvailableSlot instances."""

    @classmethod
    def create(
        cls,
        date: Optional[str] = None,
        start_time: str = "10:00",
        end_time: str = "12:00",
        is_booked: bool = False,
    ) -> AvailableSlot:
        """Create an AvailableSlot; the date defaults to one week from today."""
        if date is None:
            date = future_date(7)
        return AvailableSlot(
            date=date,
            start_time=start_time,
            end_time=end_time,
            is_booked=is_booked,
        )


def future_date(days: int) -> str:
    """YYYY-MM-DD `days` from today."""
    return (date_type.today() + timedelta(days=days)).isoformat()


class RecordingNotifier:
    """Notifier double that records every call."""

    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.is_configured = True
        self.result = result
        self.error = error
        self.calls: List[Tuple[str, str, int, RequestStatus]] = []

    async def notify_status_change(self, email, name, request_id, status) -> bool:
        self.calls.append((email, name, request_id, RequestStatus(status)))
        if self.error is not None:
            raise self.error
        return self.result

    @property
    def statuses(self) -> List[RequestStatus]:
        return [call[3] for call in self.calls]


def auth_headers(admin: AdminUser) -> dict:
    """Bearer header for `admin`."""
    role = getattr(admin.role, "value", admin.role)
    token = create_access_token(admin.id, admin.username, role)
    return {"Authorization": f"Bearer {token}"}
