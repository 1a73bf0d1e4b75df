"""
Database models for the visit booking system.

Dates are stored as `YYYY-MM-DD` strings and times as `HH:MM` strings so a
slot's (date, start_time) can be compared verbatim with a request's
(scheduled_date, scheduled_time).
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlmodel import Field, SQLModel

from .enums import AdminRole, NotificationStatus, NotificationType, RequestStatus, UrgencyLevel


def utc_now():
    """
    Current time in UTC (timezone-aware) for database storage.

    Timestamp columns are `DateTime(timezone=True)`. SQLite hands them back
    naive, which core.schema_base treats as UTC.
    """
    return datetime.now(timezone.utc)


class TableModel(SQLModel):
    """Base table model with common functionality."""

    pass


class AdminUser(TableModel, table=True):
    """Authenticated staff member: a system admin or a volunteer."""

    __tablename__ = "admin_users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Login name",
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="bcrypt hash",
    )
    role: AdminRole = Field(
        default=AdminRole.VOLUNTEER,
        sa_column=Column(String(20), nullable=False, default=AdminRole.VOLUNTEER.value),
        description="SYSTEM_ADMIN or VOLUNTEER",
    )
    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, default=True, nullable=False),
        description="Inactive admins cannot log in or be assigned",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
        description="Creation timestamp",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": utc_now,
        },
        description="Last update timestamp",
    )

    __table_args__ = (
        Index("ix_admin_users_role", "role"),
        Index("ix_admin_users_is_active", "is_active"),
    )


class AvailableSlot(TableModel, table=True):
    """A bookable visit window."""

    __tablename__ = "available_slots"

    id: Optional[int] = Field(default=None, primary_key=True)
    date: str = Field(
        sa_column=Column(String(10), nullable=False),
        description="YYYY-MM-DD",
    )
    start_time: str = Field(
        sa_column=Column(String(5), nullable=False),
        description="HH:MM, 24-hour",
    )
    end_time: str = Field(
        sa_column=Column(String(5), nullable=False),
        description="HH:MM, 24-hour, later than start_time",
    )
    is_booked: bool = Field(
        default=False,
        sa_column=Column(Boolean, default=False, nullable=False),
        description="True while a request holds this slot",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
        description="Creation timestamp",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": utc_now,
        },
        description="Last update timestamp",
    )

    __table_args__ = (
        UniqueConstraint("date", "start_time", "end_time", name="uq_available_slots_window"),
        Index("ix_available_slots_date_start", "date", "start_time"),
        Index("ix_available_slots_is_booked", "is_booked"),
    )


class TechRequest(TableModel, table=True):
    """A customer's request for a tech-support visit."""

    __tablename__ = "tech_requests"

    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Customer full name",
    )
    phone: str = Field(
        sa_column=Column(String(20), nullable=False),
        description="Customer phone number",
    )
    email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Customer email; status notifications go here",
    )
    address: str = Field(
        sa_column=Column(String(200), nullable=False),
        description="Visit address",
    )
    problem_description: str = Field(
        sa_column=Column(Text, nullable=False),
        description="What the customer needs help with",
    )
    urgency_level: UrgencyLevel = Field(
        default=UrgencyLevel.MEDIUM,
        sa_column=Column(String(10), nullable=False, default=UrgencyLevel.MEDIUM.value),
    )
    status: RequestStatus = Field(
        default=RequestStatus.PENDING,
        sa_column=Column(String(20), nullable=False, default=RequestStatus.PENDING.value),
    )
    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Free-text notes from the handling admin",
    )
    scheduled_date: Optional[str] = Field(
        default=None,
        sa_column=Column(String(10), nullable=True),
        description="YYYY-MM-DD of the visit",
    )
    scheduled_time: Optional[str] = Field(
        default=None,
        sa_column=Column(String(5), nullable=True),
        description="HH:MM of the visit",
    )
    assigned_admin_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("admin_users.id"), nullable=True),
        description="Admin handling this request",
    )
    booked_slot_id: Optional[int] = Field(
        default=None,
        sa_column=Column(
            Integer,
            ForeignKey("available_slots.id", ondelete="SET NULL"),
            nullable=True,
        ),
        description="Slot this request holds; at most one request per slot",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
        description="Creation timestamp",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": utc_now,
        },
        description="Last update timestamp",
    )

    __table_args__ = (
        UniqueConstraint("booked_slot_id", name="uq_tech_requests_booked_slot_id"),
        Index("ix_tech_requests_status", "status"),
        Index("ix_tech_requests_assigned_admin_id", "assigned_admin_id"),
        Index("ix_tech_requests_created_at", "created_at"),
        Index("ix_tech_requests_scheduled_date", "scheduled_date"),
    )


class NotificationLog(TableModel, table=True):
    """One row per attempt to notify a customer about a status change."""

    __tablename__ = "notification_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    type: NotificationType = Field(
        default=NotificationType.EMAIL,
        sa_column=Column(String(20), nullable=False, default=NotificationType.EMAIL.value),
    )
    recipient: str = Field(
        sa_column=Column(String(255), nullable=False),
    )
    message: str = Field(
        sa_column=Column(Text, nullable=False),
        description="Subject line or failure reason",
    )
    status: NotificationStatus = Field(
        sa_column=Column(String(20), nullable=False),
    )
    request_id: Optional[int] = Field(
        default=None,
        sa_column=Column(
            Integer,
            ForeignKey("tech_requests.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    sent_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )

    __table_args__ = (
        Index("ix_notification_logs_status", "status"),
        Index("ix_notification_logs_created_at", "created_at"),
    )
