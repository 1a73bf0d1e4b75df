"""
Enums for database models.

Values are stored as plain strings; comparisons against raw column values
work because every enum here is a `str` subclass.
"""
from enum import Enum


class UrgencyLevel(str, Enum):
    """How urgent the customer says the problem is."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RequestStatus(str, Enum):
    """
    Lifecycle of a tech request.

    pending -> in_progress -> completed | cancelled. cancelled is reachable
    from any non-terminal state; completed and cancelled are terminal.
    """
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestStatus.COMPLETED, RequestStatus.CANCELLED)


class AdminRole(str, Enum):
    """Role of an authenticated admin principal."""
    SYSTEM_ADMIN = "SYSTEM_ADMIN"
    VOLUNTEER = "VOLUNTEER"


class NotificationStatus(str, Enum):
    """Outcome of a single notification attempt."""
    SENT = "sent"
    FAILED = "failed"
    NOT_SENT = "not_sent"


class NotificationType(str, Enum):
    """Channel used for a notification."""
    EMAIL = "email"
