"""
Database models and enums for the visit booking system.
"""
from .enums import (
    AdminRole,
    NotificationStatus,
    NotificationType,
    RequestStatus,
    UrgencyLevel,
)
from .models import (
    AdminUser,
    AvailableSlot,
    NotificationLog,
    TableModel,
    TechRequest,
    utc_now,
)

__all__ = [
    "AdminRole",
    "AdminUser",
    "AvailableSlot",
    "NotificationLog",
    "NotificationStatus",
    "NotificationType",
    "RequestStatus",
    "TableModel",
    "TechRequest",
    "UrgencyLevel",
    "utc_now",
]
