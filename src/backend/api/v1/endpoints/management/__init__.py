"""Admin dashboard and management endpoints."""

from . import admins, dashboard, notification_logs

__all__ = [
    "admins",
    "dashboard",
    "notification_logs",
]
