"""
Prometheus metrics for booking operations.

Usage:
    from core.metrics import track_booking_operation, track_notification

    @staticmethod
    @track_booking_operation("book_slot")
    @transactional_database_operation("book_slot")
    async def book_slot(db, slot_id, request_id): ...

The default registry is served at /metrics (see app.factory).
"""

import functools
from typing import Callable

from prometheus_client import Counter

from .exceptions import BookingError

# ==============================================================================
# Business Metrics - Booking
# ==============================================================================

booking_operations_total = Counter(
    'booking_operations_total',
    'Slot and request operations by outcome',
    ['operation', 'outcome']  # outcome: success or the error code
)

request_status_changes_total = Counter(
    'request_status_changes_total',
    'Request status transitions',
    ['from_status', 'to_status']
)

# ==============================================================================
# Business Metrics - Notifications
# ==============================================================================

notifications_total = Counter(
    'notifications_total',
    'Customer notification attempts',
    ['status']  # sent / failed / not_sent
)


def track_booking_operation(operation: str) -> Callable:
    """Count each call of an async service operation by outcome."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                result = await func(*args, **kwargs)
            except BookingError as exc:
                booking_operations_total.labels(operation=operation, outcome=exc.code).inc()
                raise
            except Exception:
                booking_operations_total.labels(operation=operation, outcome="error").inc()
                raise
            booking_operations_total.labels(operation=operation, outcome="success").inc()
            return result

        return wrapper

    return decorator


def track_status_change(from_status: str, to_status: str):
    request_status_changes_total.labels(from_status=from_status, to_status=to_status).inc()


def track_notification(status: str):
    notifications_total.labels(status=status).inc()
