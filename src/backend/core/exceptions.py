"""
Typed errors raised by the booking core.

Every error carries a `kind` (not_found, conflict, forbidden, validation) and a
stable `code`. Callers branch on the code (e.g. "slot_already_booked" vs
"slot_not_found") instead of matching message text. The HTTP status mapping
lives in app.factory.
"""

from typing import List, Optional


# Default human-readable message per error code.
ERROR_MESSAGES = {
    # not_found
    "slot_not_found": "Slot not found",
    "request_not_found": "Request not found",
    "admin_not_found": "Admin not found",
    # conflict
    "slot_already_booked": "Slot already booked",
    "slot_not_booked": "Slot is not currently booked",
    "slot_exists": "Slot already exists",
    "slot_in_use": "Cannot delete booked slot",
    "request_has_slot": "Request already has a booked slot",
    "request_already_assigned": "Request already assigned to another admin",
    "invalid_transition": "Status transition not allowed",
    "request_closed": "Request is already completed or cancelled",
    "admin_exists": "Admin already exists",
    "admin_has_requests": "Admin still has assigned requests",
    "store_timeout": "The operation timed out, please retry",
    # forbidden
    "fields_forbidden": "Not allowed to edit these fields",
    "reassign_forbidden": "Not allowed to reassign this request",
    "request_not_assigned": "Request is assigned to another admin",
    "role_forbidden": "Insufficient permissions",
    # validation
    "invalid_date": "Date must be in YYYY-MM-DD format",
    "invalid_time": "Time must be in HH:MM format",
    "invalid_time_range": "End time must be later than start time",
    "empty_update": "At least one field is required",
    "empty_dates": "Dates array is required",
    "invalid_field": "Invalid field value",
}


class BookingError(Exception):
    """Base class for errors raised by the booking core."""

    kind: str = "error"

    def __init__(
        self,
        code: str,
        message: Optional[str] = None,
        *,
        fields: Optional[List[str]] = None,
        retryable: bool = False,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code)
        self.fields = fields
        self.retryable = retryable
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Body returned to API clients."""
        body = {"detail": self.message, "kind": self.kind, "code": self.code}
        if self.fields:
            body["fields"] = self.fields
        if self.retryable:
            body["retryable"] = True
        return body


class NotFoundError(BookingError):
    """Referenced slot/request/admin does not exist."""

    kind = "not_found"


class ConflictError(BookingError):
    """The operation would violate a booking invariant."""

    kind = "conflict"


class ForbiddenError(BookingError):
    """The role policy denies the requested action."""

    kind = "forbidden"


class InvalidInputError(BookingError):
    """Malformed input reached the core boundary."""

    kind = "validation"
