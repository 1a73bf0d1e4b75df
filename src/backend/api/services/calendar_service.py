"""
Calendar view for the admin UI.

System admins see every scheduled visit in the range plus every free slot;
volunteers see only the visits assigned to them. A visit is shown as one
hour starting at its scheduled time.
"""

from datetime import datetime, timedelta
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InvalidInputError
from core.validation import check_date
from crud import slot_crud, tech_request_crud

from api.schemas.dashboard import CalendarEvent
from api.services.role_policy import Principal

VISIT_LENGTH = timedelta(hours=1)
MAX_RANGE_DAYS = 92


def _visit_window(date: str, time: str) -> tuple[str, str]:
    start = datetime.fromisoformat(f"{date}T{time}")
    end = start + VISIT_LENGTH
    return start.strftime("%Y-%m-%dT%H:%M"), end.strftime("%Y-%m-%dT%H:%M")


class CalendarService:
    """Role-scoped calendar events."""

    @staticmethod
    async def get_events(
        db: AsyncSession, principal: Principal, date_from: str, date_to: str
    ) -> List[CalendarEvent]:
        """
        Events between two inclusive YYYY-MM-DD dates, ordered by start.

        Raises:
            InvalidInputError: bad dates, reversed range or a range over ~3 months
        """
        check_date(date_from, "date_from")
        check_date(date_to, "date_to")
        span = datetime.fromisoformat(date_to) - datetime.fromisoformat(date_from)
        if span.days < 0 or span.days > MAX_RANGE_DAYS:
            raise InvalidInputError(
                "invalid_field",
                f"Date range must be between 0 and {MAX_RANGE_DAYS} days",
                fields=["date_from", "date_to"],
            )

        assigned_filter = None if principal.is_system_admin else principal.id
        requests = await tech_request_crud.scheduled_in_range(
            db, date_from, date_to, assigned_admin_id=assigned_filter
        )

        events: List[CalendarEvent] = []
        for request in requests:
            if not request.scheduled_time:
                continue
            start, end = _visit_window(request.scheduled_date, request.scheduled_time)
            events.append(
                CalendarEvent(
                    id=f"request-{request.id}",
                    kind="request",
                    title=f"{request.full_name} ({request.urgency_level})",
                    start=start,
                    end=end,
                    request_id=request.id,
                    slot_id=request.booked_slot_id,
                    status=str(getattr(request.status, "value", request.status)),
                    urgency_level=str(getattr(request.urgency_level, "value", request.urgency_level)),
                    assigned_admin_id=request.assigned_admin_id,
                )
            )

        if principal.is_system_admin:
            for slot in await slot_crud.list_unbooked_in_range(db, date_from, date_to):
                events.append(
                    CalendarEvent(
                        id=f"slot-{slot.id}",
                        kind="slot",
                        title="Available",
                        start=f"{slot.date}T{slot.start_time}",
                        end=f"{slot.date}T{slot.end_time}",
                        slot_id=slot.id,
                    )
                )

        events.sort(key=lambda event: (event.start, event.id))
        return events
