"""
Dashboard and calendar schemas.
"""
from typing import List, Literal, Optional

from core.schema_base import HTTPSchemaModel

from api.schemas.tech_request import TechRequestRead


class RequestCounts(HTTPSchemaModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    cancelled: int


class SlotCounts(HTTPSchemaModel):
    total: int
    booked: int
    available: int


class DashboardStats(HTTPSchemaModel):
    requests: RequestCounts
    slots: SlotCounts
    recent_requests: List[TechRequestRead]
    in_progress_requests: List[TechRequestRead]


class CalendarEvent(HTTPSchemaModel):
    """
    One calendar entry: a scheduled visit or a free slot.

    `start`/`end` are local "YYYY-MM-DDTHH:MM" strings.
    """
    id: str
    kind: Literal["request", "slot"]
    title: str
    start: str
    end: str
    request_id: Optional[int] = None
    slot_id: Optional[int] = None
    status: Optional[str] = None
    urgency_level: Optional[str] = None
    assigned_admin_id: Optional[int] = None
