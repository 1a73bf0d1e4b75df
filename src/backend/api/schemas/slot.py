"""
Available slot schemas for API validation and serialization.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from core.schema_base import HTTPSchemaModel
from core.validation import DATE_PATTERN, TIME_PATTERN, is_valid_date, normalize_time

from api.schemas.tech_request import TechRequestRead


class SlotTimes(HTTPSchemaModel):
    """Start/end pair shared by single and bulk creation."""
    start_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM, 24-hour")
    end_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM, 24-hour")

    @field_validator("start_time", "end_time")
    @classmethod
    def pad_hour(cls, v: str) -> str:
        return normalize_time(v)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be later than startTime")
        return self


class SlotCreate(SlotTimes):
    date: str = Field(..., pattern=DATE_PATTERN, description="YYYY-MM-DD")

    @field_validator("date")
    @classmethod
    def real_calendar_date(cls, v: str) -> str:
        if not is_valid_date(v):
            raise ValueError("not a calendar date")
        return v


class SlotBulkCreate(SlotTimes):
    """One slot per date, all with the same times."""
    dates: List[str] = Field(..., min_length=1, max_length=366)

    @field_validator("dates")
    @classmethod
    def all_calendar_dates(cls, v: List[str]) -> List[str]:
        bad = [d for d in v if not is_valid_date(d)]
        if bad:
            raise ValueError(f"invalid dates: {', '.join(bad)}")
        return v


class SlotBook(HTTPSchemaModel):
    """Body of PUT /slots/{id}/book."""
    request_id: int = Field(..., gt=0)


class SlotRead(HTTPSchemaModel):
    id: int
    date: str
    start_time: str
    end_time: str
    is_booked: bool
    created_at: datetime
    updated_at: datetime


class SlotListResponse(HTTPSchemaModel):
    """Paginated list of slots."""
    slots: List[SlotRead]
    total: int
    page: int
    per_page: int
    total_pages: int


class SlotBulkCreateResponse(HTTPSchemaModel):
    created: int
    skipped: int
    slots: List[SlotRead]


class BookingResponse(HTTPSchemaModel):
    """Snapshots of both sides of a booking."""
    slot: SlotRead
    request: TechRequestRead


class SlotReleaseResponse(HTTPSchemaModel):
    slot: SlotRead
    cleared_request_ids: List[int]
    message: Optional[str] = None
