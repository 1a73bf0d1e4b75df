"""
Tech request schemas for API validation and serialization.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from core.sanitizer import strip_markup
from core.schema_base import HTTPSchemaModel
from core.validation import DATE_PATTERN, PHONE_PATTERN, TIME_PATTERN, is_valid_date
from db.enums import RequestStatus, UrgencyLevel

# Columns that may be edited but never cleared
NON_NULLABLE_FIELDS = (
    "full_name",
    "phone",
    "address",
    "problem_description",
    "urgency_level",
    "status",
)


class TechRequestCreate(HTTPSchemaModel):
    """Public submission form."""
    full_name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., pattern=PHONE_PATTERN, description="Local phone number, e.g. 0501234567")
    email: EmailStr
    address: str = Field(..., min_length=5, max_length=200)
    problem_description: str = Field(..., min_length=10, max_length=1000)
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM

    @field_validator("full_name", "address", "problem_description")
    @classmethod
    def strip_html(cls, v: str) -> str:
        cleaned = strip_markup(v)
        if not cleaned:
            raise ValueError("must not be empty")
        return cleaned


class TechRequestUpdate(HTTPSchemaModel):
    """
    Admin edit of a request. Only the fields sent are applied.

    Which fields a principal may send is decided by the role policy, not here.
    """
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, min_length=5, max_length=200)
    problem_description: Optional[str] = Field(None, min_length=10, max_length=1000)
    urgency_level: Optional[UrgencyLevel] = None
    status: Optional[RequestStatus] = None
    notes: Optional[str] = Field(None, max_length=500)
    scheduled_date: Optional[str] = Field(None, pattern=DATE_PATTERN)
    scheduled_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    assigned_admin_id: Optional[int] = None

    @field_validator("scheduled_date")
    @classmethod
    def real_calendar_date(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_date(v):
            raise ValueError("not a calendar date")
        return v

    @field_validator("full_name", "address", "problem_description", "notes")
    @classmethod
    def strip_html(cls, v: Optional[str]) -> Optional[str]:
        return strip_markup(v)

    @model_validator(mode="after")
    def reject_cleared_required_fields(self):
        """Required columns may be changed but not set to null."""
        cleared = [
            name for name in NON_NULLABLE_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class TakeRequest(HTTPSchemaModel):
    """Body of POST /requests/{id}/take."""
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("notes")
    @classmethod
    def strip_html(cls, v: Optional[str]) -> Optional[str]:
        return strip_markup(v)


class TechRequestRead(HTTPSchemaModel):
    """Full request as seen by admins."""
    id: int
    full_name: str
    phone: str
    email: Optional[str] = None
    address: str
    problem_description: str
    urgency_level: UrgencyLevel
    status: RequestStatus
    notes: Optional[str] = None
    scheduled_date: Optional[str] = None
    scheduled_time: Optional[str] = None
    assigned_admin_id: Optional[int] = None
    booked_slot_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class TechRequestSubmitted(HTTPSchemaModel):
    """What the public submitter gets back."""
    id: int
    status: RequestStatus
    created_at: datetime


class TechRequestListResponse(HTTPSchemaModel):
    """Paginated list of requests."""
    requests: List[TechRequestRead]
    total: int
    page: int
    per_page: int
    total_pages: int
