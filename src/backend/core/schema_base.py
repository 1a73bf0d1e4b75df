"""
Base schema model for API requests and responses.

Provides camelCase field aliases for the admin frontend, datetime
serialization with a UTC indicator, and ORM-mode conversion.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_serializer


def to_camel(string: str) -> str:
    """
    Convert snake_case to camelCase.

    Example:
        >>> to_camel("booked_slot_id")
        'bookedSlotId'
    """
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


def serialize_datetime(dt: datetime | None) -> str | None:
    """
    Serialize a datetime to ISO 8601 with a 'Z' suffix.

    Stored datetimes are UTC and timezone-naive; aware values are converted
    to UTC first.
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)

    return dt.isoformat() + "Z"


class HTTPSchemaModel(BaseModel):
    """
    Base model for all HTTP API schemas.

    - camelCase aliases on output, snake_case or camelCase accepted on input
    - builds from ORM objects (from_attributes=True)
    - datetimes serialized as "2025-03-10T10:00:00Z"
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_serializer("*", mode="wrap")
    @classmethod
    def serialize_any_datetime(cls, value: Any, handler: Any) -> Any:
        if isinstance(value, datetime):
            return serialize_datetime(value)
        return handler(value)
