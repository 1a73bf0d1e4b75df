"""
Format rules for dates, times and phone numbers.

Shared by the request/slot schemas (HTTP boundary) and by the services,
which re-check the rules that booking correctness depends on.
"""

import re
from datetime import date as date_type

from .exceptions import InvalidInputError

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"
# Local landline/mobile numbers: leading 0, then 8-9 digits
PHONE_PATTERN = r"^0[2-9]\d{7,8}$"

_DATE_RE = re.compile(DATE_PATTERN)
_TIME_RE = re.compile(TIME_PATTERN)


def is_valid_date(value: str) -> bool:
    """YYYY-MM-DD that is also a real calendar date."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    try:
        date_type.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_time(value: str) -> bool:
    return isinstance(value, str) and bool(_TIME_RE.match(value))


def normalize_time(value: str) -> str:
    """Zero-pad the hour so "9:30" and "09:30" compare equal."""
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


def check_date(value: str, field: str = "date") -> str:
    if not is_valid_date(value):
        raise InvalidInputError("invalid_date", fields=[field])
    return value


def check_time(value: str, field: str = "time") -> str:
    if not is_valid_time(value):
        raise InvalidInputError("invalid_time", fields=[field])
    return normalize_time(value)


def check_slot_window(date: str, start_time: str, end_time: str) -> tuple[str, str, str]:
    """
    Validate a slot's date and time range.

    Returns:
        (date, start_time, end_time) with times zero-padded

    Raises:
        InvalidInputError: bad format, or end_time not after start_time
    """
    date = check_date(date, "date")
    start_time = check_time(start_time, "start_time")
    end_time = check_time(end_time, "end_time")

    if end_time <= start_time:
        raise InvalidInputError("invalid_time_range", fields=["start_time", "end_time"])

    return date, start_time, end_time
