"""Shared validation utilities"""

import re
from typing import Optional

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$")


def is_blank_time(value: Optional[str]) -> bool:
    """A window boundary left empty or set to "-" means the window is not configured"""
    return value is None or not str(value).strip() or str(value).strip() == "-"


def parse_time_of_day(value: str, end_of_day: bool = False) -> int:
    """
    Parse a wall-clock time into minutes since midnight.

    Accepts "HH:MM" (24h, optional seconds) and "hh:mm AM/PM". With end_of_day, "24:00"
    is also accepted and means midnight at the end of the day (1440).

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if value is None:
        raise ValueError("Time is required")

    raw = str(value).strip()

    match = _TIME_24H.match(raw)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if end_of_day and hours == 24 and minutes == 0:
            return 24 * 60
        if hours > 23 or minutes > 59:
            raise ValueError(f"Invalid time: {value}")
        return hours * 60 + minutes

    match = _TIME_12H.match(raw)
    if match:
        hours, minutes, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
        if hours < 1 or hours > 12 or minutes > 59:
            raise ValueError(f"Invalid time: {value}")
        if hours == 12:
            hours = 0
        if period == "PM":
            hours += 12
        return hours * 60 + minutes

    raise ValueError(f"Time must be HH:MM (24h) or hh:mm AM/PM, got: {value}")


def normalize_weekday(value: str) -> int:
    """
    Map a weekday name to its index (0 = Monday, 6 = Sunday).

    Long ("Monday") and short ("Mon") forms are accepted, case-insensitively.

    Raises:
        ValueError: If the name is not a weekday
    """
    clean = str(value or "").strip().lower()
    for index, name in enumerate(WEEKDAY_NAMES):
        if clean in (name.lower(), name[:3].lower()):
            return index
    raise ValueError(f"Unknown weekday: {value}")


def parse_amount(value) -> float:
    """Coerce a form amount to float; missing or non-numeric values count as 0"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if amount != amount:  # NaN
        return 0.0
    return amount


def validate_subdomain(subdomain: Optional[str]) -> Optional[str]:
    """Normalize a clinic subdomain label"""
    if not subdomain:
        return subdomain

    subdomain = subdomain.strip().lower()
    if not re.match(r"^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?$", subdomain):
        raise ValueError("Invalid subdomain format")
    return subdomain
