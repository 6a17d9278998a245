"""Slot label formatting"""

from .validators import parse_time_of_day

RANGE_SEPARATOR = " – "


def format_minutes_24h(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM"; the end of the day is "24:00" """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_minutes_12h(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM AM" """
    hours, mins = divmod(minutes, 60)
    hours %= 24
    period = "AM" if hours < 12 else "PM"
    display_hour = hours % 12
    if display_hour == 0:
        display_hour = 12
    return f"{display_hour:02d}:{mins:02d} {period}"


def slot_label(start: int, end: int, style: str = "start") -> str:
    if style == "range":
        return f"{format_minutes_12h(start)}{RANGE_SEPARATOR}{format_minutes_12h(end)}"
    return format_minutes_12h(start)


def normalize_label(label: str) -> str:
    """
    Canonical form of a stored or submitted slot label.

    "10:00 am" and "10:00 AM" compare equal, as do "9:00 AM" and "09:00 AM". Ranges may
    be separated by an en dash or a hyphen. Labels that do not parse are returned
    stripped and upper-cased.
    """
    raw = (label or "").strip().replace("–", "-")
    parts = [p.strip() for p in raw.split(" - ")]
    try:
        minutes = [parse_time_of_day(p) for p in parts]
    except ValueError:
        return raw.upper()
    return RANGE_SEPARATOR.join(format_minutes_12h(m) for m in minutes)


def label_start(label: str) -> str:
    """Start part of a range label ("09:00 AM – 09:30 AM" -> "09:00 AM")"""
    return normalize_label(label).split(RANGE_SEPARATOR)[0]
