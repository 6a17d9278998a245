"""
Slot generation

Turns a doctor's weekly session into the bookable time slots of one date. Pure: no
database access, no clock, no timezone conversion. All arithmetic is in integer minutes
since midnight in the clinic's wall-clock time.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from ...config import SLOT_LABEL_STYLE
from ...shared.timefmt import format_minutes_24h, label_start, slot_label
from ...shared.validators import WEEKDAY_NAMES
from .schemas import (
    REASON_FULLY_BOOKED,
    REASON_HOLIDAY,
    REASON_NO_SESSION,
    REASON_NO_SLOTS,
    REASON_NON_WORKING_DAY,
    HolidayRange,
    SessionCalendar,
    Slot,
    SlotResult,
    TimeWindow,
)

logger = logging.getLogger(__name__)


def window_candidates(window: TimeWindow, duration: int) -> list[tuple[int, int]]:
    """Every [t, t + duration] that fits inside the window, walking from its start"""
    out = []
    t = window.start
    while t + duration <= window.end:
        out.append((t, t + duration))
        t += duration
    return out


def find_holiday(
    holidays: Iterable[HolidayRange], day: date, doctor_id: Optional[int] = None
) -> Optional[HolidayRange]:
    """First holiday covering the day that applies to the doctor (or to the whole clinic)"""
    for holiday in holidays:
        if holiday.doctor_id is not None and doctor_id is not None and holiday.doctor_id != doctor_id:
            continue
        if holiday.covers(day):
            return holiday
    return None


def generate_slots(
    session: Optional[SessionCalendar],
    holidays: Iterable[HolidayRange],
    day: date,
    booked_times: Iterable[str] = (),
    *,
    doctor_id: Optional[int] = None,
    label_style: Optional[str] = None,
) -> SlotResult:
    """
    Bookable slots of one doctor on one date.

    Precedence: a holiday blocks the day whatever the session says; then a missing
    session (or one without any window); then a weekday the doctor does not work. Slots
    already in ``booked_times`` are left out; labels are compared on their start time
    and case-insensitively, so "10:00 am" excludes "10:00 AM – 10:30 AM".
    """
    style = label_style or SLOT_LABEL_STYLE
    doctor_id = doctor_id if doctor_id is not None else (session.doctor_id if session else None)

    holiday = find_holiday(holidays, day, doctor_id)
    if holiday is not None:
        return SlotResult(
            date=day,
            doctor_id=doctor_id,
            reason=REASON_HOLIDAY,
            message=(
                f"Doctor is on holiday: {holiday.name} "
                f"({holiday.from_date.isoformat()} to {holiday.to_date.isoformat()})"
            ),
        )

    if session is None or not session.windows():
        return SlotResult(
            date=day,
            doctor_id=doctor_id,
            reason=REASON_NO_SESSION,
            message="Doctor has not configured their schedule",
        )

    if day.weekday() not in set(session.working_days):
        return SlotResult(
            date=day,
            doctor_id=doctor_id,
            reason=REASON_NON_WORKING_DAY,
            message=f"Doctor does not work on {WEEKDAY_NAMES[day.weekday()]}s",
            slot_minutes=session.slot_minutes,
        )

    booked = {label_start(t) for t in booked_times if t}
    duration = session.slot_minutes

    slots: list[Slot] = []
    groups: dict[str, list[str]] = {}
    candidate_count = 0
    for window_name, window in session.windows():
        labels = groups.setdefault(window_name, [])
        for start, end in window_candidates(window, duration):
            candidate_count += 1
            label = slot_label(start, end, style)
            if label_start(label) in booked:
                continue
            slots.append(
                Slot(
                    label=label,
                    start=format_minutes_24h(start),
                    end=format_minutes_24h(end),
                    window=window_name,
                    duration_minutes=duration,
                )
            )
            labels.append(label)

    reason = None
    message = None
    if candidate_count == 0:
        reason = REASON_NO_SLOTS
        message = "No slot fits inside the configured session"
    elif not slots:
        reason = REASON_FULLY_BOOKED
        message = "All slots are booked for this day"

    logger.debug(f"Generated {len(slots)}/{candidate_count} slots for doctor {doctor_id} on {day}")

    return SlotResult(
        date=day,
        doctor_id=doctor_id,
        slots=slots,
        available=[s.label for s in slots],
        groups=groups,
        reason=reason,
        message=message,
        slot_minutes=duration,
    )


def is_offered_slot(session: Optional[SessionCalendar], day: date, time_label: str) -> bool:
    """Whether the label is one of the slots the session produces on that day, bookings ignored"""
    if session is None:
        return False
    result = generate_slots(session, [], day, [], label_style="start")
    return label_start(time_label) in {s.label for s in result.slots}
