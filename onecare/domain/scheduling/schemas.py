"""Scheduling domain schemas - Pydantic models for sessions, holidays and slots"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...config import DEFAULT_SLOT_MINUTES, DEFAULT_WORKING_DAYS
from ...shared.timefmt import format_minutes_24h
from ...shared.validators import WEEKDAY_NAMES, is_blank_time, normalize_weekday, parse_time_of_day

# Reason codes carried by SlotResult when no slot is offered
REASON_HOLIDAY = "holiday"
REASON_NON_WORKING_DAY = "non-working-day"
REASON_NO_SESSION = "no-session-configured"
REASON_NO_SLOTS = "no-slots"
REASON_FULLY_BOOKED = "fully-booked"

# Reasons that make a date unbookable regardless of which slot is picked
BLOCKING_REASONS = {REASON_HOLIDAY, REASON_NON_WORKING_DAY}


class TimeWindow(BaseModel):
    """A working window in minutes since midnight, end exclusive of the next slot"""

    start: int = Field(ge=0, le=24 * 60)
    end: int = Field(ge=0, le=24 * 60)


class SessionCalendar(BaseModel):
    """A doctor's recurring weekly working hours"""

    doctor_id: Optional[int] = None
    clinic_id: Optional[int] = None
    working_days: list[int] = Field(default_factory=list)  # 0 = Monday
    morning: Optional[TimeWindow] = None
    evening: Optional[TimeWindow] = None
    slot_minutes: int = Field(default=DEFAULT_SLOT_MINUTES, gt=0)

    def windows(self) -> list[tuple[str, TimeWindow]]:
        out = []
        if self.morning is not None:
            out.append(("morning", self.morning))
        if self.evening is not None:
            out.append(("evening", self.evening))
        return out

    @classmethod
    def from_record(cls, record) -> "SessionCalendar":
        """
        Build a calendar from a stored DoctorSession row.

        Values were validated when the session was saved; anything that still does not
        parse is treated as not configured rather than raising.
        """
        days = []
        for name in record.days or []:
            try:
                days.append(normalize_weekday(name))
            except ValueError:
                continue
        if not record.days:
            days = [normalize_weekday(d) for d in DEFAULT_WORKING_DAYS]

        return cls(
            doctor_id=record.doctor_id,
            clinic_id=record.clinic_id,
            working_days=sorted(set(days)),
            morning=_window_or_none(record.morning_start, record.morning_end),
            evening=_window_or_none(record.evening_start, record.evening_end),
            slot_minutes=record.slot_minutes if record.slot_minutes and record.slot_minutes > 0 else DEFAULT_SLOT_MINUTES,
        )


def _window_or_none(start: Optional[str], end: Optional[str]) -> Optional[TimeWindow]:
    if is_blank_time(start) or is_blank_time(end):
        return None
    try:
        return TimeWindow(start=parse_time_of_day(start), end=parse_time_of_day(end, end_of_day=True))
    except ValueError:
        return None


class HolidayRange(BaseModel):
    """Inclusive date range; doctor_id None means clinic-wide"""

    doctor_id: Optional[int] = None
    name: str = "Holiday"
    from_date: dt.date
    to_date: dt.date

    def covers(self, day: dt.date) -> bool:
        return self.from_date <= day <= self.to_date


class Slot(BaseModel):
    label: str
    start: str  # "HH:MM" 24h
    end: str
    window: str  # "morning" | "evening"
    duration_minutes: int


class SlotResult(BaseModel):
    """Bookable slots for one doctor on one date, or the reason there are none"""

    date: dt.date
    doctor_id: Optional[int] = None
    slots: list[Slot] = Field(default_factory=list)
    available: list[str] = Field(default_factory=list)  # flat labels, chronological
    groups: dict[str, list[str]] = Field(default_factory=dict)  # labels per window
    reason: Optional[str] = None
    message: Optional[str] = None
    slot_minutes: Optional[int] = None

    @property
    def is_blocking(self) -> bool:
        return self.reason in BLOCKING_REASONS


# ============================================================================
# SETTINGS FORMS
# ============================================================================


class DoctorSessionUpsert(BaseModel):
    """Schema for saving a doctor's working hours; rejects malformed configuration"""

    days: list[str] = Field(default_factory=list)
    morningStart: Optional[str] = None
    morningEnd: Optional[str] = None
    eveningStart: Optional[str] = None
    eveningEnd: Optional[str] = None
    slotMinutes: int = DEFAULT_SLOT_MINUTES

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: list[str]) -> list[str]:
        # Store the canonical short names
        return [WEEKDAY_NAMES[normalize_weekday(d)][:3] for d in v]

    @field_validator("morningStart", "eveningStart")
    @classmethod
    def validate_start(cls, v: Optional[str]) -> Optional[str]:
        if is_blank_time(v):
            return None
        return format_minutes_24h(parse_time_of_day(v))

    @field_validator("morningEnd", "eveningEnd")
    @classmethod
    def validate_end(cls, v: Optional[str]) -> Optional[str]:
        # A window may close at midnight, stored as "24:00"
        if is_blank_time(v):
            return None
        return format_minutes_24h(parse_time_of_day(v, end_of_day=True))

    @field_validator("slotMinutes")
    @classmethod
    def validate_slot_minutes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("slotMinutes must be greater than 0")
        return v

    @model_validator(mode="after")
    def validate_windows(self):
        for label, start, end in (
            ("morning", self.morningStart, self.morningEnd),
            ("evening", self.eveningStart, self.eveningEnd),
        ):
            if (start is None) != (end is None):
                raise ValueError(f"{label} session needs both a start and an end time")
            if start is not None and parse_time_of_day(end, end_of_day=True) <= parse_time_of_day(start):
                raise ValueError(f"{label} session end must be after its start")
        return self


class DoctorSessionResponse(BaseModel):
    doctorId: int
    clinicId: int
    days: list[str]
    morningStart: Optional[str] = None
    morningEnd: Optional[str] = None
    eveningStart: Optional[str] = None
    eveningEnd: Optional[str] = None
    slotMinutes: int


class HolidayCreate(BaseModel):
    """Schema for adding a leave; omit doctorId for a clinic-wide closure"""

    doctorId: Optional[int] = None
    name: str = "Holiday"
    fromDate: dt.date
    toDate: dt.date

    @model_validator(mode="after")
    def validate_range(self):
        if self.toDate < self.fromDate:
            raise ValueError("End date cannot be before start date")
        return self


class HolidayUpdate(BaseModel):
    """Schema for editing a leave; only the fields sent are changed, doctorId null means clinic-wide"""

    doctorId: Optional[int] = None
    name: Optional[str] = None
    fromDate: Optional[dt.date] = None
    toDate: Optional[dt.date] = None

    @model_validator(mode="after")
    def validate_range(self):
        if self.fromDate and self.toDate and self.toDate < self.fromDate:
            raise ValueError("End date cannot be before start date")
        return self


class HolidayResponse(BaseModel):
    id: int
    clinicId: int
    doctorId: Optional[int] = None
    name: str
    fromDate: dt.date
    toDate: dt.date
