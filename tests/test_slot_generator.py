from datetime import date

import pytest

from onecare import models
from onecare.domain.scheduling.schemas import (
    REASON_FULLY_BOOKED,
    REASON_HOLIDAY,
    REASON_NO_SESSION,
    REASON_NO_SLOTS,
    REASON_NON_WORKING_DAY,
    HolidayRange,
    SessionCalendar,
    TimeWindow,
)
from onecare.domain.scheduling.slot_generator import generate_slots, is_offered_slot

MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 6)
WEEKDAYS = [0, 1, 2, 3, 4, 5]


def calendar(morning=(9 * 60, 11 * 60), evening=None, minutes=30, days=WEEKDAYS) -> SessionCalendar:
    return SessionCalendar(
        doctor_id=1,
        clinic_id=1,
        working_days=days,
        morning=TimeWindow(start=morning[0], end=morning[1]) if morning else None,
        evening=TimeWindow(start=evening[0], end=evening[1]) if evening else None,
        slot_minutes=minutes,
    )


def test_morning_window_yields_four_half_hour_slots():
    result = generate_slots(calendar(), [], MONDAY, label_style="start")

    assert result.reason is None
    assert result.available == ["09:00 AM", "09:30 AM", "10:00 AM", "10:30 AM"]
    assert [(s.start, s.end) for s in result.slots] == [
        ("09:00", "09:30"),
        ("09:30", "10:00"),
        ("10:00", "10:30"),
        ("10:30", "11:00"),
    ]


def test_range_labels():
    result = generate_slots(calendar(), [], MONDAY, label_style="range")

    assert result.available[0] == "09:00 AM – 09:30 AM"
    assert result.available[-1] == "10:30 AM – 11:00 AM"


def test_window_may_close_at_midnight():
    result = generate_slots(calendar(morning=None, evening=(23 * 60, 24 * 60)), [], MONDAY, label_style="range")

    assert result.available == ["11:00 PM – 11:30 PM", "11:30 PM – 12:00 AM"]
    assert result.slots[-1].end == "24:00"


def test_slots_have_fixed_duration_and_increasing_starts():
    # 09:00-12:10 with 25 minute slots leaves a 15 minute tail that must not be offered
    result = generate_slots(calendar(morning=(540, 730), minutes=25), [], MONDAY)

    starts = [int(s.start[:2]) * 60 + int(s.start[3:]) for s in result.slots]
    ends = [int(s.end[:2]) * 60 + int(s.end[3:]) for s in result.slots]
    assert all(e - s == 25 for s, e in zip(starts, ends))
    assert starts == sorted(set(starts))
    assert ends[-1] <= 730
    assert len(result.slots) == 7


def test_morning_slots_come_before_evening_slots():
    result = generate_slots(calendar(evening=(17 * 60, 18 * 60)), [], MONDAY, label_style="start")

    assert result.groups["morning"] == ["09:00 AM", "09:30 AM", "10:00 AM", "10:30 AM"]
    assert result.groups["evening"] == ["05:00 PM", "05:30 PM"]
    assert result.available == result.groups["morning"] + result.groups["evening"]


def test_noon_and_midnight_labels():
    result = generate_slots(calendar(morning=(0, 30), evening=(12 * 60, 12 * 60 + 30)), [], MONDAY, label_style="start")

    assert result.available == ["12:00 AM", "12:00 PM"]


@pytest.mark.parametrize(
    "session",
    [
        calendar(),
        calendar(morning=None),
        calendar(days=[6]),
        None,
    ],
)
def test_holiday_blocks_every_session_configuration(session):
    holiday = HolidayRange(doctor_id=1, name="Conference", from_date=date(2030, 1, 5), to_date=date(2030, 1, 8))

    result = generate_slots(session, [holiday], MONDAY, doctor_id=1)

    assert result.reason == REASON_HOLIDAY
    assert result.available == []
    assert result.is_blocking
    assert "Conference" in result.message


def test_clinic_wide_holiday_applies_and_other_doctors_leave_does_not():
    clinic_wide = HolidayRange(doctor_id=None, name="Pongal", from_date=MONDAY, to_date=MONDAY)
    someone_else = HolidayRange(doctor_id=2, name="Leave", from_date=MONDAY, to_date=MONDAY)

    assert generate_slots(calendar(), [clinic_wide], MONDAY).reason == REASON_HOLIDAY
    assert generate_slots(calendar(), [someone_else], MONDAY).reason is None


def test_holiday_range_is_inclusive():
    holiday = HolidayRange(doctor_id=1, from_date=date(2030, 1, 1), to_date=MONDAY)

    assert generate_slots(calendar(), [holiday], MONDAY).reason == REASON_HOLIDAY
    assert generate_slots(calendar(), [holiday], date(2030, 1, 8)).reason is None


def test_non_working_day_names_the_weekday():
    result = generate_slots(calendar(), [], SUNDAY)

    assert result.reason == REASON_NON_WORKING_DAY
    assert result.message == "Doctor does not work on Sundays"
    assert result.available == []


def test_missing_session_is_a_reason_not_an_error():
    assert generate_slots(None, [], MONDAY).reason == REASON_NO_SESSION
    no_windows = generate_slots(calendar(morning=None), [], MONDAY)
    assert no_windows.reason == REASON_NO_SESSION
    assert not no_windows.is_blocking


def test_window_shorter_than_a_slot():
    result = generate_slots(calendar(morning=(540, 560)), [], MONDAY)

    assert result.reason == REASON_NO_SLOTS
    assert result.available == []


def test_booked_times_are_excluded_case_insensitively():
    result = generate_slots(calendar(), [], MONDAY, ["10:00 am", "09:00 AM – 09:30 AM"], label_style="start")

    assert result.available == ["09:30 AM", "10:30 AM"]


def test_fully_booked_day():
    booked = ["09:00 AM", "09:30 AM", "10:00 AM", "10:30 AM"]

    result = generate_slots(calendar(), [], MONDAY, booked)

    assert result.reason == REASON_FULLY_BOOKED
    assert result.available == []
    assert not result.is_blocking


def test_calendar_from_stored_session():
    record = models.DoctorSession(
        doctor_id=3,
        clinic_id=1,
        days=["monday", "Wed", "FRIDAY"],
        morning_start="09:00",
        morning_end="12:00",
        evening_start="-",
        evening_end="-",
        slot_minutes=20,
    )

    cal = SessionCalendar.from_record(record)

    assert cal.working_days == [0, 2, 4]
    assert cal.morning == TimeWindow(start=540, end=720)
    assert cal.evening is None
    assert cal.slot_minutes == 20


def test_calendar_without_days_closes_sunday_only():
    record = models.DoctorSession(doctor_id=3, clinic_id=1, days=[], morning_start="09:00", morning_end="10:00")

    cal = SessionCalendar.from_record(record)

    assert cal.working_days == WEEKDAYS
    assert generate_slots(cal, [], SUNDAY).reason == REASON_NON_WORKING_DAY


def test_offered_slot_check_ignores_bookings():
    cal = calendar()

    assert is_offered_slot(cal, MONDAY, "09:30 am")
    assert is_offered_slot(cal, MONDAY, "09:30 AM - 10:00 AM")
    assert not is_offered_slot(cal, MONDAY, "09:15 AM")
    assert not is_offered_slot(cal, SUNDAY, "09:30 AM")
    assert not is_offered_slot(None, MONDAY, "09:30 AM")
