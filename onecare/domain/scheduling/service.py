"""Scheduling service - session settings, holidays and slot lookup"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Doctor, DoctorSession, Holiday
from ..tenancy.schemas import ClinicScope
from ..tenancy.service import ClinicScopeResolver
from .repository import SchedulingRepository
from .schemas import (
    DoctorSessionUpsert,
    HolidayCreate,
    HolidayRange,
    HolidayUpdate,
    SessionCalendar,
    SlotResult,
)
from .slot_generator import generate_slots

logger = logging.getLogger(__name__)


class SchedulingService:
    """Service layer for doctor availability"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()
        self.resolver = ClinicScopeResolver(db)

    def get_calendar(self, doctor: Doctor) -> Optional[SessionCalendar]:
        record = self.repo.get_session(self.db, doctor.id)
        if record is None:
            return None
        return SessionCalendar.from_record(record)

    def holiday_ranges(self, scope: ClinicScope, doctor_id: int) -> list[HolidayRange]:
        return [
            HolidayRange(doctor_id=h.doctor_id, name=h.name, from_date=h.from_date, to_date=h.to_date)
            for h in self.repo.list_holidays(self.db, scope.clinic_id, doctor_id)
        ]

    def booked_times(self, doctor_id: int, day: date) -> list[str]:
        return self.repo.booked_times(self.db, doctor_id, day)

    def get_slots(self, scope: ClinicScope, doctor_id: int, day: date) -> SlotResult:
        """Available slots of a clinic doctor; holidays and off days come back as data"""
        doctor = self.resolver.doctor(scope, doctor_id)
        return generate_slots(
            self.get_calendar(doctor),
            self.holiday_ranges(scope, doctor.id),
            day,
            self.booked_times(doctor.id, day),
            doctor_id=doctor.id,
        )

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_session(self, scope: ClinicScope, doctor_id: int) -> DoctorSession:
        doctor = self.resolver.doctor(scope, doctor_id)
        record = self.repo.get_session(self.db, doctor.id)
        if record is None:
            raise HTTPException(status_code=404, detail="Doctor has not configured their schedule")
        return record

    def save_session(self, scope: ClinicScope, doctor_id: int, data: DoctorSessionUpsert) -> DoctorSession:
        doctor = self.resolver.doctor(scope, doctor_id)
        record = self.repo.upsert_session(
            self.db,
            doctor,
            days=data.days,
            morning_start=data.morningStart,
            morning_end=data.morningEnd,
            evening_start=data.eveningStart,
            evening_end=data.eveningEnd,
            slot_minutes=data.slotMinutes,
        )
        logger.info(f"✅ Saved session for doctor {doctor.id} (clinic {scope.clinic_id})")
        return record

    def delete_session(self, scope: ClinicScope, doctor_id: int) -> dict:
        """Remove a doctor's working hours; slot lookups then report no session configured"""
        record = self.get_session(scope, doctor_id)
        self.repo.delete_session(self.db, record)
        logger.info(f"🗑️ Removed session for doctor {doctor_id} (clinic {scope.clinic_id})")
        return {"message": "Session deleted"}

    def list_holidays(self, scope: ClinicScope, doctor_id: Optional[int] = None) -> list[Holiday]:
        if doctor_id is not None:
            self.resolver.doctor(scope, doctor_id)
        return self.repo.list_holidays(self.db, scope.clinic_id, doctor_id)

    def add_holiday(self, scope: ClinicScope, data: HolidayCreate) -> Holiday:
        if data.doctorId is not None:
            self.resolver.doctor(scope, data.doctorId)
        holiday = self.repo.create_holiday(
            self.db,
            scope.clinic_id,
            doctor_id=data.doctorId,
            name=data.name,
            from_date=data.fromDate,
            to_date=data.toDate,
        )
        logger.info(
            f"🏖️ Holiday {holiday.id} added for {'doctor ' + str(data.doctorId) if data.doctorId else 'whole clinic'}"
            f" {data.fromDate} to {data.toDate}"
        )
        return holiday

    def update_holiday(self, scope: ClinicScope, holiday_id: int, data: HolidayUpdate) -> Holiday:
        holiday = self._get_holiday(scope, holiday_id)
        fields = {}
        if "doctorId" in data.model_fields_set:
            if data.doctorId is not None:
                self.resolver.doctor(scope, data.doctorId)
            fields["doctor_id"] = data.doctorId
        if data.name is not None:
            fields["name"] = data.name
        if data.fromDate is not None:
            fields["from_date"] = data.fromDate
        if data.toDate is not None:
            fields["to_date"] = data.toDate

        # The edited range is checked against the stored dates it keeps
        if fields.get("to_date", holiday.to_date) < fields.get("from_date", holiday.from_date):
            raise HTTPException(status_code=400, detail="End date cannot be before start date")

        holiday = self.repo.update_holiday(self.db, holiday, **fields)
        logger.info(f"🏖️ Holiday {holiday.id} updated: {holiday.from_date} to {holiday.to_date}")
        return holiday

    def delete_holiday(self, scope: ClinicScope, holiday_id: int) -> dict:
        self.repo.delete_holiday(self.db, self._get_holiday(scope, holiday_id))
        return {"message": "Holiday deleted"}

    def _get_holiday(self, scope: ClinicScope, holiday_id: int) -> Holiday:
        holiday = self.repo.get_holiday(self.db, scope.clinic_id, holiday_id)
        if not holiday:
            raise HTTPException(status_code=404, detail="Holiday not found")
        return holiday
