"""Booking service - runs the wizard and creates appointments"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Appointment
from ..scheduling.service import SchedulingService
from ..scheduling.slot_generator import find_holiday, is_offered_slot
from ..tenancy.schemas import ClinicScope
from ..tenancy.service import ClinicScopeResolver, services_for_doctor
from . import workflow
from .repository import AppointmentRepository
from .schemas import (
    OPEN_STATUSES,
    BookingRequest,
    BookingResponse,
    PatientSession,
    StaffBookingRequest,
    WorkflowAction,
    WorkflowState,
)
from .workflow import SlotUnavailableError

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "This time slot is no longer available. Please choose another slot."
SLOT_INDEX = "uq_appointments_doctor_slot"
# SQLite names the columns instead of the index
SLOT_COLUMNS = "appointments.doctor_id, appointments.date, appointments.time"


def is_slot_conflict(error: IntegrityError) -> bool:
    """True when the insert lost the race for a doctor's slot, not some other constraint"""
    message = str(error.orig)
    return SLOT_INDEX in message or SLOT_COLUMNS in message


class BookingService:
    """Service layer for the public booking flow and appointment status"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()
        self.resolver = ClinicScopeResolver(db)
        self.scheduling = SchedulingService(db)

    def create_appointment(self, scope: ClinicScope, request: BookingRequest, patient_id: int) -> BookingResponse:
        """
        Create one appointment atomically.

        Raises:
            HTTPException: 404 for records outside the clinic, 400 for holidays, services the
                doctor does not offer and times that are not a slot of that day
            SlotUnavailableError: The slot is already held by another appointment
        """
        patient = self.resolver.patient(scope, patient_id)
        doctor = self.resolver.doctor(scope, request.doctor_id)
        services = self.resolver.services_by_ids(scope, request.service_ids)

        offered = {s.id for s in services_for_doctor(services, doctor.name) if s.active}
        rejected = [s.name for s in services if s.id not in offered]
        if rejected:
            raise HTTPException(
                status_code=400, detail=f"Services not offered by {doctor.name}: {', '.join(rejected)}"
            )

        holiday = find_holiday(self.scheduling.holiday_ranges(scope, doctor.id), request.date, doctor.id)
        if holiday:
            raise HTTPException(
                status_code=400,
                detail=f"Doctor is on holiday from {holiday.from_date.isoformat()} to {holiday.to_date.isoformat()}",
            )

        if not is_offered_slot(self.scheduling.get_calendar(doctor), request.date, request.time):
            raise HTTPException(status_code=400, detail="Selected time is not an available slot")

        label = request.slot_label
        if self.repo.find_active(self.db, doctor.id, request.date, label):
            logger.warning(f"⚠️ Slot {label} on {request.date} already taken for doctor {doctor.id}")
            raise SlotUnavailableError(SLOT_TAKEN_MESSAGE)

        try:
            appointment = self.repo.add(
                self.db,
                clinic_id=scope.clinic_id,
                doctor_id=doctor.id,
                patient_id=patient.id,
                date=request.date,
                time=label,
                service_ids=[s.id for s in services],
                services_detail=", ".join(s.name for s in services),
                charges=round(sum(s.price or 0 for s in services), 2),
                notes=request.notes,
                status="upcoming",
                queue_token=self.repo.count_active(self.db, doctor.id, request.date) + 1,
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if not is_slot_conflict(e):
                logger.error(f"❌ Failed to save appointment for doctor {doctor.id}: {e}")
                raise
            logger.warning(f"⚠️ Concurrent booking lost for doctor {doctor.id} at {label} on {request.date}: {e}")
            raise SlotUnavailableError(SLOT_TAKEN_MESSAGE) from e

        self.db.refresh(appointment)
        logger.info(
            f"✅ Appointment {appointment.id} booked: doctor {doctor.id}, {request.date} {label}, "
            f"token {appointment.queue_token}"
        )
        return BookingResponse(
            id=appointment.id,
            queue_token=appointment.queue_token,
            date=appointment.date,
            time=appointment.time,
            doctor_name=doctor.name,
        )

    def book(self, scope: ClinicScope, request: BookingRequest, patient: PatientSession) -> BookingResponse:
        self._check_patient_clinic(scope, patient)
        return self._book(scope, request, patient.patient_id)

    def book_for_patient(self, scope: ClinicScope, request: StaffBookingRequest) -> BookingResponse:
        """Staff booking; same holiday, slot and conflict checks as the public site"""
        return self._book(scope, request, request.patient_id)

    def _book(self, scope: ClinicScope, request: BookingRequest, patient_id: int) -> BookingResponse:
        try:
            return self.create_appointment(scope, request, patient_id)
        except SlotUnavailableError as e:
            raise HTTPException(status_code=409, detail=str(e))

    def advance(
        self,
        scope: ClinicScope,
        state: WorkflowState,
        action: WorkflowAction,
        patient: Optional[PatientSession] = None,
    ) -> WorkflowState:
        """Apply one wizard action, resolving doctors, services and slots inside the clinic"""
        if state.clinic_id != scope.clinic_id:
            raise HTTPException(status_code=400, detail="Booking state belongs to another clinic")

        if action.type == "select_doctor" and action.doctor_id is not None:
            doctor = self.resolver.doctor(scope, action.doctor_id)
            return workflow.select_doctor(state, doctor.id, doctor.name)

        if action.type in ("toggle_service", "select_services") and state.doctor_id is not None:
            ids = action.service_ids or []
            if action.type == "toggle_service":
                ids = [action.service_id] if action.service_id not in (None, *state.service_ids) else []
            self._check_services_offered(scope, state.doctor_id, ids)

        if action.type in ("identify", "commit"):
            if patient is None:
                raise workflow.WorkflowValidationError("Please log in or register to continue")
            self._check_patient_clinic(scope, patient)

        return workflow.apply(
            state,
            action,
            slot_lookup=lambda doctor_id, day: self.scheduling.get_slots(scope, doctor_id, day),
            patient=patient,
            create_appointment=(
                # Client-held state is not trusted for identity
                (lambda request, _patient_id: self.create_appointment(scope, request, patient.patient_id))
                if patient is not None
                else None
            ),
        )

    def _check_services_offered(self, scope: ClinicScope, doctor_id: int, service_ids: list[int]) -> None:
        if not service_ids:
            return
        doctor = self.resolver.doctor(scope, doctor_id)
        offered = {s.id for s in self.resolver.services(scope, doctor.id)}
        if not set(service_ids) <= offered:
            raise HTTPException(status_code=404, detail="Service not found")

    @staticmethod
    def _check_patient_clinic(scope: ClinicScope, patient: PatientSession) -> None:
        if patient.clinic_id is not None and patient.clinic_id != scope.clinic_id:
            raise HTTPException(status_code=403, detail="Patient is registered with another clinic")

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def list_appointments(
        self, scope: ClinicScope, day: Optional[date] = None, doctor_id: Optional[int] = None
    ) -> list[Appointment]:
        return self.repo.list_for_clinic(self.db, scope.clinic_id, day, doctor_id)

    def update_status(self, scope: ClinicScope, appointment_id: int, status: str) -> Appointment:
        """Complete or cancel an open appointment; both are terminal"""
        appointment = self.repo.get(self.db, scope.clinic_id, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        if appointment.status not in OPEN_STATUSES:
            raise HTTPException(
                status_code=400, detail=f"Cannot change status of a {appointment.status} appointment"
            )
        appointment.status = status
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment.id} marked {status}")
        return appointment
