"""Booking router - public booking wizard and dashboard appointment list"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_optional_patient_session, get_patient_session
from ...database import get_db
from ..tenancy.router import get_public_scope, get_staff_scope
from ..tenancy.schemas import ClinicScope
from . import workflow
from .schemas import (
    AdvanceRequest,
    AppointmentResponse,
    AppointmentStatusUpdate,
    BookingRequest,
    BookingResponse,
    PatientSession,
    StaffBookingRequest,
    WorkflowState,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinics/{clinic_id}", tags=["Appointments"])
public_router = APIRouter(prefix="/clinic-website/{subdomain}", tags=["Clinic Website"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def _appointment_response(a) -> AppointmentResponse:
    return AppointmentResponse(
        id=a.id,
        doctorId=a.doctor_id,
        doctorName=a.doctor.name if a.doctor else None,
        patientId=a.patient_id,
        patientName=a.patient.full_name if a.patient else None,
        date=a.date,
        time=a.time,
        serviceIds=a.service_ids or [],
        services=a.services_detail,
        charges=a.charges or 0,
        notes=a.notes,
        status=a.status,
        queueToken=a.queue_token,
    )


# ============================================================================
# PUBLIC BOOKING WIZARD
# ============================================================================


@public_router.get("/booking/start", response_model=WorkflowState)
async def start_booking(scope: ClinicScope = Depends(get_public_scope)):
    """Fresh wizard state for the clinic"""
    return workflow.start(scope.clinic_id)


@public_router.post("/booking/advance", response_model=WorkflowState)
async def advance_booking(
    data: AdvanceRequest,
    scope: ClinicScope = Depends(get_public_scope),
    patient: Optional[PatientSession] = Depends(get_optional_patient_session),
    service: BookingService = Depends(get_booking_service),
):
    """Apply one action to the client-held wizard state"""
    return service.advance(scope, data.state, data.action, patient)


@public_router.post("/book", response_model=BookingResponse, status_code=201)
async def book_appointment(
    data: BookingRequest,
    scope: ClinicScope = Depends(get_public_scope),
    patient: PatientSession = Depends(get_patient_session),
    service: BookingService = Depends(get_booking_service),
):
    """Create the appointment in one request; 409 when the slot was taken meanwhile"""
    return service.book(scope, data, patient)


# ============================================================================
# DASHBOARD
# ============================================================================


@router.get("/appointments", response_model=list[AppointmentResponse])
async def get_appointments(
    date: Optional[date] = Query(None),
    doctor_id: Optional[int] = Query(None),
    scope: ClinicScope = Depends(get_staff_scope),
    service: BookingService = Depends(get_booking_service),
):
    return [_appointment_response(a) for a in service.list_appointments(scope, date, doctor_id)]


@router.post("/appointments", response_model=BookingResponse, status_code=201)
async def create_appointment(
    data: StaffBookingRequest,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BookingService = Depends(get_booking_service),
):
    """Book on behalf of a patient; 409 when the slot is already taken"""
    return service.book_for_patient(scope, data)


@router.post("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BookingService = Depends(get_booking_service),
):
    """Complete or cancel an appointment; a cancelled slot can be booked again"""
    return _appointment_response(service.update_status(scope, appointment_id, data.status))
