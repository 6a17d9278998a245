"""Scheduling router - doctor sessions, holidays and public slot lookup"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import DoctorSession, Holiday
from ..tenancy.router import get_public_scope, get_staff_scope
from ..tenancy.schemas import ClinicScope
from .schemas import (
    DoctorSessionResponse,
    DoctorSessionUpsert,
    HolidayCreate,
    HolidayResponse,
    HolidayUpdate,
    SlotResult,
)
from .service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinics/{clinic_id}", tags=["Scheduling"])
public_router = APIRouter(prefix="/clinic-website/{subdomain}", tags=["Clinic Website"])


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(db)


def _session_response(s: DoctorSession) -> DoctorSessionResponse:
    return DoctorSessionResponse(
        doctorId=s.doctor_id,
        clinicId=s.clinic_id,
        days=s.days or [],
        morningStart=s.morning_start,
        morningEnd=s.morning_end,
        eveningStart=s.evening_start,
        eveningEnd=s.evening_end,
        slotMinutes=s.slot_minutes,
    )


def _holiday_response(h: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=h.id, clinicId=h.clinic_id, doctorId=h.doctor_id, name=h.name, fromDate=h.from_date, toDate=h.to_date
    )


# ============================================================================
# PUBLIC SLOT LOOKUP
# ============================================================================


@public_router.get("/slots", response_model=SlotResult)
async def get_available_slots(
    doctor_id: int = Query(...),
    date: date = Query(...),
    scope: ClinicScope = Depends(get_public_scope),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Bookable slots of a doctor on a date; holidays and days off come back with a reason"""
    return service.get_slots(scope, doctor_id, date)


# ============================================================================
# DOCTOR SESSION SETTINGS
# ============================================================================


@router.put("/doctors/{doctor_id}/session", response_model=DoctorSessionResponse)
async def save_doctor_session(
    doctor_id: int,
    data: DoctorSessionUpsert,
    scope: ClinicScope = Depends(get_staff_scope),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return _session_response(service.save_session(scope, doctor_id, data))


@router.get("/doctors/{doctor_id}/session", response_model=DoctorSessionResponse)
async def get_doctor_session(
    doctor_id: int,
    scope: ClinicScope = Depends(get_staff_scope),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return _session_response(service.get_session(scope, doctor_id))


@router.delete("/doctors/{doctor_id}/session")
async def delete_doctor_session(
    doctor_id: int,
    scope: ClinicScope = Depends(get_staff_scope),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.delete_session(scope, doctor_id)


# ============================================================================
# HOLIDAYS
# ============================================================================


@router.get("/holidays", response_model=list[HolidayResponse])
async def get_holidays(
    doctor_id: Optional[int] = Query(None),
    scope: ClinicScope = Depends(get_staff_scope),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Clinic holidays; with doctor_id, that doctor's leave plus clinic-wide closures"""
    return [_holiday_response(h) for h in service.list_holidays(scope, doctor_id)]


@router.post("/holidays", response_model=HolidayResponse, status_code=201)
async def create_holiday(
    data: HolidayCreate,
    scope: ClinicScope = Depends(get_staff_scope),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return _holiday_response(service.add_holiday(scope, data))


@router.put("/holidays/{holiday_id}", response_model=HolidayResponse)
async def update_holiday(
    holiday_id: int,
    data: HolidayUpdate,
    scope: ClinicScope = Depends(get_staff_scope),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return _holiday_response(service.update_holiday(scope, holiday_id, data))


@router.delete("/holidays/{holiday_id}")
async def delete_holiday(
    holiday_id: int,
    scope: ClinicScope = Depends(get_staff_scope),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.delete_holiday(scope, holiday_id)
