"""Booking domain schemas - wizard state, actions and appointment payloads"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.timefmt import label_start

# Wizard steps, in order
STEP_SELECT_DOCTOR = 1
STEP_SELECT_SERVICES = 2
STEP_SELECT_DATETIME = 3
STEP_EXTRA_INFO = 4
STEP_IDENTIFY_PATIENT = 5
STEP_CONFIRM = 6
STEP_BOOKED = 7  # terminal display state

STEP_NAMES = {
    STEP_SELECT_DOCTOR: "select-doctor",
    STEP_SELECT_SERVICES: "select-services",
    STEP_SELECT_DATETIME: "select-datetime",
    STEP_EXTRA_INFO: "extra-info",
    STEP_IDENTIFY_PATIENT: "identify-patient",
    STEP_CONFIRM: "confirm",
    STEP_BOOKED: "booked",
}

APPOINTMENT_STATUSES = {"booked", "upcoming", "completed", "cancelled"}
OPEN_STATUSES = {"booked", "upcoming"}


class PatientSession(BaseModel):
    """The authenticated patient, passed into the workflow explicitly"""

    patient_id: int
    clinic_id: Optional[int] = None
    user_id: Optional[str] = None


class WorkflowState(BaseModel):
    """
    Client-held state of the booking wizard.

    Every field is plain data so the state can round-trip through the browser between
    steps; the server holds nothing until commit.
    """

    clinic_id: int
    step: int = Field(default=STEP_SELECT_DOCTOR, ge=STEP_SELECT_DOCTOR, le=STEP_BOOKED)
    doctor_id: Optional[int] = None
    doctor_name: Optional[str] = None
    service_ids: list[int] = Field(default_factory=list)
    date: Optional[dt.date] = None
    time: Optional[str] = None
    available_slots: list[str] = Field(default_factory=list)
    slot_reason: Optional[str] = None
    slot_message: Optional[str] = None
    notes: Optional[str] = None
    patient_id: Optional[int] = None
    error: Optional[str] = None
    appointment_id: Optional[int] = None
    queue_token: Optional[int] = None

    @property
    def step_name(self) -> str:
        return STEP_NAMES[self.step]

    @property
    def is_booked(self) -> bool:
        return self.step == STEP_BOOKED


class WorkflowAction(BaseModel):
    """One user action against the wizard"""

    type: Literal[
        "select_doctor",
        "toggle_service",
        "select_services",
        "select_date",
        "select_slot",
        "set_notes",
        "identify",
        "next",
        "back",
        "commit",
    ]
    doctor_id: Optional[int] = None
    service_id: Optional[int] = None
    service_ids: Optional[list[int]] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None
    notes: Optional[str] = None


class AdvanceRequest(BaseModel):
    state: WorkflowState
    action: WorkflowAction


class BookingRequest(BaseModel):
    """Payload of the single create-appointment call"""

    doctor_id: int
    service_ids: list[int] = Field(min_length=1)
    date: dt.date
    time: str
    notes: Optional[str] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Time slot is required")
        return v.strip()

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @property
    def slot_label(self) -> str:
        return label_start(self.time)


class StaffBookingRequest(BookingRequest):
    """Front-desk booking on behalf of a registered patient of the clinic"""

    patient_id: int


class BookingResponse(BaseModel):
    id: int
    queue_token: int
    date: dt.date
    time: str
    doctor_name: str


class AppointmentResponse(BaseModel):
    id: int
    doctorId: int
    doctorName: Optional[str] = None
    patientId: int
    patientName: Optional[str] = None
    date: dt.date
    time: str
    serviceIds: list[int] = Field(default_factory=list)
    services: Optional[str] = None
    charges: float = 0
    notes: Optional[str] = None
    status: str
    queueToken: Optional[int] = None


class AppointmentStatusUpdate(BaseModel):
    status: Literal["completed", "cancelled"]
