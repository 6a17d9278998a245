"""
Booking wizard

A six-step linear workflow: doctor, services, date and slot, notes, patient, confirm.
Each function takes a WorkflowState and returns a new one; nothing here touches the
database or the network. Collaborators (slot lookup, appointment creation) are passed in.
"""

import datetime as dt
import logging
from typing import Callable, Optional

from ..scheduling.schemas import BLOCKING_REASONS, SlotResult
from ...shared.timefmt import label_start
from .schemas import (
    STEP_BOOKED,
    STEP_CONFIRM,
    STEP_EXTRA_INFO,
    STEP_IDENTIFY_PATIENT,
    STEP_SELECT_DATETIME,
    STEP_SELECT_DOCTOR,
    STEP_SELECT_SERVICES,
    BookingRequest,
    BookingResponse,
    PatientSession,
    WorkflowAction,
    WorkflowState,
)

logger = logging.getLogger(__name__)

SlotLookup = Callable[[int, dt.date], SlotResult]
CreateAppointment = Callable[[BookingRequest, int], BookingResponse]


class WorkflowValidationError(ValueError):
    """A forward transition or selection was rejected"""


class SlotUnavailableError(Exception):
    """The chosen slot was taken between listing and commit"""


def _update(state: WorkflowState, **changes) -> WorkflowState:
    if state.is_booked:
        raise WorkflowValidationError("Booking already completed")
    changes.setdefault("error", None)
    return state.model_copy(update=changes)


def start(clinic_id: int) -> WorkflowState:
    return WorkflowState(clinic_id=clinic_id)


# ============================================================================
# SELECTIONS
# ============================================================================


def select_doctor(state: WorkflowState, doctor_id: int, doctor_name: Optional[str] = None) -> WorkflowState:
    """Pick a doctor; switching to another one clears services, date and slot"""
    if state.doctor_id == doctor_id:
        return _update(state, doctor_name=doctor_name or state.doctor_name)

    changes = {"doctor_id": doctor_id, "doctor_name": doctor_name}
    if state.doctor_id is not None:
        changes.update(
            service_ids=[],
            date=None,
            time=None,
            available_slots=[],
            slot_reason=None,
            slot_message=None,
            step=min(state.step, STEP_SELECT_SERVICES),
        )
        logger.debug(f"Doctor changed {state.doctor_id} -> {doctor_id}, downstream selections cleared")
    return _update(state, **changes)


def toggle_service(state: WorkflowState, service_id: int) -> WorkflowState:
    if state.doctor_id is None:
        raise WorkflowValidationError("Please select a doctor first")
    ids = list(state.service_ids)
    if service_id in ids:
        ids.remove(service_id)
    else:
        ids.append(service_id)
    return _update(state, service_ids=ids)


def select_services(state: WorkflowState, service_ids: list[int]) -> WorkflowState:
    if state.doctor_id is None:
        raise WorkflowValidationError("Please select a doctor first")
    # Keep the order of first selection, drop repeats
    return _update(state, service_ids=list(dict.fromkeys(service_ids)))


def select_date(state: WorkflowState, day: dt.date, slots: SlotResult) -> WorkflowState:
    """Pick a date; the slot list for it replaces any earlier one and the chosen slot is cleared"""
    if state.doctor_id is None:
        raise WorkflowValidationError("Please select a doctor first")
    return _update(
        state,
        date=day,
        time=None,
        available_slots=list(slots.available),
        slot_reason=slots.reason,
        slot_message=slots.message,
        step=min(state.step, STEP_SELECT_DATETIME),
    )


def select_slot(state: WorkflowState, time_label: str) -> WorkflowState:
    if state.date is None:
        raise WorkflowValidationError("Please select a date first")
    wanted = label_start(time_label)
    for label in state.available_slots:
        if label_start(label) == wanted:
            return _update(state, time=label)
    raise WorkflowValidationError("Selected time slot is not available")


def set_notes(state: WorkflowState, notes: Optional[str]) -> WorkflowState:
    return _update(state, notes=(notes or "").strip() or None)


def identify_patient(state: WorkflowState, session: Optional[PatientSession]) -> WorkflowState:
    """Attach the current patient session (existing login or one just completed)"""
    if session is None:
        raise WorkflowValidationError("Please log in or register to continue")
    return _update(state, patient_id=session.patient_id)


# ============================================================================
# TRANSITIONS
# ============================================================================


def exit_error(state: WorkflowState) -> Optional[str]:
    """Why the current step may not be left forwards, or None when it may"""
    if state.step == STEP_SELECT_DOCTOR:
        return None if state.doctor_id is not None else "Please select a doctor"
    if state.step == STEP_SELECT_SERVICES:
        return None if state.service_ids else "Please select at least one service"
    if state.step == STEP_SELECT_DATETIME:
        if state.slot_reason in BLOCKING_REASONS:
            return state.slot_message or "Booking is not possible on this date"
        if state.date is None:
            return "Please select a date"
        if not state.time:
            return "Please select a time slot"
        return None
    if state.step == STEP_EXTRA_INFO:
        return None
    if state.step == STEP_IDENTIFY_PATIENT:
        return None if state.patient_id is not None else "Please log in or register to continue"
    if state.step == STEP_CONFIRM:
        return "Confirm the booking to finish"
    return "Booking already completed"


def advance(state: WorkflowState) -> WorkflowState:
    error = exit_error(state)
    if error:
        raise WorkflowValidationError(error)
    return _update(state, step=state.step + 1)


def back(state: WorkflowState) -> WorkflowState:
    """Step back one state; entered data is kept"""
    return _update(state, step=max(state.step - 1, STEP_SELECT_DOCTOR))


def commit_payload(state: WorkflowState) -> BookingRequest:
    """The create-appointment request for a state sitting on Confirm"""
    if state.step != STEP_CONFIRM:
        raise WorkflowValidationError("Booking can only be confirmed from the last step")
    for step in range(STEP_SELECT_DOCTOR, STEP_CONFIRM):
        error = exit_error(state.model_copy(update={"step": step}))
        if error:
            raise WorkflowValidationError(error)
    return BookingRequest(
        doctor_id=state.doctor_id,
        service_ids=state.service_ids,
        date=state.date,
        time=state.time,
        notes=state.notes,
    )


def commit(state: WorkflowState, create_appointment: CreateAppointment) -> WorkflowState:
    """
    Emit the single create-appointment request.

    A slot conflict keeps the wizard on Confirm with the error set; the user has to pick
    another slot. Any other failure propagates unchanged.
    """
    payload = commit_payload(state)
    try:
        created = create_appointment(payload, state.patient_id)
    except SlotUnavailableError as e:
        logger.debug(f"Commit rejected for doctor {state.doctor_id} at {state.time}: {e}")
        return state.model_copy(update={"error": str(e)})
    return state.model_copy(
        update={
            "step": STEP_BOOKED,
            "error": None,
            "appointment_id": created.id,
            "queue_token": created.queue_token,
            "time": created.time,
        }
    )


def apply(
    state: WorkflowState,
    action: WorkflowAction,
    *,
    slot_lookup: Optional[SlotLookup] = None,
    patient: Optional[PatientSession] = None,
    create_appointment: Optional[CreateAppointment] = None,
) -> WorkflowState:
    """Dispatch one action to its transition"""
    kind = action.type

    if kind == "select_doctor":
        if action.doctor_id is None:
            raise WorkflowValidationError("doctor_id is required")
        return select_doctor(state, action.doctor_id)
    if kind == "toggle_service":
        if action.service_id is None:
            raise WorkflowValidationError("service_id is required")
        return toggle_service(state, action.service_id)
    if kind == "select_services":
        return select_services(state, action.service_ids or [])
    if kind == "select_date":
        if action.date is None:
            raise WorkflowValidationError("date is required")
        if state.doctor_id is None:
            raise WorkflowValidationError("Please select a doctor first")
        return select_date(state, action.date, slot_lookup(state.doctor_id, action.date))
    if kind == "select_slot":
        return select_slot(state, action.time or "")
    if kind == "set_notes":
        return set_notes(state, action.notes)
    if kind == "identify":
        return identify_patient(state, patient)
    if kind == "next":
        return advance(state)
    if kind == "back":
        return back(state)
    if kind == "commit":
        if create_appointment is None:
            raise WorkflowValidationError("Booking cannot be confirmed here")
        return commit(state, create_appointment)
    raise WorkflowValidationError(f"Unknown action: {kind}")
