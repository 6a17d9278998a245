"""Booking repository - appointment persistence"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def count_active(db: Session, doctor_id: int, day: date) -> int:
        """Non-cancelled appointments of the doctor on that day"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date == day,
                Appointment.status != "cancelled",
            )
            .count()
        )

    @staticmethod
    def find_active(db: Session, doctor_id: int, day: date, time: str) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date == day,
                Appointment.time == time,
                Appointment.status != "cancelled",
            )
            .first()
        )

    @staticmethod
    def add(db: Session, **fields) -> Appointment:
        """Stage a new appointment; the caller commits"""
        appointment = Appointment(**fields)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def get(db: Session, clinic_id: int, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.clinic_id == clinic_id)
            .first()
        )

    @staticmethod
    def list_for_clinic(
        db: Session, clinic_id: int, day: Optional[date] = None, doctor_id: Optional[int] = None
    ) -> list[Appointment]:
        query = db.query(Appointment).filter(Appointment.clinic_id == clinic_id)
        if day is not None:
            query = query.filter(Appointment.date == day)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)
        return query.order_by(Appointment.date.asc(), Appointment.queue_token.asc()).all()
