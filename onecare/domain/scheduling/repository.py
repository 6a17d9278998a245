"""Scheduling repository - sessions, holidays and booked times"""

from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Appointment, Doctor, DoctorSession, Holiday


class SchedulingRepository:
    """Repository for scheduling database operations"""

    @staticmethod
    def get_session(db: Session, doctor_id: int) -> Optional[DoctorSession]:
        return db.query(DoctorSession).filter(DoctorSession.doctor_id == doctor_id).first()

    @staticmethod
    def upsert_session(db: Session, doctor: Doctor, **fields) -> DoctorSession:
        """One session per doctor; saving again overwrites it"""
        session = db.query(DoctorSession).filter(DoctorSession.doctor_id == doctor.id).first()
        if session is None:
            session = DoctorSession(doctor_id=doctor.id, clinic_id=doctor.clinic_id)
            db.add(session)
        for key, value in fields.items():
            setattr(session, key, value)
        db.commit()
        db.refresh(session)
        return session

    @staticmethod
    def delete_session(db: Session, session: DoctorSession) -> None:
        db.delete(session)
        db.commit()

    @staticmethod
    def list_holidays(db: Session, clinic_id: int, doctor_id: Optional[int] = None) -> list[Holiday]:
        """All clinic holidays, or the doctor's own plus the clinic-wide ones"""
        query = db.query(Holiday).filter(Holiday.clinic_id == clinic_id)
        if doctor_id is not None:
            query = query.filter(or_(Holiday.doctor_id == doctor_id, Holiday.doctor_id.is_(None)))
        return query.order_by(Holiday.from_date.desc()).all()

    @staticmethod
    def get_holiday(db: Session, clinic_id: int, holiday_id: int) -> Optional[Holiday]:
        return db.query(Holiday).filter(Holiday.id == holiday_id, Holiday.clinic_id == clinic_id).first()

    @staticmethod
    def create_holiday(db: Session, clinic_id: int, **fields) -> Holiday:
        holiday = Holiday(clinic_id=clinic_id, **fields)
        db.add(holiday)
        db.commit()
        db.refresh(holiday)
        return holiday

    @staticmethod
    def update_holiday(db: Session, holiday: Holiday, **fields) -> Holiday:
        for key, value in fields.items():
            setattr(holiday, key, value)
        db.commit()
        db.refresh(holiday)
        return holiday

    @staticmethod
    def delete_holiday(db: Session, holiday: Holiday) -> None:
        db.delete(holiday)
        db.commit()

    @staticmethod
    def booked_times(db: Session, doctor_id: int, day: date) -> list[str]:
        """Slot labels taken on that day; cancelled appointments free their slot"""
        rows = (
            db.query(Appointment.time)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date == day,
                Appointment.status != "cancelled",
            )
            .all()
        )
        return [r[0] for r in rows if r[0]]
