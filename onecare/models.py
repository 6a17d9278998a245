from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Clinic(Base):
    """Tenant boundary: owns doctors, services, tax rules, holidays and bills"""

    __tablename__ = "clinics"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    subdomain = Column(String(100), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    doctors = relationship("Doctor", back_populates="clinic")


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)  # Also the label tax rules and services match on
    specialization = Column(String(120), nullable=True)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    clinic = relationship("Clinic", back_populates="doctors")
    session = relationship("DoctorSession", back_populates="doctor", uselist=False)


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class DoctorSession(Base):
    """Recurring weekly working hours of a doctor (one per doctor, latest write wins)"""

    __tablename__ = "doctor_sessions"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), unique=True, nullable=False)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    days = Column(JSON, default=list)  # e.g. ["Mon", "Tue", "Wednesday"]
    morning_start = Column(String(10), nullable=True)  # "HH:MM" 24h
    morning_end = Column(String(10), nullable=True)
    evening_start = Column(String(10), nullable=True)  # optional
    evening_end = Column(String(10), nullable=True)
    slot_minutes = Column(Integer, nullable=False, default=30)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="session")


class Holiday(Base):
    """Doctor leave or clinic-wide closure (doctor_id is NULL)"""

    __tablename__ = "holidays"
    __table_args__ = (CheckConstraint("to_date >= from_date", name="ck_holiday_range"),)

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False, default="Holiday")
    from_date = Column(Date, nullable=False)
    to_date = Column(Date, nullable=False)  # inclusive
    created_at = Column(DateTime, server_default=func.now())


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(120), nullable=False, default="General")
    price = Column(Float, nullable=False, default=0)
    # Doctor name this service belongs to; NULL means available to every doctor
    doctor = Column(String(255), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class TaxRule(Base):
    __tablename__ = "tax_rules"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    doctor = Column(String(255), nullable=False, default="")  # doctor name
    service_name = Column(String(255), nullable=False, default="")
    tax_rate = Column(Float, nullable=False)  # percentage, e.g. 9 for 9%
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Authoritative double-booking guard; cancelled rows stay but free the slot
        Index(
            "uq_appointments_doctor_slot",
            "doctor_id",
            "date",
            "time",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    time = Column(String(40), nullable=False)  # canonical slot label, e.g. "09:30 AM"
    service_ids = Column(JSON, default=list)
    services_detail = Column(Text, nullable=True)
    charges = Column(Float, default=0)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="upcoming")  # booked, upcoming, completed, cancelled
    queue_token = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("Doctor")
    patient = relationship("Patient")


class Encounter(Base):
    """Clinical encounter a bill is raised against"""

    __tablename__ = "encounters"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    date = Column(Date, nullable=False)
    services = Column(JSON, default=list)  # service names
    created_at = Column(DateTime, server_default=func.now())


class Bill(Base):
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    encounter_id = Column(Integer, ForeignKey("encounters.id"), nullable=False)

    # Line items: [{name, category, description, amount}]
    services = Column(JSON, default=list)
    selected_tax_ids = Column(JSON, default=list)
    tax_details = Column(JSON, default=list)  # [{name, rate, amount}]

    # Amounts (rounded to 2 decimals on write)
    sub_total = Column(Float, nullable=False, default=0)
    tax_amount = Column(Float, nullable=False, default=0)
    discount = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False, default=0)
    paid_amount = Column(Float, nullable=False, default=0)
    amount_due = Column(Float, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="unpaid")  # unpaid, partial, paid

    date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
