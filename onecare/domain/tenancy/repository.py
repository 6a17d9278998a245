"""Tenancy repository - clinic-scoped lookups"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Clinic, Doctor, Encounter, Patient, Service, TaxRule


class ClinicRepository:
    """Every query takes the clinic id; nothing is looked up by name"""

    @staticmethod
    def get_clinic_by_id(db: Session, clinic_id: int) -> Optional[Clinic]:
        return db.query(Clinic).filter(Clinic.id == clinic_id).first()

    @staticmethod
    def get_clinic_by_subdomain(db: Session, subdomain: str) -> Optional[Clinic]:
        return db.query(Clinic).filter(Clinic.subdomain == subdomain.lower()).first()

    @staticmethod
    def list_doctors(db: Session, clinic_id: int) -> list[Doctor]:
        return db.query(Doctor).filter(Doctor.clinic_id == clinic_id).order_by(Doctor.name.asc()).all()

    @staticmethod
    def get_doctor(db: Session, clinic_id: int, doctor_id: int) -> Optional[Doctor]:
        return db.query(Doctor).filter(Doctor.id == doctor_id, Doctor.clinic_id == clinic_id).first()

    @staticmethod
    def list_services(db: Session, clinic_id: int, active_only: bool = True) -> list[Service]:
        query = db.query(Service).filter(Service.clinic_id == clinic_id)
        if active_only:
            query = query.filter(Service.active.is_(True))
        return query.order_by(Service.category.asc(), Service.name.asc()).all()

    @staticmethod
    def get_services_by_ids(db: Session, clinic_id: int, service_ids: list[int]) -> list[Service]:
        if not service_ids:
            return []
        return db.query(Service).filter(Service.clinic_id == clinic_id, Service.id.in_(service_ids)).all()

    @staticmethod
    def list_tax_rules(db: Session, clinic_id: int) -> list[TaxRule]:
        return db.query(TaxRule).filter(TaxRule.clinic_id == clinic_id).order_by(TaxRule.id.asc()).all()

    @staticmethod
    def get_patient(db: Session, clinic_id: int, patient_id: int) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.id == patient_id, Patient.clinic_id == clinic_id).first()

    @staticmethod
    def get_encounter(db: Session, clinic_id: int, encounter_id: int) -> Optional[Encounter]:
        return (
            db.query(Encounter)
            .filter(Encounter.id == encounter_id, Encounter.clinic_id == clinic_id)
            .first()
        )
