"""Clinic scope resolution - the tenant filter every other domain goes through"""

import logging
from typing import Iterable, Optional, TypeVar

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Doctor, Encounter, Patient, Service, TaxRule
from ...shared.validators import validate_subdomain
from .repository import ClinicRepository
from .schemas import ClinicScope

logger = logging.getLogger(__name__)

T = TypeVar("T")


def scope_filter(records: Iterable[T], clinic_id: int) -> list[T]:
    """Keep only the records owned by the clinic"""
    return [r for r in records if getattr(r, "clinic_id", None) == clinic_id]


def services_for_doctor(services: Iterable[Service], doctor_label: Optional[str]) -> list[Service]:
    """Generic services plus the ones assigned to the doctor"""
    out = []
    for svc in services:
        owner = (svc.doctor or "").strip()
        if not owner or (doctor_label is not None and owner == doctor_label.strip()):
            out.append(svc)
    return out


def group_by_category(services: Iterable[Service]) -> dict[str, list[Service]]:
    grouped: dict[str, list[Service]] = {}
    for svc in services:
        grouped.setdefault(svc.category or "General", []).append(svc)
    return grouped


class ClinicScopeResolver:
    """Resolves a tenant and serves its doctors, services and tax rules"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClinicRepository()

    def resolve_by_id(self, clinic_id: int) -> ClinicScope:
        clinic = self.repo.get_clinic_by_id(self.db, clinic_id)
        if not clinic:
            raise HTTPException(status_code=404, detail="Clinic not found")
        return ClinicScope(clinic_id=clinic.id, name=clinic.name, subdomain=clinic.subdomain)

    def resolve_by_subdomain(self, subdomain: str) -> ClinicScope:
        try:
            subdomain = validate_subdomain(subdomain)
        except ValueError:
            raise HTTPException(status_code=404, detail="Clinic not found")
        clinic = self.repo.get_clinic_by_subdomain(self.db, subdomain)
        if not clinic:
            logger.warning(f"Unknown clinic subdomain requested: {subdomain}")
            raise HTTPException(status_code=404, detail="Clinic not found")
        return ClinicScope(clinic_id=clinic.id, name=clinic.name, subdomain=clinic.subdomain)

    def doctors(self, scope: ClinicScope) -> list[Doctor]:
        return self.repo.list_doctors(self.db, scope.clinic_id)

    def doctor(self, scope: ClinicScope, doctor_id: int) -> Doctor:
        """A doctor of this clinic; doctors of other clinics are reported as missing"""
        doctor = self.repo.get_doctor(self.db, scope.clinic_id, doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor

    def services(self, scope: ClinicScope, doctor_id: Optional[int] = None) -> list[Service]:
        services = self.repo.list_services(self.db, scope.clinic_id)
        if doctor_id is None:
            return services
        return services_for_doctor(services, self.doctor(scope, doctor_id).name)

    def services_by_ids(self, scope: ClinicScope, service_ids: list[int]) -> list[Service]:
        found = self.repo.get_services_by_ids(self.db, scope.clinic_id, service_ids)
        missing = set(service_ids) - {s.id for s in found}
        if missing:
            raise HTTPException(status_code=404, detail=f"Service not found: {sorted(missing)}")
        return found

    def tax_rules(self, scope: ClinicScope) -> list[TaxRule]:
        return self.repo.list_tax_rules(self.db, scope.clinic_id)

    def patient(self, scope: ClinicScope, patient_id: int) -> Patient:
        patient = self.repo.get_patient(self.db, scope.clinic_id, patient_id)
        if not patient:
            raise HTTPException(status_code=404, detail="Patient not found")
        return patient

    def encounter(self, scope: ClinicScope, encounter_id: int) -> Encounter:
        encounter = self.repo.get_encounter(self.db, scope.clinic_id, encounter_id)
        if not encounter:
            raise HTTPException(status_code=404, detail="Encounter not found")
        return encounter
