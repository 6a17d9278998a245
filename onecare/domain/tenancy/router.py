"""Tenancy router - clinic scope dependencies and the public clinic catalogue"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, ensure_clinic_access, get_current_user
from ...database import get_db
from ...models import Service
from .schemas import (
    ClinicPublicResponse,
    ClinicScope,
    DoctorResponse,
    ServiceCatalogResponse,
    ServiceResponse,
)
from .service import ClinicScopeResolver, group_by_category

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinic-website/{subdomain}", tags=["Clinic Website"])


def get_scope_resolver(db: Session = Depends(get_db)) -> ClinicScopeResolver:
    """Dependency injection for ClinicScopeResolver"""
    return ClinicScopeResolver(db)


def get_public_scope(subdomain: str, resolver: ClinicScopeResolver = Depends(get_scope_resolver)) -> ClinicScope:
    """Clinic of the public booking site, from the subdomain path segment"""
    return resolver.resolve_by_subdomain(subdomain)


def get_staff_scope(
    clinic_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    resolver: ClinicScopeResolver = Depends(get_scope_resolver),
) -> ClinicScope:
    """Clinic of a dashboard request; the user must be staff of that clinic"""
    ensure_clinic_access(current_user, clinic_id)
    return resolver.resolve_by_id(clinic_id)


def _service_response(s: Service) -> ServiceResponse:
    return ServiceResponse(id=s.id, name=s.name, category=s.category or "General", price=s.price or 0, doctor=s.doctor)


@router.get("", response_model=ClinicPublicResponse)
async def get_clinic(scope: ClinicScope = Depends(get_public_scope)):
    return ClinicPublicResponse(id=scope.clinic_id, name=scope.name, subdomain=scope.subdomain)


@router.get("/doctors", response_model=list[DoctorResponse])
async def get_doctors(
    scope: ClinicScope = Depends(get_public_scope),
    resolver: ClinicScopeResolver = Depends(get_scope_resolver),
):
    """Doctors of the clinic"""
    return [
        DoctorResponse(id=d.id, name=d.name, specialty=d.specialization or "General", email=d.email)
        for d in resolver.doctors(scope)
    ]


@router.get("/services", response_model=ServiceCatalogResponse)
async def get_services(
    doctor_id: Optional[int] = Query(None),
    scope: ClinicScope = Depends(get_public_scope),
    resolver: ClinicScopeResolver = Depends(get_scope_resolver),
):
    """Active services; with doctor_id, the generic ones plus that doctor's own"""
    services = resolver.services(scope, doctor_id)
    return ServiceCatalogResponse(
        services=[_service_response(s) for s in services],
        categories={
            category: [_service_response(s) for s in items] for category, items in group_by_category(services).items()
        },
    )
