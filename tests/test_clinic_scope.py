import pytest
from fastapi import HTTPException

from onecare.domain.tenancy.service import (
    ClinicScopeResolver,
    group_by_category,
    scope_filter,
    services_for_doctor,
)


def test_resolve_by_subdomain(db_session, clinic_data):
    scope = ClinicScopeResolver(db_session).resolve_by_subdomain("Sunrise")

    assert scope.clinic_id == clinic_data.sunrise.id
    assert scope.owns(clinic_data.asha)
    assert not scope.owns(clinic_data.hugo)


def test_unknown_clinic_is_404(db_session, clinic_data):
    resolver = ClinicScopeResolver(db_session)

    with pytest.raises(HTTPException) as exc:
        resolver.resolve_by_subdomain("nowhere")
    assert exc.value.status_code == 404
    with pytest.raises(HTTPException):
        resolver.resolve_by_id(9999)


def test_doctors_are_confined_to_the_clinic(db_session, clinic_data):
    resolver = ClinicScopeResolver(db_session)
    scope = resolver.resolve_by_id(clinic_data.sunrise.id)

    assert {d.name for d in resolver.doctors(scope)} == {"Dr. Asha Rao", "Dr. Ben Cole"}
    with pytest.raises(HTTPException) as exc:
        resolver.doctor(scope, clinic_data.hugo.id)
    assert exc.value.status_code == 404


def test_services_for_a_doctor_are_generic_plus_own(db_session, clinic_data):
    resolver = ClinicScopeResolver(db_session)
    scope = resolver.resolve_by_id(clinic_data.sunrise.id)

    names = {s.name for s in resolver.services(scope, clinic_data.asha.id)}

    # Inactive services and other doctors' services are left out
    assert names == {"Consultation", "Dental Cleaning"}
    assert {s.name for s in resolver.services(scope)} == {"Consultation", "Dental Cleaning", "X-Ray"}


def test_services_by_ids_rejects_other_clinics(db_session, clinic_data):
    resolver = ClinicScopeResolver(db_session)
    scope = resolver.resolve_by_id(clinic_data.sunrise.id)

    with pytest.raises(HTTPException) as exc:
        resolver.services_by_ids(scope, [clinic_data.consultation.id, clinic_data.harbor_service.id])
    assert exc.value.status_code == 404


def test_patients_and_encounters_of_other_clinics_are_invisible(db_session, clinic_data):
    resolver = ClinicScopeResolver(db_session)
    harbor = resolver.resolve_by_id(clinic_data.harbor.id)

    with pytest.raises(HTTPException):
        resolver.patient(harbor, clinic_data.patient.id)
    with pytest.raises(HTTPException):
        resolver.encounter(harbor, clinic_data.encounter.id)


def test_pure_helpers(clinic_data):
    everything = [clinic_data.asha, clinic_data.ben, clinic_data.hugo]
    services = [clinic_data.consultation, clinic_data.cleaning, clinic_data.xray]

    assert scope_filter(everything, clinic_data.harbor.id) == [clinic_data.hugo]
    assert services_for_doctor(services, "Dr. Ben Cole") == [clinic_data.consultation, clinic_data.xray]
    assert set(group_by_category(services)) == {"General", "Dental", "Imaging"}
