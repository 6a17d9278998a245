import os
from datetime import date
from types import SimpleNamespace

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from onecare import models
from onecare.auth import create_jwt_token
from onecare.database import Base, get_db
from onecare.main import app

# A Monday far enough ahead to never be "today"
MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 6)


@pytest.fixture()
def db_session():
    """Isolated in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def clinic_data(db_session):
    """
    Two clinics. Sunrise has Dr. Asha Rao (Mon-Sat, 09:00-11:00 and 17:00-18:00, 30 min)
    and Dr. Ben Cole (no session); Harbor has one doctor of its own.
    """
    db = db_session
    sunrise = models.Clinic(name="Sunrise Clinic", subdomain="sunrise")
    harbor = models.Clinic(name="Harbor Clinic", subdomain="harbor")
    db.add_all([sunrise, harbor])
    db.flush()

    asha = models.Doctor(clinic_id=sunrise.id, name="Dr. Asha Rao", specialization="Dentist")
    ben = models.Doctor(clinic_id=sunrise.id, name="Dr. Ben Cole")
    hugo = models.Doctor(clinic_id=harbor.id, name="Dr. Hugo Lind")
    db.add_all([asha, ben, hugo])
    db.flush()

    db.add(
        models.DoctorSession(
            doctor_id=asha.id,
            clinic_id=sunrise.id,
            days=["Mon", "Tue", "Wed", "Thu", "Fri", "Sat"],
            morning_start="09:00",
            morning_end="11:00",
            evening_start="17:00",
            evening_end="18:00",
            slot_minutes=30,
        )
    )

    consultation = models.Service(clinic_id=sunrise.id, name="Consultation", category="General", price=500)
    cleaning = models.Service(
        clinic_id=sunrise.id, name="Dental Cleaning", category="Dental", price=1000, doctor="Dr. Asha Rao"
    )
    xray = models.Service(clinic_id=sunrise.id, name="X-Ray", category="Imaging", price=800, doctor="Dr. Ben Cole")
    retired = models.Service(clinic_id=sunrise.id, name="Old Package", price=50, active=False)
    harbor_service = models.Service(clinic_id=harbor.id, name="Consultation", price=400)
    db.add_all([consultation, cleaning, xray, retired, harbor_service])

    patient = models.Patient(clinic_id=sunrise.id, first_name="Meera", last_name="Iyer", email="meera@example.com")
    other_patient = models.Patient(clinic_id=sunrise.id, first_name="Ravi", last_name="Shah")
    harbor_patient = models.Patient(clinic_id=harbor.id, first_name="Lena")
    db.add_all([patient, other_patient, harbor_patient])
    db.flush()

    cgst = models.TaxRule(
        clinic_id=sunrise.id, name="CGST", doctor="Dr. Asha Rao", service_name="Dental Cleaning", tax_rate=9
    )
    sgst = models.TaxRule(
        clinic_id=sunrise.id, name="SGST", doctor="Dr. Asha Rao", service_name="Dental Cleaning", tax_rate=9
    )
    encounter = models.Encounter(
        clinic_id=sunrise.id, doctor_id=asha.id, patient_id=patient.id, date=MONDAY, services=["Dental Cleaning"]
    )
    db.add_all([cgst, sgst, encounter])
    db.commit()

    return SimpleNamespace(
        sunrise=sunrise,
        harbor=harbor,
        asha=asha,
        ben=ben,
        hugo=hugo,
        consultation=consultation,
        cleaning=cleaning,
        xray=xray,
        retired=retired,
        harbor_service=harbor_service,
        patient=patient,
        other_patient=other_patient,
        harbor_patient=harbor_patient,
        cgst=cgst,
        sgst=sgst,
        encounter=encounter,
    )


def staff_headers(clinic_id: int, role: str = "clinic") -> dict:
    token = create_jwt_token({"sub": f"staff-{clinic_id}", "role": role, "clinic_id": clinic_id})
    return {"Authorization": f"Bearer {token}"}


def patient_headers(patient_id: int, clinic_id: int) -> dict:
    token = create_jwt_token(
        {"sub": f"patient-{patient_id}", "role": "patient", "patient_id": patient_id, "clinic_id": clinic_id}
    )
    return {"Authorization": f"Bearer {token}"}
