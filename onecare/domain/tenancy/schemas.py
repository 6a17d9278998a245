"""Tenancy domain schemas"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ClinicScope(BaseModel):
    """The tenant every query of a request is confined to"""

    model_config = ConfigDict(frozen=True)

    clinic_id: int
    name: str
    subdomain: str

    def owns(self, record) -> bool:
        return record is not None and getattr(record, "clinic_id", None) == self.clinic_id


class ClinicPublicResponse(BaseModel):
    id: int
    name: str
    subdomain: str


class DoctorResponse(BaseModel):
    id: int
    name: str
    specialty: str = "General"
    email: Optional[str] = None


class ServiceResponse(BaseModel):
    id: int
    name: str
    category: str
    price: float
    doctor: Optional[str] = None


class ServiceCatalogResponse(BaseModel):
    """Services offered on the booking site, flat and per category"""

    services: list[ServiceResponse]
    categories: dict[str, list[ServiceResponse]]
