"""Billing domain schemas - tax rules, tax breakdowns and bill drafts"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import parse_amount

BILL_STATUSES = ("unpaid", "partial", "paid")


# ============================================================================
# ENGINE STRUCTURES
# ============================================================================


class ServiceLine(BaseModel):
    """One billed service; a missing or non-numeric amount counts as 0"""

    name: str = ""
    category: str = "General"
    description: str = ""
    amount: float = 0.0

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v) -> float:
        return parse_amount(v)


class TaxRuleData(BaseModel):
    """The fields of a tax rule the engines read"""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    name: str
    doctor: str = ""
    service_name: str = ""
    tax_rate: float = Field(ge=0)
    active: bool = True


class TaxLine(BaseModel):
    rule_id: Optional[int] = None
    name: str
    rate: float
    amount: float
    label: str


class TaxBreakdown(BaseModel):
    total_tax: float = 0.0
    breakdown: list[TaxLine] = Field(default_factory=list)


class BillDraft(BaseModel):
    """
    Money fields of a bill.

    Inputs are services, selected_tax_ids, discount and paid_amount; everything else is
    derived by recompute and overwritten on each call.
    """

    services: list[ServiceLine] = Field(default_factory=list)
    selected_tax_ids: list[int] = Field(default_factory=list)
    discount: float = 0.0
    paid_amount: float = 0.0

    sub_total: float = 0.0
    tax_amount: float = 0.0
    tax_lines: list[TaxLine] = Field(default_factory=list)
    total_amount: float = 0.0
    amount_due: float = 0.0
    status: str = "unpaid"

    @field_validator("discount", "paid_amount", mode="before")
    @classmethod
    def coerce_money(cls, v) -> float:
        return parse_amount(v)


# ============================================================================
# TAX RULE SETTINGS
# ============================================================================


class TaxRuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    doctor: str = ""
    serviceName: str = ""
    taxRate: float = Field(ge=0)
    active: bool = True

    @field_validator("name", "doctor", "serviceName")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class TaxRuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    doctor: Optional[str] = None
    serviceName: Optional[str] = None
    taxRate: Optional[float] = Field(None, ge=0)
    active: Optional[bool] = None


class TaxRuleResponse(BaseModel):
    id: int
    name: str
    doctor: str
    serviceName: str
    taxRate: float
    active: bool


class TaxComputeRequest(BaseModel):
    doctorId: int
    lines: list[ServiceLine] = Field(default_factory=list)


# ============================================================================
# BILLS
# ============================================================================


class BillPreviewRequest(BaseModel):
    services: list[ServiceLine] = Field(default_factory=list)
    selectedTaxIds: list[int] = Field(default_factory=list)
    discount: float = 0
    paidAmount: float = 0

    @field_validator("discount", "paidAmount", mode="before")
    @classmethod
    def coerce_money(cls, v) -> float:
        return parse_amount(v)

    @field_validator("discount", "paidAmount")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Amount cannot be negative")
        return v


class BillCreate(BillPreviewRequest):
    """A bill must reference an existing patient, doctor and encounter of the clinic"""

    patientId: int
    doctorId: int
    encounterId: int
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class BillUpdate(BaseModel):
    """Free-form edit; totals and status are always recomputed, never set"""

    services: Optional[list[ServiceLine]] = None
    selectedTaxIds: Optional[list[int]] = None
    discount: Optional[float] = Field(None, ge=0)
    paidAmount: Optional[float] = Field(None, ge=0)
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class BillResponse(BaseModel):
    id: int
    clinicId: int
    patientId: int
    doctorId: int
    encounterId: int
    services: list[ServiceLine]
    selectedTaxIds: list[int]
    taxDetails: list[dict]
    subTotal: float
    taxAmount: float
    discount: float
    totalAmount: float
    paidAmount: float
    amountDue: float
    status: str
    date: Optional[dt.date] = None
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None
