"""Billing router - tax rules, tax previews and bills"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import Bill, TaxRule
from ..tenancy.router import get_staff_scope
from ..tenancy.schemas import ClinicScope
from .schemas import (
    BILL_STATUSES,
    BillCreate,
    BillDraft,
    BillPreviewRequest,
    BillResponse,
    BillUpdate,
    ServiceLine,
    TaxBreakdown,
    TaxComputeRequest,
    TaxRuleCreate,
    TaxRuleResponse,
    TaxRuleUpdate,
)
from .service import BillingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinics/{clinic_id}", tags=["Billing"])


def get_billing_service(db: Session = Depends(get_db)) -> BillingService:
    """Dependency injection for BillingService"""
    return BillingService(db)


def _tax_rule_response(r: TaxRule) -> TaxRuleResponse:
    return TaxRuleResponse(
        id=r.id,
        name=r.name,
        doctor=r.doctor or "",
        serviceName=r.service_name or "",
        taxRate=r.tax_rate,
        active=bool(r.active),
    )


def _bill_response(b: Bill) -> BillResponse:
    return BillResponse(
        id=b.id,
        clinicId=b.clinic_id,
        patientId=b.patient_id,
        doctorId=b.doctor_id,
        encounterId=b.encounter_id,
        services=[ServiceLine.model_validate(s) for s in b.services or []],
        selectedTaxIds=b.selected_tax_ids or [],
        taxDetails=b.tax_details or [],
        subTotal=b.sub_total,
        taxAmount=b.tax_amount,
        discount=b.discount,
        totalAmount=b.total_amount,
        paidAmount=b.paid_amount,
        amountDue=b.amount_due,
        status=b.status,
        date=b.date,
        notes=b.notes,
        created_at=b.created_at,
    )


# ============================================================================
# TAX RULES
# ============================================================================


@router.get("/tax-rules", response_model=list[TaxRuleResponse])
async def get_tax_rules(
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    return [_tax_rule_response(r) for r in service.list_tax_rules(scope)]


@router.post("/tax-rules", response_model=TaxRuleResponse, status_code=201)
async def create_tax_rule(
    data: TaxRuleCreate,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    return _tax_rule_response(service.create_tax_rule(scope, data))


@router.patch("/tax-rules/{rule_id}", response_model=TaxRuleResponse)
async def update_tax_rule(
    rule_id: int,
    data: TaxRuleUpdate,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    """Rename, change the rate or toggle a rule on and off"""
    return _tax_rule_response(service.update_tax_rule(scope, rule_id, data))


@router.delete("/tax-rules/{rule_id}")
async def delete_tax_rule(
    rule_id: int,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    return service.delete_tax_rule(scope, rule_id)


@router.post("/tax/compute", response_model=TaxBreakdown)
async def compute_tax(
    data: TaxComputeRequest,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    """Stacked tax of the doctor's service lines, per matching rule"""
    return service.compute_tax(scope, data)


# ============================================================================
# BILLS
# ============================================================================


@router.post("/bills/preview", response_model=BillDraft)
async def preview_bill(
    data: BillPreviewRequest,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    """Recomputed totals and status without saving"""
    return service.preview(scope, data)


@router.post("/bills", response_model=BillResponse, status_code=201)
async def create_bill(
    data: BillCreate,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    return _bill_response(service.create_bill(scope, data))


@router.get("/bills", response_model=list[BillResponse])
async def get_bills(
    patient_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, pattern=f"^({'|'.join(BILL_STATUSES)})$"),
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    return [_bill_response(b) for b in service.list_bills(scope, patient_id, status)]


@router.get("/bills/{bill_id}", response_model=BillResponse)
async def get_bill(
    bill_id: int,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    return _bill_response(service.get_bill(scope, bill_id))


@router.put("/bills/{bill_id}", response_model=BillResponse)
async def update_bill(
    bill_id: int,
    data: BillUpdate,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    return _bill_response(service.update_bill(scope, bill_id, data))


@router.delete("/bills/{bill_id}")
async def delete_bill(
    bill_id: int,
    scope: ClinicScope = Depends(get_staff_scope),
    service: BillingService = Depends(get_billing_service),
):
    return service.delete_bill(scope, bill_id)
