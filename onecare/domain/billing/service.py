"""Billing service - tax settings, tax previews and bill persistence"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Bill, TaxRule
from ..tenancy.schemas import ClinicScope
from ..tenancy.service import ClinicScopeResolver
from .billing_engine import derive_status, recompute, round_money
from .repository import BillingRepository
from .schemas import (
    BillCreate,
    BillDraft,
    BillPreviewRequest,
    BillUpdate,
    ServiceLine,
    TaxBreakdown,
    TaxComputeRequest,
    TaxRuleCreate,
    TaxRuleData,
    TaxRuleUpdate,
)
from .tax_engine import compute_tax

logger = logging.getLogger(__name__)


def _rule_data(rules: list[TaxRule]) -> list[TaxRuleData]:
    return [TaxRuleData.model_validate(r) for r in rules]


def bill_columns(draft: BillDraft) -> dict:
    """
    Column values of a recomputed draft, money rounded to 2 decimals.

    Total and amount due are derived again from the rounded parts so the stored bill
    satisfies totalAmount = subTotal + taxAmount - discount to the cent.
    """
    sub_total = round_money(draft.sub_total)
    tax_amount = round_money(draft.tax_amount)
    discount = round_money(draft.discount)
    paid_amount = round_money(draft.paid_amount)
    total_amount = max(round_money(sub_total + tax_amount - discount), 0.0)
    amount_due = max(round_money(total_amount - paid_amount), 0.0)
    return {
        "services": [line.model_dump() for line in draft.services],
        "selected_tax_ids": list(draft.selected_tax_ids),
        "tax_details": [
            {"name": t.name, "rate": t.rate, "amount": round_money(t.amount)} for t in draft.tax_lines
        ],
        "sub_total": sub_total,
        "tax_amount": tax_amount,
        "discount": discount,
        "total_amount": total_amount,
        "paid_amount": paid_amount,
        "amount_due": amount_due,
        "status": derive_status(total_amount, paid_amount),
    }


class BillingService:
    """Service layer for taxes and bills"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BillingRepository()
        self.resolver = ClinicScopeResolver(db)

    # ------------------------------------------------------------------
    # Tax rules
    # ------------------------------------------------------------------

    def list_tax_rules(self, scope: ClinicScope) -> list[TaxRule]:
        return self.resolver.tax_rules(scope)

    def create_tax_rule(self, scope: ClinicScope, data: TaxRuleCreate) -> TaxRule:
        rule = self.repo.create_tax_rule(
            self.db,
            scope.clinic_id,
            name=data.name,
            doctor=data.doctor,
            service_name=data.serviceName,
            tax_rate=data.taxRate,
            active=data.active,
        )
        logger.info(f"✅ Tax rule {rule.id} '{rule.name}' ({rule.tax_rate}%) created for clinic {scope.clinic_id}")
        return rule

    def update_tax_rule(self, scope: ClinicScope, rule_id: int, data: TaxRuleUpdate) -> TaxRule:
        rule = self._get_tax_rule(scope, rule_id)
        return self.repo.update_tax_rule(
            self.db,
            rule,
            name=data.name.strip() if data.name else None,
            doctor=data.doctor.strip() if data.doctor is not None else None,
            service_name=data.serviceName.strip() if data.serviceName is not None else None,
            tax_rate=data.taxRate,
            active=data.active,
        )

    def delete_tax_rule(self, scope: ClinicScope, rule_id: int) -> dict:
        self.repo.delete_tax_rule(self.db, self._get_tax_rule(scope, rule_id))
        return {"message": "Tax rule deleted"}

    def _get_tax_rule(self, scope: ClinicScope, rule_id: int) -> TaxRule:
        rule = self.repo.get_tax_rule(self.db, scope.clinic_id, rule_id)
        if not rule:
            raise HTTPException(status_code=404, detail="Tax rule not found")
        return rule

    def compute_tax(self, scope: ClinicScope, data: TaxComputeRequest) -> TaxBreakdown:
        """Per-line tax preview for a doctor's services"""
        doctor = self.resolver.doctor(scope, data.doctorId)
        return compute_tax(data.lines, _rule_data(self.resolver.tax_rules(scope)), doctor.name)

    # ------------------------------------------------------------------
    # Bills
    # ------------------------------------------------------------------

    def _recompute(self, scope: ClinicScope, draft: BillDraft, check_taxes: bool = True) -> BillDraft:
        """Recompute against the clinic catalogue; stored ids of since-deleted rules are skipped"""
        rules = _rule_data(self.resolver.tax_rules(scope))
        unknown = set(draft.selected_tax_ids) - {r.id for r in rules}
        if unknown and check_taxes:
            raise HTTPException(status_code=404, detail=f"Tax rule not found: {sorted(unknown)}")
        return recompute(draft, rules)

    def preview(self, scope: ClinicScope, data: BillPreviewRequest) -> BillDraft:
        return self._recompute(
            scope,
            BillDraft(
                services=data.services,
                selected_tax_ids=data.selectedTaxIds,
                discount=data.discount,
                paid_amount=data.paidAmount,
            ),
        )

    def create_bill(self, scope: ClinicScope, data: BillCreate) -> Bill:
        patient = self.resolver.patient(scope, data.patientId)
        doctor = self.resolver.doctor(scope, data.doctorId)
        encounter = self.resolver.encounter(scope, data.encounterId)
        if encounter.patient_id != patient.id:
            raise HTTPException(status_code=400, detail="Encounter belongs to another patient")

        draft = self.preview(scope, data)
        bill = self.repo.save_bill(
            self.db,
            Bill(clinic_id=scope.clinic_id),
            patient_id=patient.id,
            doctor_id=doctor.id,
            encounter_id=encounter.id,
            date=data.date or encounter.date,
            notes=data.notes,
            **bill_columns(draft),
        )
        logger.info(f"💰 Bill {bill.id} created for patient {patient.id}: total {bill.total_amount}, {bill.status}")
        return bill

    def update_bill(self, scope: ClinicScope, bill_id: int, data: BillUpdate) -> Bill:
        """Apply an edit and recompute; the stored status is always replaced"""
        bill = self.get_bill(scope, bill_id)
        draft = BillDraft(
            services=data.services
            if data.services is not None
            else [ServiceLine.model_validate(s) for s in bill.services or []],
            selected_tax_ids=data.selectedTaxIds if data.selectedTaxIds is not None else bill.selected_tax_ids or [],
            discount=data.discount if data.discount is not None else bill.discount,
            paid_amount=data.paidAmount if data.paidAmount is not None else bill.paid_amount,
        )
        draft = self._recompute(scope, draft, check_taxes=data.selectedTaxIds is not None)

        fields = bill_columns(draft)
        if data.date is not None:
            fields["date"] = data.date
        if data.notes is not None:
            fields["notes"] = data.notes
        previous_status = bill.status
        bill = self.repo.save_bill(self.db, bill, **fields)
        logger.info(f"💰 Bill {bill.id} updated: total {bill.total_amount}, {previous_status} -> {bill.status}")
        return bill

    def get_bill(self, scope: ClinicScope, bill_id: int) -> Bill:
        bill = self.repo.get_bill(self.db, scope.clinic_id, bill_id)
        if not bill:
            raise HTTPException(status_code=404, detail="Bill not found")
        return bill

    def list_bills(
        self, scope: ClinicScope, patient_id: Optional[int] = None, status: Optional[str] = None
    ) -> list[Bill]:
        return self.repo.list_bills(self.db, scope.clinic_id, patient_id, status)

    def delete_bill(self, scope: ClinicScope, bill_id: int) -> dict:
        self.repo.delete_bill(self.db, self.get_bill(scope, bill_id))
        return {"message": "Bill deleted"}
