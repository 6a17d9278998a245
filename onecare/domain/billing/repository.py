"""Billing repository - Database operations for tax rules and bills"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Bill, TaxRule


class BillingRepository:
    """Repository for billing database operations"""

    # ------------------------------------------------------------------
    # Tax rules
    # ------------------------------------------------------------------

    @staticmethod
    def get_tax_rule(db: Session, clinic_id: int, rule_id: int) -> Optional[TaxRule]:
        return db.query(TaxRule).filter(TaxRule.id == rule_id, TaxRule.clinic_id == clinic_id).first()

    @staticmethod
    def create_tax_rule(db: Session, clinic_id: int, **fields) -> TaxRule:
        rule = TaxRule(clinic_id=clinic_id, **fields)
        db.add(rule)
        db.commit()
        db.refresh(rule)
        return rule

    @staticmethod
    def update_tax_rule(db: Session, rule: TaxRule, **fields) -> TaxRule:
        """Update the given fields; None means unchanged"""
        for key, value in fields.items():
            if value is not None:
                setattr(rule, key, value)
        db.commit()
        db.refresh(rule)
        return rule

    @staticmethod
    def delete_tax_rule(db: Session, rule: TaxRule) -> None:
        db.delete(rule)
        db.commit()

    # ------------------------------------------------------------------
    # Bills
    # ------------------------------------------------------------------

    @staticmethod
    def get_bill(db: Session, clinic_id: int, bill_id: int) -> Optional[Bill]:
        return db.query(Bill).filter(Bill.id == bill_id, Bill.clinic_id == clinic_id).first()

    @staticmethod
    def list_bills(
        db: Session, clinic_id: int, patient_id: Optional[int] = None, status: Optional[str] = None
    ) -> list[Bill]:
        query = db.query(Bill).filter(Bill.clinic_id == clinic_id)
        if patient_id is not None:
            query = query.filter(Bill.patient_id == patient_id)
        if status:
            query = query.filter(Bill.status == status)
        return query.order_by(Bill.id.desc()).all()

    @staticmethod
    def save_bill(db: Session, bill: Bill, **fields) -> Bill:
        """Insert or update a bill with the given column values"""
        for key, value in fields.items():
            setattr(bill, key, value)
        if bill.id is None:
            db.add(bill)
        db.commit()
        db.refresh(bill)
        return bill

    @staticmethod
    def delete_bill(db: Session, bill: Bill) -> None:
        db.delete(bill)
        db.commit()
