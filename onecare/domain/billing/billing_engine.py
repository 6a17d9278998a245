"""
Billing engine

Recomputes a bill draft after every edit. Pure and idempotent: recompute(recompute(d)) ==
recompute(d). Each selected tax rule is applied to the whole subtotal, independent of
which lines the rule would match in the tax engine.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .schemas import BillDraft, TaxLine, TaxRuleData
from .tax_engine import tax_label

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def derive_status(total_amount: float, paid_amount: float) -> str:
    """Payment status from totals alone; a zero bill is never "paid" """
    if total_amount > 0 and paid_amount >= total_amount:
        return "paid"
    if 0 < paid_amount < total_amount:
        return "partial"
    return "unpaid"


def bill_tax_lines(sub_total: float, selected_tax_ids: Iterable[int], rules: Iterable[TaxRuleData]) -> list[TaxLine]:
    """One line per selected rule found in the catalogue; unknown ids are skipped"""
    by_id = {r.id: r for r in rules if r.id is not None}
    lines = []
    for tax_id in dict.fromkeys(selected_tax_ids):
        rule = by_id.get(tax_id)
        if rule is None:
            continue
        amount = sub_total * rule.tax_rate / 100
        lines.append(
            TaxLine(
                rule_id=rule.id,
                name=rule.name,
                rate=rule.tax_rate,
                amount=amount,
                label=tax_label(rule.name, rule.tax_rate, amount),
            )
        )
    return lines


def recompute(draft: BillDraft, rules: Iterable[TaxRuleData] = ()) -> BillDraft:
    """Derive subtotal, tax, total, amount due and status from the draft's inputs"""
    sub_total = sum(line.amount for line in draft.services)
    tax_lines = bill_tax_lines(sub_total, draft.selected_tax_ids, rules)
    tax_amount = sum(t.amount for t in tax_lines)
    total_amount = max(sub_total + tax_amount - draft.discount, 0.0)
    amount_due = max(total_amount - draft.paid_amount, 0.0)
    status = derive_status(total_amount, draft.paid_amount)

    logger.debug(f"Bill recomputed: subtotal {sub_total}, tax {tax_amount}, total {total_amount}, status {status}")
    return draft.model_copy(
        update={
            "sub_total": sub_total,
            "tax_amount": tax_amount,
            "tax_lines": tax_lines,
            "total_amount": total_amount,
            "amount_due": amount_due,
            "status": status,
        }
    )


def round_money(value: float) -> float:
    """Round half up to cents; only used when a bill is persisted"""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))
