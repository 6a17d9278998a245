"""
Tax engine

Matches stacking tax rules against (doctor, service) pairs. Every active rule whose doctor
and service name equal the line's exactly contributes ``amount * rate / 100``; two 9% rules
on the same service add up to 18%.
"""

import logging
from typing import Iterable

from ...config import CURRENCY_SYMBOL
from .schemas import ServiceLine, TaxBreakdown, TaxLine, TaxRuleData

logger = logging.getLogger(__name__)


def tax_label(name: str, rate: float, amount: float) -> str:
    return f"{name} ({rate:g}%): {CURRENCY_SYMBOL}{amount:.2f}"


def rule_matches(rule: TaxRuleData, doctor_label: str, service_name: str) -> bool:
    """Active, same doctor and same service name; no partial or category matching"""
    return rule.active and rule.doctor == doctor_label and rule.service_name == service_name


def matching_rules(rules: Iterable[TaxRuleData], doctor_label: str, service_name: str) -> list[TaxRuleData]:
    return [r for r in rules if rule_matches(r, doctor_label, service_name)]


def compute_tax(
    lines: Iterable[ServiceLine], rules: Iterable[TaxRuleData], doctor_label: str
) -> TaxBreakdown:
    """
    Tax breakdown for a set of service lines billed by one doctor.

    One breakdown entry per applied rule; a rule matching several lines sums their
    contributions. Amounts keep full precision, only the label is rounded.
    """
    rules = list(rules)
    applied: dict[int, tuple[TaxRuleData, float]] = {}  # id(rule) -> (rule, tax), first-applied order

    for line in lines:
        for rule in matching_rules(rules, doctor_label, line.name):
            _, amount = applied.get(id(rule), (rule, 0.0))
            applied[id(rule)] = (rule, amount + line.amount * rule.tax_rate / 100)

    breakdown = [
        TaxLine(
            rule_id=rule.id,
            name=rule.name,
            rate=rule.tax_rate,
            amount=amount,
            label=tax_label(rule.name, rule.tax_rate, amount),
        )
        for rule, amount in applied.values()
    ]
    total = sum(t.amount for t in breakdown)
    logger.debug(f"Tax for doctor {doctor_label!r}: {len(breakdown)} rule(s), total {total}")
    return TaxBreakdown(total_tax=total, breakdown=breakdown)
