import pytest

from onecare.config import CURRENCY_SYMBOL
from onecare.domain.billing.schemas import ServiceLine, TaxRuleData
from onecare.domain.billing.tax_engine import compute_tax, matching_rules

DOCTOR = "Dr. Asha Rao"


@pytest.fixture()
def rules():
    return [
        TaxRuleData(id=1, name="CGST", doctor=DOCTOR, service_name="Dental Cleaning", tax_rate=9),
        TaxRuleData(id=2, name="SGST", doctor=DOCTOR, service_name="Dental Cleaning", tax_rate=9),
        TaxRuleData(id=3, name="Cess", doctor=DOCTOR, service_name="Dental Cleaning", tax_rate=1, active=False),
        TaxRuleData(id=4, name="GST", doctor="Dr. Ben Cole", service_name="Dental Cleaning", tax_rate=18),
        TaxRuleData(id=5, name="Lab Tax", doctor=DOCTOR, service_name="X-Ray", tax_rate=5),
    ]


def test_matching_rules_stack(rules):
    breakdown = compute_tax([ServiceLine(name="Dental Cleaning", amount=1000)], rules, DOCTOR)

    assert breakdown.total_tax == pytest.approx(180)
    assert [t.name for t in breakdown.breakdown] == ["CGST", "SGST"]
    assert breakdown.breakdown[0].label == f"CGST (9%): {CURRENCY_SYMBOL}90.00"


def test_inactive_and_other_doctor_rules_are_ignored(rules):
    matched = matching_rules(rules, DOCTOR, "Dental Cleaning")

    assert [r.id for r in matched] == [1, 2]


def test_service_name_must_match_exactly(rules):
    breakdown = compute_tax([ServiceLine(name="Dental", amount=1000)], rules, DOCTOR)

    assert breakdown.total_tax == 0
    assert breakdown.breakdown == []


def test_no_match_is_zero_tax(rules):
    breakdown = compute_tax([ServiceLine(name="Consultation", amount=500)], rules, "Dr. Nobody")

    assert breakdown.total_tax == 0
    assert breakdown.breakdown == []


def test_rule_matching_several_lines_is_one_entry(rules):
    lines = [
        ServiceLine(name="Dental Cleaning", amount=1000),
        ServiceLine(name="X-Ray", amount=200),
        ServiceLine(name="Dental Cleaning", amount=500),
    ]

    breakdown = compute_tax(lines, rules, DOCTOR)

    by_name = {t.name: t.amount for t in breakdown.breakdown}
    assert by_name == pytest.approx({"CGST": 135, "SGST": 135, "Lab Tax": 10})
    assert breakdown.total_tax == pytest.approx(280)


def test_amounts_keep_full_precision(rules):
    breakdown = compute_tax([ServiceLine(name="Dental Cleaning", amount=33.33)], rules, DOCTOR)

    assert breakdown.breakdown[0].amount == pytest.approx(2.9997)
    assert breakdown.breakdown[0].label.endswith("3.00")


def test_computing_twice_gives_the_same_result(rules):
    lines = [ServiceLine(name="Dental Cleaning", amount=750.5)]

    assert compute_tax(lines, rules, DOCTOR) == compute_tax(lines, rules, DOCTOR)


def test_non_numeric_line_amount_counts_as_zero(rules):
    breakdown = compute_tax([ServiceLine(name="Dental Cleaning", amount="n/a")], rules, DOCTOR)

    assert breakdown.total_tax == 0
