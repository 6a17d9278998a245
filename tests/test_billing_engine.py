import pytest

from onecare.domain.billing.billing_engine import derive_status, recompute, round_money
from onecare.domain.billing.schemas import BillDraft, ServiceLine, TaxRuleData

RULES = [
    TaxRuleData(id=1, name="CGST", doctor="Dr. Asha Rao", service_name="Dental Cleaning", tax_rate=9),
    TaxRuleData(id=2, name="SGST", doctor="Dr. Asha Rao", service_name="Dental Cleaning", tax_rate=9),
    TaxRuleData(id=3, name="Old VAT", tax_rate=5, active=False),
]


def draft(paid=0, discount=0, amount=1000, taxes=(1, 2)) -> BillDraft:
    return BillDraft(
        services=[ServiceLine(name="Dental Cleaning", amount=amount)],
        selected_tax_ids=list(taxes),
        discount=discount,
        paid_amount=paid,
    )


@pytest.mark.parametrize(
    "paid, due, status",
    [
        (0, 1180, "unpaid"),
        (1180, 0, "paid"),
        (500, 680, "partial"),
        (2000, 0, "paid"),
    ],
)
def test_status_table(paid, due, status):
    bill = recompute(draft(paid=paid), RULES)

    assert bill.sub_total == 1000
    assert bill.tax_amount == pytest.approx(180)
    assert bill.total_amount == pytest.approx(1180)
    assert bill.amount_due == pytest.approx(due)
    assert bill.status == status


def test_zero_bill_is_never_paid():
    bill = recompute(BillDraft(), RULES)

    assert bill.total_amount == 0
    assert bill.status == "unpaid"
    assert derive_status(0, 100) == "unpaid"


def test_discount_larger_than_bill_clamps_to_zero():
    bill = recompute(draft(discount=5000, taxes=()), RULES)

    assert bill.total_amount == 0
    assert bill.amount_due == 0


def test_tax_applies_to_whole_subtotal():
    bill = BillDraft(
        services=[ServiceLine(name="Dental Cleaning", amount=1000), ServiceLine(name="Consultation", amount=500)],
        selected_tax_ids=[1],
    )

    assert recompute(bill, RULES).tax_amount == pytest.approx(135)


def test_selected_inactive_rule_still_applies():
    assert recompute(draft(taxes=[3]), RULES).tax_amount == pytest.approx(50)


def test_unknown_and_repeated_tax_ids():
    bill = recompute(draft(taxes=[1, 1, 99]), RULES)

    assert bill.tax_amount == pytest.approx(90)
    assert [t.name for t in bill.tax_lines] == ["CGST"]


def test_missing_and_non_numeric_amounts_count_as_zero():
    bill = BillDraft(
        services=[
            ServiceLine(name="A", amount=None),
            ServiceLine(name="B", amount="abc"),
            ServiceLine(name="C", amount="250.5"),
        ]
    )

    assert recompute(bill).sub_total == pytest.approx(250.5)


def test_stored_status_is_overridden():
    bill = draft(paid=0).model_copy(update={"status": "paid"})

    assert recompute(bill, RULES).status == "unpaid"


@pytest.mark.parametrize("paid, discount", [(0, 0), (100, 0), (1180, 30), (99999, 10), (333.33, 12.5)])
def test_recompute_invariants_and_fixpoint(paid, discount):
    once = recompute(draft(paid=paid, discount=discount, amount=1000), RULES)
    twice = recompute(once, RULES)

    assert once == twice
    assert once.total_amount == max(once.sub_total + once.tax_amount - once.discount, 0)
    assert once.amount_due == max(once.total_amount - once.paid_amount, 0)


@pytest.mark.parametrize(
    "value, expected", [(10.125, 10.13), (0.005, 0.01), (2.675, 2.68), (33.333, 33.33), (-1.005, -1.01)]
)
def test_money_rounds_half_up(value, expected):
    assert round_money(value) == expected
