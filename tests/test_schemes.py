from datetime import date

import pytest

from jewel_billing.models import Scheme, SchemeEnrollment
from jewel_billing.schemes import (
    calculate_benefit,
    calculate_maturity_value,
    calculate_redemption_value,
    is_payment_late,
)


@pytest.fixture
def eleven_plus_one():
    return Scheme(
        name="11+1 Gold Plan",
        scheme_type="FIXED_DURATION",
        calculation_type="FLAT_AMOUNT",
        benefit_type="BONUS_MONTH",
        benefit_value=1,
        duration_months=11,
        scheme_amount=5000,
    )


@pytest.fixture
def gold_sip():
    return Scheme(
        name="Gold SIP",
        calculation_type="WEIGHT_ACCUMULATION",
        benefit_type="FIXED_AMOUNT",
        benefit_value=500,
    )


@pytest.mark.parametrize(
    "benefit_type, value, expected",
    [
        ("BONUS_MONTH", 1, (5000, "1 Bonus Month(s)")),
        ("INTEREST", 5, (600, "5% Interest")),
        ("FIXED_AMOUNT", 750, (750, "Fixed Bonus")),
        ("MAKING_CHARGE_DISCOUNT", 20, (0, "Making Charge Discount (up to 20%)")),
        (None, 10, (0, "")),
    ],
)
def test_benefit_by_type(benefit_type, value, expected):
    scheme = Scheme(benefit_type=benefit_type, benefit_value=value, scheme_amount=5000)
    assert calculate_benefit(scheme, 12000) == expected


def test_cash_scheme_redemption(eleven_plus_one):
    enrollment = SchemeEnrollment(total_paid=55000)
    calc = calculate_redemption_value(eleven_plus_one, enrollment)

    assert calc.principal_amount == 55000
    assert calc.benefit_amount == 5000
    assert calc.total_payout_amount == 60000
    assert calc.total_payout_weight == 0
    assert calc.is_eligible_for_benefit


def test_weight_scheme_redemption_values_gold_at_current_rate(gold_sip):
    enrollment = SchemeEnrollment(total_paid=65000, accumulated_weight=10)
    calc = calculate_redemption_value(gold_sip, enrollment, current_gold_rate=7000)

    assert calc.principal_weight == 10
    assert calc.total_payout_amount == 70500
    assert calc.total_payout_weight == 10


def test_early_redemption_forfeits_benefit(eleven_plus_one):
    enrollment = SchemeEnrollment(total_paid=20000)
    calc = calculate_redemption_value(eleven_plus_one, enrollment, is_matured=False)

    assert calc.benefit_amount == 0
    assert calc.benefit_description == ""
    assert calc.total_payout_amount == 20000
    assert not calc.is_eligible_for_benefit


def test_fixed_duration_maturity_projection(eleven_plus_one):
    # projection ignores what has been paid so far
    assert calculate_maturity_value(eleven_plus_one, 10000) == 60000


def test_flexible_maturity_projection_adds_interest():
    scheme = Scheme(scheme_type="FLEXIBLE", benefit_type="INTEREST", benefit_value=10)
    assert calculate_maturity_value(scheme, 1000) == 1100

    no_interest = Scheme(scheme_type="FLEXIBLE", benefit_type="FIXED_AMOUNT", benefit_value=10)
    assert calculate_maturity_value(no_interest, 1000) == 1000


def test_payment_lateness_respects_grace_period():
    due = date(2026, 3, 5)
    assert not is_payment_late(due, date(2026, 3, 10), 5)
    assert is_payment_late(due, date(2026, 3, 11), 5)
    assert is_payment_late(due, date(2026, 3, 6), 0)
