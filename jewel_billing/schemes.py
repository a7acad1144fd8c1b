# jewel_billing/schemes.py
"""Valuation helpers for gold savings schemes."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Tuple

from .lang_utils import non_negative
from .models import (
    BenefitType,
    CalculationType,
    RedemptionCalculation,
    Scheme,
    SchemeEnrollment,
)


def _fmt(value: float) -> str:
    return f"{value:g}"


def calculate_benefit(scheme: Scheme, total_paid: float) -> Tuple[float, str]:
    """Cash benefit owed on maturity, with a human readable label."""
    value = scheme.benefit_value
    if scheme.benefit_type == BenefitType.BONUS_MONTH:
        return value * scheme.scheme_amount, f"{_fmt(value)} Bonus Month(s)"
    if scheme.benefit_type == BenefitType.INTEREST:
        return total_paid * value / 100, f"{_fmt(value)}% Interest"
    if scheme.benefit_type == BenefitType.FIXED_AMOUNT:
        return value, "Fixed Bonus"
    if scheme.benefit_type == BenefitType.MAKING_CHARGE_DISCOUNT:
        # discount on a future purchase, not a payout
        return 0.0, f"Making Charge Discount (up to {_fmt(value)}%)"
    return 0.0, ""


def calculate_redemption_value(
    scheme: Scheme,
    enrollment: SchemeEnrollment,
    current_gold_rate: float = 0,
    is_matured: bool = True,
) -> RedemptionCalculation:
    total_paid = enrollment.total_paid
    total_weight = enrollment.accumulated_weight

    benefit_amount, benefit_description = 0.0, ""
    if is_matured:
        benefit_amount, benefit_description = calculate_benefit(scheme, total_paid)

    if scheme.calculation_type == CalculationType.WEIGHT_ACCUMULATION:
        gold_value = total_weight * non_negative(current_gold_rate)
        return RedemptionCalculation(
            principal_amount=total_paid,
            principal_weight=total_weight,
            benefit_amount=benefit_amount,
            benefit_description=benefit_description,
            total_payout_amount=gold_value + benefit_amount,
            total_payout_weight=total_weight,
            is_eligible_for_benefit=is_matured,
        )

    return RedemptionCalculation(
        principal_amount=total_paid,
        principal_weight=0.0,
        benefit_amount=benefit_amount,
        benefit_description=benefit_description,
        total_payout_amount=total_paid + benefit_amount,
        total_payout_weight=0.0,
        is_eligible_for_benefit=is_matured,
    )


def calculate_maturity_value(scheme: Scheme, current_total_paid: float) -> float:
    """Projected payout assuming every remaining installment is paid."""
    if scheme.scheme_type == "FIXED_DURATION":
        monthly = scheme.scheme_amount
        principal = monthly * scheme.duration_months
        benefit, _ = calculate_benefit(scheme, principal)
        return principal + benefit

    # flexible plans can only project interest on what is already paid
    paid = non_negative(current_total_paid)
    if scheme.benefit_type == BenefitType.INTEREST:
        return paid + paid * scheme.benefit_value / 100
    return paid


def is_payment_late(due_date: date, payment_date: date, grace_period_days: int) -> bool:
    return payment_date > due_date + timedelta(days=grace_period_days)
