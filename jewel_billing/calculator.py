# jewel_billing/calculator.py
"""
Invoice financial computation.

Every function here is pure: inputs are coerced to safe numbers, nothing is
persisted, and nothing raises on malformed values. Persisting earned or
redeemed points belongs to the database layer.
"""
from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .config import DEFAULT_CGST_RATE, DEFAULT_SGST_RATE, WEIGHT_PRECISION
from .extractor import loyalty_settings_from_row
from .lang_utils import non_negative, parse_flag, safe_number
from .models import (
    EarningType,
    InvoiceCalculationRequest,
    InvoiceCalculationResult,
    InvoiceLineItem,
    LoyaltySettings,
    LoyaltyValidationResult,
)

logger = logging.getLogger(__name__)

LineLike = Union[InvoiceLineItem, Mapping[str, Any]]
SettingsLike = Union[LoyaltySettings, Mapping[str, Any], None]

WEIGHT_QUANTUM = Decimal(1).scaleb(-WEIGHT_PRECISION)


def calculate_gold_weight(amount: Any, rate_per_gram: Any) -> float:
    """Weight Amount / Rate per gram, in grams with milligram precision."""
    rate = safe_number(rate_per_gram)
    if rate <= 0:
        return 0.0
    amount = safe_number(amount)
    weight = Decimal(str(amount)) / Decimal(str(rate))
    try:
        # ties round up: 0.0625 g is 0.063
        return float(weight.quantize(WEIGHT_QUANTUM, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # more digits than the decimal context holds
        return round(amount / rate, WEIGHT_PRECISION)


def _as_line_item(item: Any) -> InvoiceLineItem:
    if isinstance(item, InvoiceLineItem):
        return item
    if not isinstance(item, Mapping):
        logger.debug("ignoring non-mapping line item %r", item)
        return InvoiceLineItem()
    try:
        return InvoiceLineItem.model_validate(dict(item))
    except ValidationError:
        # descriptive fields of the wrong type; keep the numbers
        logger.debug("line item failed validation, keeping numeric fields only")
        return InvoiceLineItem(
            net_weight=item.get("net_weight", item.get("netWeight")),
            rate=item.get("rate"),
            making_rate=item.get("making_rate", item.get("makingRate")),
            stone_amount=item.get("stone_amount", item.get("stoneAmount")),
        )


def _as_settings(settings: SettingsLike) -> Optional[LoyaltySettings]:
    if settings is None or isinstance(settings, LoyaltySettings):
        return settings
    return loyalty_settings_from_row(settings)


def line_contribution(item: LineLike, current_rate: Any = 0) -> float:
    """(Net × Rate) + (Net × Making rate) + Stone.

    The item's own rate wins when it is set; otherwise the shop's current
    market rate is used.
    """
    line = _as_line_item(item)
    net_weight = line.net_weight
    rate = line.rate if line.rate > 0 else non_negative(current_rate)
    making_amount = line.making_rate * net_weight
    return net_weight * rate + making_amount + line.stone_amount


def calculate_subtotal(items: Optional[Iterable[LineLike]], current_rate: Any = 0) -> float:
    if not items:
        return 0.0
    subtotal = 0.0
    for item in items:
        subtotal += line_contribution(item, current_rate)
    return subtotal


def calculate_taxes(
    taxable_base: Any,
    sgst_rate: Any = DEFAULT_SGST_RATE,
    cgst_rate: Any = DEFAULT_CGST_RATE,
) -> Tuple[float, float]:
    base = non_negative(taxable_base)
    sgst_amount = base * safe_number(sgst_rate) / 100
    cgst_amount = base * safe_number(cgst_rate) / 100
    return sgst_amount, cgst_amount


def loyalty_discount(
    redeem_points: Any,
    points_to_redeem: Any,
    settings: SettingsLike,
) -> float:
    settings = _as_settings(settings)
    points = safe_number(points_to_redeem)
    if not parse_flag(redeem_points) or points <= 0 or settings is None:
        return 0.0
    return points * settings.redemption_conversion_rate


def points_to_earn(grand_total: Any, settings: SettingsLike) -> int:
    settings = _as_settings(settings)
    if settings is None:
        return 0
    total = non_negative(grand_total)

    points = 0.0
    if settings.earning_type == EarningType.FLAT and settings.flat_points_ratio:
        points = total * settings.flat_points_ratio
    elif settings.earning_type == EarningType.PERCENTAGE and settings.percentage_back:
        points = total * (settings.percentage_back / 100)

    return max(0, math.floor(points))


def calculate_invoice(
    items: Optional[Iterable[LineLike]],
    cash_discount: Any = 0,
    redeem_points: Any = False,
    points_to_redeem: Any = 0,
    loyalty_settings: SettingsLike = None,
    sgst_rate: Any = DEFAULT_SGST_RATE,
    cgst_rate: Any = DEFAULT_CGST_RATE,
    current_rate: Any = 0,
) -> InvoiceCalculationResult:
    subtotal = calculate_subtotal(items, current_rate)
    loyalty_settings = _as_settings(loyalty_settings)

    loyalty = loyalty_discount(redeem_points, points_to_redeem, loyalty_settings)

    # Tax is charged on the full subtotal; discounts come off afterwards
    taxable_amount = max(0.0, subtotal)
    sgst_amount, cgst_amount = calculate_taxes(taxable_amount, sgst_rate, cgst_rate)
    total_before_discount = taxable_amount + sgst_amount + cgst_amount

    total_discount = non_negative(cash_discount) + loyalty
    grand_total = max(0.0, total_before_discount - total_discount)

    return InvoiceCalculationResult(
        subtotal=subtotal,
        loyalty_discount=loyalty,
        total_discount=total_discount,
        sgst_amount=sgst_amount,
        cgst_amount=cgst_amount,
        grand_total=grand_total,
        points_to_earn=points_to_earn(grand_total, loyalty_settings),
    )


def max_redeemable_points(
    subtotal: Any,
    customer_points: Any,
    settings: SettingsLike,
) -> int:
    """Upper bound on points a customer may redeem against this invoice."""
    settings = _as_settings(settings)
    if settings is None or settings.redemption_conversion_rate <= 0:
        return 0
    max_pct = settings.max_redemption_percentage or 100
    cap = math.floor(
        non_negative(subtotal) * (max_pct / 100) / settings.redemption_conversion_rate
    )
    return max(0, min(math.floor(non_negative(customer_points)), cap))


def validate_redemption(
    points_to_redeem: Any,
    customer_points: Any,
    subtotal: Any,
    settings: SettingsLike,
) -> LoyaltyValidationResult:
    settings = _as_settings(settings)
    errors: List[str] = []
    points = safe_number(points_to_redeem)
    balance = safe_number(customer_points)

    if settings is None:
        return LoyaltyValidationResult(
            valid=False, errors=["missing_field: loyalty_settings"]
        )

    if not settings.is_enabled or not settings.redemption_enabled:
        errors.append("business_rule_failed: redemption_disabled")
    if points <= 0:
        errors.append("business_rule_failed: points_not_positive")
    if settings.min_points_required and points < settings.min_points_required:
        errors.append("business_rule_failed: below_min_points_required")
    if points > balance:
        errors.append("business_rule_failed: insufficient_points")

    cap = max_redeemable_points(subtotal, balance, settings)
    if points > cap and points <= balance:
        errors.append("business_rule_failed: exceeds_max_redemption_percentage")

    if errors:
        return LoyaltyValidationResult(
            valid=False, errors=errors, max_redeemable_points=cap
        )

    return LoyaltyValidationResult(
        valid=True,
        discount_amount=loyalty_discount(True, points, settings),
        max_redeemable_points=cap,
        points_after_redemption=balance - points,
    )


def calculate_from_request(request: InvoiceCalculationRequest) -> InvoiceCalculationResult:
    return calculate_invoice(
        request.items,
        cash_discount=request.discount,
        redeem_points=request.redeem_points,
        points_to_redeem=request.points_to_redeem,
        loyalty_settings=request.loyalty_settings,
        sgst_rate=request.sgst_rate,
        cgst_rate=request.cgst_rate,
        current_rate=request.current_rate,
    )
