# jewel_billing/forecaster.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from .config import ACTIVE_STATUS, ESTIMATED_GOLD_RATE, FORECAST_MONTHS, UNKNOWN_MONTH_LABEL
from .lang_utils import non_negative
from .models import (
    CalculationType,
    MaturityForecastItem,
    MaturitySummary,
    SchemeEnrollment,
)

logger = logging.getLogger(__name__)


def expected_payout_value(enrollment: SchemeEnrollment, estimated_gold_rate: float) -> float:
    """Estimated payout in currency for one enrollment.

    Gold SIPs are valued at the estimated rate; cash schemes pay back what
    was paid in. Bonus and interest are not included.
    """
    if enrollment.calculation_type == CalculationType.WEIGHT_ACCUMULATION:
        return enrollment.accumulated_weight * estimated_gold_rate
    return enrollment.total_paid


def _month_label(item: MaturityForecastItem) -> str:
    if item.maturity_date is None:
        return UNKNOWN_MONTH_LABEL
    return item.maturity_date.strftime("%b %Y")


def forecast_maturities(
    enrollments: Iterable[SchemeEnrollment],
    estimated_gold_rate: float = ESTIMATED_GOLD_RATE,
) -> Tuple[List[MaturityForecastItem], MaturitySummary]:
    rate = non_negative(estimated_gold_rate)

    forecast: List[MaturityForecastItem] = []
    for e in enrollments:
        forecast.append(
            MaturityForecastItem(
                enrollment_id=e.id,
                customer_name=e.customer_name,
                customer_phone=e.customer_phone,
                scheme_name=e.scheme_name,
                maturity_date=e.maturity_date,
                type=e.calculation_type,
                accumulated_weight=e.accumulated_weight,
                total_paid=e.total_paid,
                expected_payout_value=expected_payout_value(e, rate),
                status=e.status,
            )
        )

    summary = MaturitySummary(total_count=len(forecast))
    breakdown = {}
    for item in forecast:
        if item.type == CalculationType.WEIGHT_ACCUMULATION:
            summary.total_gold_weight += item.accumulated_weight
        else:
            summary.total_cash_liability += item.expected_payout_value

        key = _month_label(item)
        breakdown[key] = breakdown.get(key, 0.0) + item.expected_payout_value
    summary.monthly_breakdown = breakdown

    logger.debug(
        "forecast built for %d enrollments across %d months",
        summary.total_count,
        len(breakdown),
    )
    return forecast, summary


def maturity_window(
    months: int = FORECAST_MONTHS, now: Optional[datetime] = None
) -> Tuple[datetime, datetime]:
    start = now or datetime.now()
    return start, start + relativedelta(months=months)


def select_maturing(
    enrollments: Iterable[SchemeEnrollment],
    months: int = FORECAST_MONTHS,
    now: Optional[datetime] = None,
) -> List[SchemeEnrollment]:
    """Active enrollments maturing between now and now + months, soonest first.

    The database applies this filter in production; this is for callers
    holding rows in memory.
    """
    start, end = maturity_window(months, now)
    selected = [
        e
        for e in enrollments
        if e.status.upper() == ACTIVE_STATUS
        and e.maturity_date is not None
        and start.date() <= e.maturity_date <= end.date()
    ]
    return sorted(selected, key=lambda e: e.maturity_date)
