# main.py
import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, ValidationError

from jewel_billing.calculator import (
    calculate_from_request,
    calculate_gold_weight,
    validate_redemption,
)
from jewel_billing.config import (
    DEFAULT_CGST_RATE,
    DEFAULT_SGST_RATE,
    ESTIMATED_GOLD_RATE,
    FORECAST_MONTHS,
    LOG_LEVEL,
)
from jewel_billing.extractor import enrollments_from_rows, stored_invoice_from_row
from jewel_billing.forecaster import forecast_maturities, select_maturing
from jewel_billing.models import (
    InvoiceCalculationRequest,
    LoyaltySettings,
    Scheme,
    SchemeEnrollment,
)
from jewel_billing.schemes import calculate_maturity_value, calculate_redemption_value
from jewel_billing.validator import audit_invoices

logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger("jewel_billing.api")

app = FastAPI(title="Jewel Billing Service")


# ---------------------------------------------------------
# HEALTH
# ---------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------
# INVOICES
# ---------------------------------------------------------
@app.post("/invoices/calculate")
def calculate_invoice_totals(req: InvoiceCalculationRequest):
    """Recalculate invoice totals. Called on every edit of the invoice form."""
    return calculate_from_request(req).model_dump()


class AuditRequest(BaseModel):
    invoices: List[dict]
    sgst_rate: float = DEFAULT_SGST_RATE
    cgst_rate: float = DEFAULT_CGST_RATE
    current_rate: float = 0.0


@app.post("/invoices/audit")
def audit_stored_invoices(req: AuditRequest):
    try:
        invoices = [stored_invoice_from_row(row) for row in req.invoices]
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors()[0]["msg"]) from exc
    results, summary = audit_invoices(
        invoices, req.sgst_rate, req.cgst_rate, req.current_rate
    )
    logger.info(
        "audited %d invoices, %d invalid",
        summary.total_invoices,
        summary.invalid_invoices,
    )
    return {
        "summary": summary.model_dump(),
        "results": [r.model_dump() for r in results],
    }


# ---------------------------------------------------------
# LOYALTY
# ---------------------------------------------------------
class RedemptionRequest(BaseModel):
    points_to_redeem: float = 0
    customer_points: float = 0
    subtotal: float = 0
    settings: Optional[LoyaltySettings] = None


@app.post("/loyalty/validate-redemption")
def validate_loyalty_redemption(req: RedemptionRequest):
    result = validate_redemption(
        req.points_to_redeem, req.customer_points, req.subtotal, req.settings
    )
    return result.model_dump()


# ---------------------------------------------------------
# SCHEMES
# ---------------------------------------------------------
class GoldWeightRequest(BaseModel):
    amount: float = Field(..., ge=0)
    rate_per_gram: float


@app.post("/schemes/gold-weight")
def gold_weight(req: GoldWeightRequest):
    return {"weight": calculate_gold_weight(req.amount, req.rate_per_gram)}


class ForecastRequest(BaseModel):
    enrollments: List[dict]
    estimated_gold_rate: float = ESTIMATED_GOLD_RATE
    months: int = FORECAST_MONTHS
    prefiltered: bool = False


@app.post("/schemes/forecast")
def maturity_forecast(req: ForecastRequest):
    enrollments = enrollments_from_rows(req.enrollments)
    if not req.prefiltered:
        enrollments = select_maturing(enrollments, req.months)

    forecast, summary = forecast_maturities(enrollments, req.estimated_gold_rate)
    return {
        "forecast": [item.model_dump(mode="json") for item in forecast],
        "summary": summary.model_dump(),
    }


class RedemptionValueRequest(BaseModel):
    scheme: Scheme
    enrollment: SchemeEnrollment
    current_gold_rate: float = 0
    is_matured: bool = True


@app.post("/schemes/redemption-value")
def redemption_value(req: RedemptionValueRequest):
    calc = calculate_redemption_value(
        req.scheme, req.enrollment, req.current_gold_rate, req.is_matured
    )
    return {
        **calc.model_dump(),
        "projected_maturity_value": calculate_maturity_value(
            req.scheme, req.enrollment.total_paid
        ),
    }
