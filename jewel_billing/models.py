# jewel_billing/models.py
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import DEFAULT_CGST_RATE, DEFAULT_SGST_RATE
from .lang_utils import non_negative, parse_date_any, parse_flag, safe_number


class RowModel(BaseModel):
    """Base for models built from database rows or client JSON."""

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )


class InvoiceLineItem(RowModel):
    description: Optional[str] = None
    purity: Optional[str] = None
    hsn_code: Optional[str] = Field(default=None, alias="hsnCode")

    gross_weight: float = Field(default=0.0, alias="grossWeight")
    net_weight: float = Field(default=0.0, alias="netWeight")
    stone_weight: float = Field(default=0.0, alias="stoneWeight")
    rate: float = 0.0
    making_rate: float = Field(default=0.0, alias="makingRate")
    stone_amount: float = Field(default=0.0, alias="stoneAmount")

    @field_validator(
        "gross_weight",
        "net_weight",
        "stone_weight",
        "rate",
        "making_rate",
        "stone_amount",
        mode="before",
    )
    @classmethod
    def _coerce_amount(cls, v):
        return non_negative(v)


class EarningType(str, Enum):
    FLAT = "flat"
    PERCENTAGE = "percentage"


class LoyaltySettings(RowModel):
    is_enabled: bool = True
    earning_type: Optional[EarningType] = None
    flat_points_ratio: Optional[float] = None
    percentage_back: Optional[float] = None

    redemption_enabled: bool = True
    redemption_conversion_rate: float = 0.0
    max_redemption_percentage: Optional[float] = None
    min_points_required: Optional[float] = None

    @field_validator("is_enabled", "redemption_enabled", mode="before")
    @classmethod
    def _null_flag_means_default(cls, v):
        return True if v is None else v

    @field_validator("earning_type", mode="before")
    @classmethod
    def _known_earning_type(cls, v):
        if isinstance(v, EarningType):
            return v
        if isinstance(v, str) and v.strip().lower() in {e.value for e in EarningType}:
            return v.strip().lower()
        return None

    @field_validator(
        "flat_points_ratio",
        "percentage_back",
        "max_redemption_percentage",
        "min_points_required",
        mode="before",
    )
    @classmethod
    def _optional_number(cls, v):
        if v is None:
            return None
        return safe_number(v)

    @field_validator("redemption_conversion_rate", mode="before")
    @classmethod
    def _conversion_rate(cls, v):
        return non_negative(v)


class InvoiceCalculationResult(BaseModel):
    subtotal: float
    loyalty_discount: float
    total_discount: float
    sgst_amount: float
    cgst_amount: float
    grand_total: float
    points_to_earn: int


class InvoiceCalculationRequest(RowModel):
    """Everything the invoice form sends for a recalculation."""

    items: List[InvoiceLineItem] = []
    discount: float = 0.0
    redeem_points: bool = Field(default=False, alias="redeemPoints")
    points_to_redeem: float = Field(default=0.0, alias="pointsToRedeem")
    loyalty_settings: Optional[LoyaltySettings] = Field(default=None, alias="loyaltySettings")
    sgst_rate: float = Field(default=DEFAULT_SGST_RATE, alias="sgstRate")
    cgst_rate: float = Field(default=DEFAULT_CGST_RATE, alias="cgstRate")
    current_rate: float = Field(default=0.0, alias="currentRate")

    @field_validator("discount", "points_to_redeem", "current_rate", mode="before")
    @classmethod
    def _coerce_amount(cls, v):
        return non_negative(v)

    @field_validator("sgst_rate", "cgst_rate", mode="before")
    @classmethod
    def _coerce_rate(cls, v):
        return safe_number(v)

    @field_validator("redeem_points", mode="before")
    @classmethod
    def _flag(cls, v):
        return parse_flag(v)


class LoyaltyValidationResult(BaseModel):
    valid: bool
    errors: List[str] = []
    discount_amount: float = 0.0
    max_redeemable_points: int = 0
    points_after_redemption: Optional[float] = None


# === SCHEMES ===
class CalculationType(str, Enum):
    WEIGHT_ACCUMULATION = "WEIGHT_ACCUMULATION"
    FLAT_AMOUNT = "FLAT_AMOUNT"
    FIXED_DURATION = "FIXED_DURATION"


class BenefitType(str, Enum):
    BONUS_MONTH = "BONUS_MONTH"
    INTEREST = "INTEREST"
    MAKING_CHARGE_DISCOUNT = "MAKING_CHARGE_DISCOUNT"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class Scheme(RowModel):
    id: Optional[str] = None
    name: Optional[str] = None
    scheme_type: str = "FLEXIBLE"  # FIXED_DURATION | FLEXIBLE
    calculation_type: CalculationType = CalculationType.FLAT_AMOUNT
    benefit_type: Optional[BenefitType] = None
    benefit_value: float = 0.0
    duration_months: float = 0.0
    scheme_amount: float = 0.0

    @field_validator("benefit_value", "duration_months", "scheme_amount", mode="before")
    @classmethod
    def _coerce(cls, v):
        return safe_number(v)

    @field_validator("benefit_type", mode="before")
    @classmethod
    def _known_benefit(cls, v):
        if isinstance(v, str) and v.upper() in BenefitType.__members__:
            return v.upper()
        return v if isinstance(v, BenefitType) else None


class SchemeEnrollment(RowModel):
    id: str = ""
    maturity_date: Optional[date] = Field(default=None, alias="maturityDate")
    total_paid: float = Field(default=0.0, alias="totalPaid")
    accumulated_weight: float = Field(default=0.0, alias="accumulatedWeight")
    status: str = ""
    calculation_type: CalculationType = Field(
        default=CalculationType.FLAT_AMOUNT, alias="calculationType"
    )
    customer_name: str = Field(default="Unknown", alias="customerName")
    customer_phone: str = Field(default="", alias="customerPhone")
    scheme_name: str = Field(default="Unknown", alias="schemeName")

    @field_validator("total_paid", "accumulated_weight", mode="before")
    @classmethod
    def _coerce(cls, v):
        return non_negative(v)

    @field_validator("maturity_date", mode="before")
    @classmethod
    def _parse_maturity(cls, v):
        return parse_date_any(v)

    @field_validator("calculation_type", mode="before")
    @classmethod
    def _calc_type(cls, v):
        if isinstance(v, str) and v.upper() in CalculationType.__members__:
            return v.upper()
        return v if isinstance(v, CalculationType) else CalculationType.FLAT_AMOUNT


class MaturityForecastItem(BaseModel):
    enrollment_id: str
    customer_name: str
    customer_phone: str
    scheme_name: str
    maturity_date: Optional[date]
    type: CalculationType
    accumulated_weight: float
    total_paid: float
    expected_payout_value: float
    status: str


class MaturitySummary(BaseModel):
    total_count: int = 0
    total_gold_weight: float = 0.0
    total_cash_liability: float = 0.0
    monthly_breakdown: Dict[str, float] = {}


class RedemptionCalculation(BaseModel):
    principal_amount: float
    principal_weight: float
    benefit_amount: float
    benefit_description: str
    total_payout_amount: float
    total_payout_weight: float
    is_eligible_for_benefit: bool


# === STORED INVOICES (audit) ===
class StoredInvoice(RowModel):
    invoice_number: Optional[str] = None
    status: Optional[str] = None
    items: List[InvoiceLineItem] = []
    discount: float = 0.0
    loyalty_discount_amount: float = Field(default=0.0, alias="loyaltyDiscountAmount")
    subtotal: Optional[float] = None
    sgst_amount: Optional[float] = None
    cgst_amount: Optional[float] = None
    grand_total: Optional[float] = None

    @field_validator("discount", mode="before")
    @classmethod
    def _coerce_discount(cls, v):
        return safe_number(v)

    @field_validator("loyalty_discount_amount", mode="before")
    @classmethod
    def _coerce_loyalty_discount(cls, v):
        return non_negative(v)

    @field_validator("subtotal", "sgst_amount", "cgst_amount", "grand_total", mode="before")
    @classmethod
    def _optional_amount(cls, v):
        if v is None:
            return None
        return safe_number(v)


class InvoiceAuditResult(BaseModel):
    invoice_id: Optional[str]
    is_valid: bool
    errors: List[str]


class InvoiceAuditSummary(BaseModel):
    total_invoices: int
    valid_invoices: int
    invalid_invoices: int
    error_counts: dict
