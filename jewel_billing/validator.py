# jewel_billing/validator.py
"""Audit stored invoices by recomputing their totals from line items."""
from __future__ import annotations

from collections import Counter
from typing import Any, List, Optional, Tuple

from .calculator import calculate_invoice
from .config import DEFAULT_CGST_RATE, DEFAULT_SGST_RATE, EPSILON
from .models import (
    InvoiceAuditResult,
    InvoiceAuditSummary,
    InvoiceCalculationResult,
    StoredInvoice,
)


def _check_completeness(inv: StoredInvoice) -> List[str]:
    errors: List[str] = []
    if not (inv.invoice_number or "").strip():
        errors.append("missing_field: invoice_number")
    if not inv.items:
        errors.append("missing_field: items")
    for field_name in ("subtotal", "grand_total"):
        if getattr(inv, field_name) is None:
            errors.append(f"missing_field: {field_name}")
    return errors


def _check_business_rules(inv: StoredInvoice, expected: InvoiceCalculationResult) -> List[str]:
    errors: List[str] = []

    for field_name in ("subtotal", "sgst_amount", "cgst_amount", "grand_total", "discount"):
        value: Optional[float] = getattr(inv, field_name)
        if value is not None and value < 0:
            errors.append(f"business_rule_failed: {field_name}_negative")

    comparisons = [
        ("subtotal", inv.subtotal, expected.subtotal),
        ("sgst", inv.sgst_amount, expected.sgst_amount),
        ("cgst", inv.cgst_amount, expected.cgst_amount),
        ("grand_total", inv.grand_total, expected.grand_total),
    ]
    for label, stored, recomputed in comparisons:
        if stored is not None and abs(stored - recomputed) > EPSILON:
            errors.append(f"business_rule_failed: {label}_mismatch")

    gross_total = expected.subtotal + expected.sgst_amount + expected.cgst_amount
    if expected.total_discount - EPSILON > gross_total:
        errors.append("anomaly: discount_exceeds_total")

    return errors


def audit_invoices(
    invoices: List[StoredInvoice],
    sgst_rate: Any = DEFAULT_SGST_RATE,
    cgst_rate: Any = DEFAULT_CGST_RATE,
    current_rate: Any = 0,
) -> Tuple[List[InvoiceAuditResult], InvoiceAuditSummary]:
    """Compare each invoice's stored totals with a fresh calculation.

    The recomputed discount is the cash discount plus the stored
    ``loyalty_discount_amount`` (0 when the column is absent).
    """
    results: List[InvoiceAuditResult] = []
    error_counter: Counter[str] = Counter()

    number_counts = Counter(
        (inv.invoice_number or "").strip() for inv in invoices if inv.invoice_number
    )
    duplicates = {k for k, c in number_counts.items() if k and c > 1}

    for inv in invoices:
        expected = calculate_invoice(
            inv.items,
            cash_discount=max(0.0, inv.discount) + inv.loyalty_discount_amount,
            sgst_rate=sgst_rate,
            cgst_rate=cgst_rate,
            current_rate=current_rate,
        )

        errors: List[str] = []
        errors.extend(_check_completeness(inv))
        errors.extend(_check_business_rules(inv, expected))
        if (inv.invoice_number or "").strip() in duplicates:
            errors.append("anomaly: duplicate_invoice_number")

        for e in errors:
            error_counter[e] += 1

        results.append(
            InvoiceAuditResult(
                invoice_id=inv.invoice_number,
                is_valid=not errors,
                errors=errors,
            )
        )

    total = len(invoices)
    invalid = sum(1 for r in results if not r.is_valid)

    summary = InvoiceAuditSummary(
        total_invoices=total,
        valid_invoices=total - invalid,
        invalid_invoices=invalid,
        error_counts=dict(error_counter),
    )
    return results, summary
