# jewel_billing/extractor.py
"""
Mapping from database rows into typed models.

Rows arrive as plain dicts, either flat (API payloads) or with joined
relations nested (``customer`` and ``scheme`` objects on enrollments).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ValidationError

from .models import InvoiceLineItem, LoyaltySettings, SchemeEnrollment, StoredInvoice

logger = logging.getLogger(__name__)


def _mapping(row: Any) -> Optional[Mapping[str, Any]]:
    return row if isinstance(row, Mapping) else None


def _row_list(rows: Any) -> List[Any]:
    if isinstance(rows, (list, tuple)):
        return list(rows)
    if rows is not None:
        logger.debug("expected a list of rows, got %s", type(rows).__name__)
    return []


def line_items_from_rows(rows: Any) -> List[InvoiceLineItem]:
    items: List[InvoiceLineItem] = []
    for row in _row_list(rows):
        if _mapping(row) is None:
            logger.debug("skipping line item row %r", row)
            continue
        try:
            items.append(InvoiceLineItem.model_validate(dict(row)))
        except ValidationError as exc:
            logger.warning("line item row rejected: %s", exc.errors()[0]["msg"])
    return items


def loyalty_settings_from_row(row: Any) -> Optional[LoyaltySettings]:
    """Typed settings, or None when the shop has no loyalty program row."""
    if not _mapping(row):
        return None
    try:
        return LoyaltySettings.model_validate(dict(row))
    except ValidationError as exc:
        logger.warning("loyalty settings row rejected: %s", exc.errors()[0]["msg"])
        return None


def enrollment_from_row(row: Mapping[str, Any]) -> SchemeEnrollment:
    customer = _mapping(row.get("customer")) or {}
    scheme = _mapping(row.get("scheme")) or {}

    data = {
        "id": str(row.get("id") or ""),
        "maturity_date": row.get("maturity_date", row.get("maturityDate")),
        "total_paid": row.get("total_paid", row.get("totalPaid")),
        "accumulated_weight": row.get(
            "total_gold_weight_accumulated",
            row.get("accumulated_weight", row.get("accumulatedWeight")),
        ),
        "status": str(row.get("status") or ""),
        "calculation_type": scheme.get("calculation_type")
        or row.get("calculation_type", row.get("calculationType")),
        "customer_name": customer.get("name")
        or row.get("customer_name", row.get("customerName"))
        or "Unknown",
        "customer_phone": customer.get("phone")
        or row.get("customer_phone", row.get("customerPhone"))
        or "",
        "scheme_name": scheme.get("name")
        or row.get("scheme_name", row.get("schemeName"))
        or "Unknown",
    }
    return SchemeEnrollment.model_validate(data)


def enrollments_from_rows(rows: Any) -> List[SchemeEnrollment]:
    enrollments: List[SchemeEnrollment] = []
    for row in _row_list(rows):
        if _mapping(row) is None:
            logger.debug("skipping enrollment row %r", row)
            continue
        try:
            enrollments.append(enrollment_from_row(row))
        except ValidationError as exc:
            logger.warning("enrollment row %s rejected: %s", row.get("id"), exc.errors()[0]["msg"])
    return enrollments


def stored_invoice_from_row(row: Mapping[str, Any]) -> StoredInvoice:
    data = dict(row)
    data["items"] = line_items_from_rows(row.get("items") or row.get("invoice_items"))
    for snake, camel in (
        ("sgst_amount", "sgstAmount"),
        ("cgst_amount", "cgstAmount"),
        ("grand_total", "grandTotal"),
        ("invoice_number", "invoiceNumber"),
    ):
        if snake not in data and camel in data:
            data[snake] = data[camel]
    return StoredInvoice.model_validate(data)


def load_json_rows(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def export_to_json(payload: Any, output_path: str) -> None:
    def _dump(obj: Any) -> Any:
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        if isinstance(obj, list):
            return [_dump(o) for o in obj]
        if isinstance(obj, dict):
            return {k: _dump(v) for k, v in obj.items()}
        return obj

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(_dump(payload), indent=2, default=str), encoding="utf-8")
