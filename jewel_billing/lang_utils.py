# jewel_billing/lang_utils.py
from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Optional

import dateparser

logger = logging.getLogger(__name__)

AMOUNT_TOKEN = r"[-+]?\d+(?:\.\d+)?"
AMOUNT_RE = re.compile(AMOUNT_TOKEN)
# 1,250.50 and lakh grouping 1,00,000.00
GROUPED_RE = re.compile(r"[-+]?(?:\d{1,3}(?:,\d{3})+|\d{1,2}(?:,\d{2})+,\d{3})(?:\.\d+)?")
TRUE_FLAGS = {"1", "true", "yes", "on"}


def safe_number(value: Any) -> float:
    """Coerce anything into a finite float, falling back to 0.0.

    Invoice forms recalculate on every keystroke, so half-typed or missing
    values must degrade to zero instead of raising.
    """
    if value is None or isinstance(value, bool):
        return float(value or 0)
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        num = _parse_numeric_text(value)
    else:
        try:
            num = float(value)
        except (TypeError, ValueError):
            logger.debug("unable to coerce %r, using 0", value)
            return 0.0

    if math.isnan(num) or math.isinf(num):
        return 0.0
    return num


def non_negative(value: Any) -> float:
    return max(0.0, safe_number(value))


def parse_flag(value: Any) -> bool:
    """Checkbox values from forms: "false" and "0" are off."""
    if isinstance(value, str):
        return value.strip().lower() in TRUE_FLAGS
    return bool(value)


def _parse_numeric_text(raw: str) -> float:
    s = raw.strip().replace(" ", "").replace("\u00a0", "")
    if not s:
        return 0.0
    try:
        return float(s)
    except ValueError:
        pass
    # "₹ 1,250.50" and similar
    s = re.sub(r"[^\d.,\-+]", "", s)
    if "," in s:
        if not GROUPED_RE.fullmatch(s):
            # "5,0" is not a grouped amount
            logger.debug("ambiguous separators in %r, using 0", raw)
            return 0.0
        s = s.replace(",", "")
    m = AMOUNT_RE.fullmatch(s)
    if not m:
        logger.debug("non-numeric text %r, using 0", raw)
        return 0.0
    return float(m.group(0))


def parse_date_any(text: Any) -> Optional[date]:
    if text is None:
        return None
    if isinstance(text, datetime):
        return text.date()
    if isinstance(text, date):
        return text
    if not isinstance(text, str) or not text.strip():
        return None

    s = text.strip()
    try:
        return date.fromisoformat(s)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    dt = dateparser.parse(
        s,
        settings={"DATE_ORDER": "DMY", "PREFER_DAY_OF_MONTH": "first"},
    )
    if not dt:
        return None
    return dt.date()
