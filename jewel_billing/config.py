# jewel_billing/config.py
"""Shop-wide defaults for billing and scheme calculations.

Every value can be overridden through an environment variable of the same
name.
"""
from __future__ import annotations

import os


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# GST is split evenly between state and centre for intra-state sales (3% on gold)
DEFAULT_SGST_RATE = _env_float("DEFAULT_SGST_RATE", 1.5)
DEFAULT_CGST_RATE = _env_float("DEFAULT_CGST_RATE", 1.5)

# Per gram, used when no live rate is available for forecasting
ESTIMATED_GOLD_RATE = _env_float("ESTIMATED_GOLD_RATE", 7200.0)
FORECAST_MONTHS = _env_int("FORECAST_MONTHS", 6)

# Milligram resolution
WEIGHT_PRECISION = 3

EPSILON = 0.01  # Float comparison tolerance

ACTIVE_STATUS = "ACTIVE"
UNKNOWN_MONTH_LABEL = "Unknown"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
