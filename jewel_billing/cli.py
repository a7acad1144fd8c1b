# jewel_billing/cli.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from pydantic import ValidationError

from .calculator import calculate_from_request, calculate_gold_weight
from .config import (
    DEFAULT_CGST_RATE,
    DEFAULT_SGST_RATE,
    ESTIMATED_GOLD_RATE,
    FORECAST_MONTHS,
    LOG_LEVEL,
)
from .extractor import (
    enrollments_from_rows,
    export_to_json,
    load_json_rows,
    stored_invoice_from_row,
)
from .forecaster import forecast_maturities, select_maturing
from .models import InvoiceCalculationRequest
from .validator import audit_invoices


class InputFileError(Exception):
    pass


def _load(path: str) -> Any:
    try:
        return load_json_rows(path)
    except FileNotFoundError as exc:
        raise InputFileError(f"Input file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise InputFileError(f"Input file is not valid JSON: {path} ({exc.msg})") from exc


def _rows(data: Any, key: str) -> List[Any]:
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise InputFileError(f"Expected a list of {key}")
    return data


def cmd_calculate(args: argparse.Namespace) -> int:
    data = _load(args.input)
    if not isinstance(data, dict):
        raise InputFileError("Expected an invoice object")
    try:
        request = InvoiceCalculationRequest.model_validate(data)
    except ValidationError as exc:
        raise InputFileError(f"Invalid invoice: {exc.errors()[0]['msg']}") from exc

    result = calculate_from_request(request)
    if args.output:
        export_to_json(result, args.output)

    print(f"Subtotal:      {result.subtotal:,.2f}")
    print(f"SGST:          {result.sgst_amount:,.2f}")
    print(f"CGST:          {result.cgst_amount:,.2f}")
    print(f"Discount:      {result.total_discount:,.2f}")
    print(f"Grand total:   {result.grand_total:,.2f}")
    print(f"Points earned: {result.points_to_earn}")
    return 0


def cmd_audit(args: argparse.Namespace) -> int:
    rows = _rows(_load(args.input), "invoices")
    try:
        invoices = [stored_invoice_from_row(r) for r in rows if isinstance(r, dict)]
    except ValidationError as exc:
        raise InputFileError(f"Invalid invoice row: {exc.errors()[0]['msg']}") from exc
    results, summary = audit_invoices(
        invoices,
        sgst_rate=args.sgst_rate,
        cgst_rate=args.cgst_rate,
        current_rate=args.current_rate,
    )

    export_to_json({"summary": summary, "results": results}, args.report)

    print(f"Total invoices: {summary.total_invoices}")
    print(f"Valid invoices: {summary.valid_invoices}")
    print(f"Invalid invoices: {summary.invalid_invoices}")
    if summary.error_counts:
        print("Top errors:")
        for err, count in sorted(
            summary.error_counts.items(), key=lambda kv: -kv[1]
        )[:5]:
            print(f"  {err}: {count}")

    return 0 if summary.invalid_invoices == 0 else 1


def cmd_forecast(args: argparse.Namespace) -> int:
    enrollments = enrollments_from_rows(_rows(_load(args.input), "enrollments"))
    if not args.no_filter:
        enrollments = select_maturing(enrollments, args.months)

    forecast, summary = forecast_maturities(enrollments, args.rate)
    export_to_json({"forecast": forecast, "summary": summary}, args.report)

    print(f"Maturing enrollments: {summary.total_count}")
    print(f"Gold to deliver (g):  {summary.total_gold_weight:,.3f}")
    print(f"Cash liability:       {summary.total_cash_liability:,.2f}")
    for month, value in summary.monthly_breakdown.items():
        print(f"  {month}: {value:,.2f}")
    return 0


def cmd_gold_weight(args: argparse.Namespace) -> int:
    print(f"{calculate_gold_weight(args.amount, args.rate):.3f}")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="jewel-billing")
    sub = parser.add_subparsers(dest="command", required=True)

    p_calc = sub.add_parser("calculate", help="Calculate totals for one invoice")
    p_calc.add_argument("--input", required=True, help="Invoice JSON file")
    p_calc.add_argument("--output", help="Write the calculation result as JSON")
    p_calc.set_defaults(func=cmd_calculate)

    p_audit = sub.add_parser("audit", help="Recompute and check stored invoice totals")
    p_audit.add_argument("--input", required=True, help="JSON list of stored invoices")
    p_audit.add_argument("--report", required=True, help="Output audit report JSON")
    p_audit.add_argument("--sgst-rate", type=float, default=DEFAULT_SGST_RATE)
    p_audit.add_argument("--cgst-rate", type=float, default=DEFAULT_CGST_RATE)
    p_audit.add_argument("--current-rate", type=float, default=0.0,
                         help="Fallback gold rate for items without a rate")
    p_audit.set_defaults(func=cmd_audit)

    p_fc = sub.add_parser("forecast", help="Forecast scheme maturities")
    p_fc.add_argument("--input", required=True, help="JSON list of enrollment rows")
    p_fc.add_argument("--report", required=True, help="Output forecast JSON")
    p_fc.add_argument("--rate", type=float, default=ESTIMATED_GOLD_RATE,
                      help="Estimated gold rate per gram")
    p_fc.add_argument("--months", type=int, default=FORECAST_MONTHS)
    p_fc.add_argument("--no-filter", action="store_true",
                      help="Rows are already filtered to active enrollments in the window")
    p_fc.set_defaults(func=cmd_forecast)

    p_gw = sub.add_parser("gold-weight", help="Convert an amount into grams of gold")
    p_gw.add_argument("--amount", required=True, type=float)
    p_gw.add_argument("--rate", required=True, type=float, help="Rate per gram")
    p_gw.set_defaults(func=cmd_gold_weight)

    args = parser.parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")

    try:
        exit_code = args.func(args)
    except InputFileError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 2
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
