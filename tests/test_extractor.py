import json
from datetime import date

from jewel_billing.extractor import (
    enrollment_from_row,
    enrollments_from_rows,
    export_to_json,
    line_items_from_rows,
    load_json_rows,
    loyalty_settings_from_row,
    stored_invoice_from_row,
)
from jewel_billing.models import CalculationType, EarningType


def test_enrollment_row_with_joined_relations():
    row = {
        "id": 42,
        "maturity_date": "2026-05-20",
        "total_paid": "12000",
        "total_gold_weight_accumulated": 1.667,
        "status": "ACTIVE",
        "customer": {"name": "Meera Shah", "phone": "9876543210"},
        "scheme": {"name": "Gold SIP", "calculation_type": "WEIGHT_ACCUMULATION"},
    }
    e = enrollment_from_row(row)

    assert e.id == "42"
    assert e.maturity_date == date(2026, 5, 20)
    assert e.total_paid == 12000
    assert e.accumulated_weight == 1.667
    assert e.calculation_type == CalculationType.WEIGHT_ACCUMULATION
    assert e.customer_name == "Meera Shah"
    assert e.scheme_name == "Gold SIP"


def test_enrollment_row_without_relations_gets_defaults():
    e = enrollment_from_row({"id": "x", "totalPaid": None, "calculationType": "weird"})
    assert e.customer_name == "Unknown"
    assert e.customer_phone == ""
    assert e.total_paid == 0
    assert e.calculation_type == CalculationType.FLAT_AMOUNT
    assert e.maturity_date is None


def test_enrollments_from_rows_skips_non_mappings():
    assert len(enrollments_from_rows([{"id": "a"}, None, "b"])) == 1
    assert enrollments_from_rows(None) == []


def test_loyalty_settings_row():
    assert loyalty_settings_from_row(None) is None
    assert loyalty_settings_from_row({}) is None

    settings = loyalty_settings_from_row(
        {
            "shop_id": "s1",
            "earning_type": "FLAT",
            "flat_points_ratio": "0.01",
            "redemption_conversion_rate": 0.25,
            "percentage_back": None,
        }
    )
    assert settings.earning_type == EarningType.FLAT
    assert settings.flat_points_ratio == 0.01
    assert settings.percentage_back is None


def test_line_items_accept_snake_and_camel_case():
    items = line_items_from_rows(
        [
            {"net_weight": 2, "making_rate": 300, "stone_amount": 50},
            {"netWeight": 3, "makingRate": 400, "hsnCode": 7113},
            42,
        ]
    )
    assert [i.net_weight for i in items] == [2, 3]
    assert items[0].making_rate == 300
    assert items[1].hsn_code == "7113"


def test_stored_invoice_from_camel_case_row():
    inv = stored_invoice_from_row(
        {"invoiceNumber": 1001, "grandTotal": "26265", "discount": "", "invoice_items": []}
    )
    assert inv.invoice_number == "1001"
    assert inv.grand_total == 26265
    assert inv.discount == 0
    assert inv.items == []


def test_export_and_load_round_trip(tmp_path):
    out = tmp_path / "reports" / "items.json"
    export_to_json({"items": line_items_from_rows([{"netWeight": 1}])}, str(out))

    data = load_json_rows(str(out))
    assert data["items"][0]["net_weight"] == 1
    assert json.loads(out.read_text(encoding="utf-8")) == data
