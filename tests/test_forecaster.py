from datetime import date, datetime

from jewel_billing.forecaster import forecast_maturities, maturity_window, select_maturing
from jewel_billing.models import CalculationType, SchemeEnrollment


def _enrollment(**kwargs):
    defaults = dict(id="e1", status="ACTIVE", maturity_date="2026-03-10")
    defaults.update(kwargs)
    return SchemeEnrollment(**defaults)


def test_forecast_mixed_schemes():
    enrollments = [
        _enrollment(
            id="gold",
            calculation_type="WEIGHT_ACCUMULATION",
            accumulated_weight=10,
            total_paid=65000,
        ),
        _enrollment(
            id="cash",
            calculation_type="FLAT_AMOUNT",
            total_paid=12000,
            maturity_date="2026-01-05",
        ),
    ]

    forecast, summary = forecast_maturities(enrollments, 7200)

    assert [f.expected_payout_value for f in forecast] == [72000, 12000]
    assert summary.total_count == 2
    assert summary.total_gold_weight == 10
    assert summary.total_cash_liability == 12000
    # first encounter order, not calendar order
    assert list(summary.monthly_breakdown) == ["Mar 2026", "Jan 2026"]
    assert summary.monthly_breakdown["Mar 2026"] == 72000


def test_fixed_duration_pays_back_total_paid():
    forecast, summary = forecast_maturities(
        [_enrollment(calculation_type="FIXED_DURATION", total_paid=55000, accumulated_weight=3)],
        7200,
    )
    assert forecast[0].type == CalculationType.FIXED_DURATION
    assert forecast[0].expected_payout_value == 55000
    assert summary.total_gold_weight == 0
    assert summary.total_cash_liability == 55000


def test_same_month_enrollments_share_a_bucket():
    _, summary = forecast_maturities(
        [
            _enrollment(id="a", total_paid=1000, maturity_date="2026-04-01"),
            _enrollment(id="b", total_paid=2500, maturity_date="2026-04-30T18:30:00Z"),
        ],
        7200,
    )
    assert summary.monthly_breakdown == {"Apr 2026": 3500}


def test_unparseable_maturity_date_is_bucketed_as_unknown():
    _, summary = forecast_maturities([_enrollment(total_paid=500, maturity_date="??")], 7200)
    assert summary.monthly_breakdown == {"Unknown": 500}


def test_forecaster_does_not_filter():
    enrollments = [
        _enrollment(id="old", status="CLOSED", maturity_date="2019-01-01", total_paid=10),
    ]
    forecast, summary = forecast_maturities(enrollments, 7200)
    assert len(forecast) == 1
    assert summary.total_count == 1


def test_empty_forecast():
    forecast, summary = forecast_maturities([], 7200)
    assert forecast == []
    assert summary.total_count == 0
    assert summary.monthly_breakdown == {}


def test_maturity_window_spans_calendar_months():
    start, end = maturity_window(6, now=datetime(2026, 8, 31))
    assert start == datetime(2026, 8, 31)
    assert end == datetime(2027, 2, 28)


def test_select_maturing_keeps_active_rows_in_window_sorted():
    now = datetime(2026, 1, 1)
    rows = [
        _enrollment(id="late", maturity_date="2026-06-15"),
        _enrollment(id="soon", maturity_date="2026-02-01"),
        _enrollment(id="closed", status="CLOSED", maturity_date="2026-03-01"),
        _enrollment(id="past", maturity_date="2025-12-31"),
        _enrollment(id="beyond", maturity_date="2026-07-02"),
        _enrollment(id="undated", maturity_date=None),
    ]
    selected = select_maturing(rows, months=6, now=now)
    assert [e.id for e in selected] == ["soon", "late"]
    assert selected[0].maturity_date == date(2026, 2, 1)
