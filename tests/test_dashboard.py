from services.dashboard_service import parse_amount, monthly_revenue, summarize, order_timestamp
from datetime import datetime

def test_parse_amount_strips_currency_and_separators():
    assert parse_amount({"price": "₹1,200"}) == 1200.0
    assert parse_amount({"price": "Rs 99.50"}) == 99.5
    assert parse_amount({"price": 800}) == 800.0

def test_parse_amount_falls_back_to_total_amount():
    assert parse_amount({"total_amount": 450}) == 450.0
    assert parse_amount({"price": "", "total_amount": "300.5"}) == 300.5
    assert parse_amount({"total_amount": "n/a"}) == 0.0
    assert parse_amount({}) == 0.0

def test_order_timestamp_prefers_created_at():
    order = {"createdAt": {"seconds": 1704067200}, "booking_date": "2023-05-01"}
    assert order_timestamp(order) == datetime(2024, 1, 1)
    assert order_timestamp({"booking_date": "2023-05-01"}) == datetime(2023, 5, 1)
    assert order_timestamp({"createdAt": "garbage"}) is None

def test_total_revenue():
    orders = [
        {"price": "₹1,200", "createdAt": "2024-01-05"},
        {"total_amount": 800, "createdAt": "2024-01-20"},
    ]
    summary = summarize(orders, active_drivers=3, vehicles_in_use=2)
    assert summary["total_revenue"] == 2000.0
    assert summary["total_orders"] == 2
    assert summary["active_drivers"] == 3
    assert summary["vehicles_in_use"] == 2
    assert summary["monthly_revenue"] == [{"label": "Jan 2024", "value": 2000.0}]

def test_monthly_revenue_keeps_last_six_months_ascending():
    orders = [{"price": str(month * 100), "createdAt": f"2024-{month:02d}-15"} for month in range(1, 9)]
    series = monthly_revenue(orders)
    assert [point["label"] for point in series] == [
        "Mar 2024", "Apr 2024", "May 2024", "Jun 2024", "Jul 2024", "Aug 2024",
    ]
    assert series[0]["value"] == 300.0
    assert series[-1]["value"] == 800.0

def test_months_sort_chronologically_across_years():
    orders = [
        {"price": "10", "createdAt": "2024-01-01"},
        {"price": "20", "createdAt": "2023-12-01"},
    ]
    assert [point["label"] for point in monthly_revenue(orders)] == ["Dec 2023", "Jan 2024"]

def test_unparsable_dates_are_excluded_from_buckets_but_counted_in_total():
    orders = [
        {"price": "100", "createdAt": "2024-03-03"},
        {"price": "50", "createdAt": "someday"},
    ]
    summary = summarize(orders)
    assert summary["total_revenue"] == 150.0
    assert summary["monthly_revenue"] == [{"label": "Mar 2024", "value": 100.0}]

def test_empty_orders():
    summary = summarize([])
    assert summary["total_revenue"] == 0
    assert summary["monthly_revenue"] == []
