from datetime import date
from services.payment_service import to_settlement_row, filter_settlements

ORDERS = [
    {"order_id": "A1", "user_name": "Ravi", "booking_date": "2024-03-01T10:00:00", "price": "₹1,500"},
    {"order_id": "B2", "user_name": "Meena", "booking_date": "2024-03-15", "price": "700", "payment_status": "Paid"},
    {"order_id": "C3", "user_name": "Arjun", "price": "abc"},
]

def rows():
    return [to_settlement_row(order) for order in ORDERS]

def test_settlement_rows():
    first, second, third = rows()
    assert first == {"id": "A1", "customer": "Ravi", "date": "2024-03-01", "amount": 1500.0, "paymentStatus": "Unpaid"}
    assert second["paymentStatus"] == "Paid"
    assert third["date"] == ""
    assert third["amount"] == 0.0

def test_filter_by_status():
    assert [r["id"] for r in filter_settlements(rows(), "Paid")] == ["B2"]
    assert len(filter_settlements(rows(), "All")) == 3

def test_filter_by_date_range_is_inclusive_and_drops_undated_rows():
    result = filter_settlements(rows(), start_date=date(2024, 3, 1), end_date=date(2024, 3, 1))
    assert [r["id"] for r in result] == ["A1"]
    assert [r["id"] for r in filter_settlements(rows(), start_date=date(2024, 3, 2))] == ["B2"]

def test_search_matches_customer_id_date_or_amount():
    assert [r["id"] for r in filter_settlements(rows(), search="meena")] == ["B2"]
    assert [r["id"] for r in filter_settlements(rows(), search="C3")] == ["C3"]
    assert [r["id"] for r in filter_settlements(rows(), search="1500")] == ["A1"]
    assert [r["id"] for r in filter_settlements(rows(), search="03-15")] == ["B2"]
