from conftest import make_order

def test_dashboard_stats(client, operator_headers):
    client.post("/api/orders", json=make_order("ORD-1", price="₹1,200", createdAt="2024-01-10"), headers=operator_headers)
    client.post("/api/orders", json=make_order("ORD-2", total_amount=800, booking_date="2024-02-02"), headers=operator_headers)
    client.post("/api/orders", json=make_order("ORD-3", price="100", createdAt="whenever"), headers=operator_headers)
    client.post("/api/drivers", json={
        "firstName": "Sunil", "lastName": "Verma", "mobileNumber": "9876543210",
        "city": "Indore", "state": "MP", "vehicleNumber": "MP09AB1234",
    }, headers=operator_headers)

    stats = client.get("/api/dashboard/stats", headers=operator_headers).json()
    assert stats["total_orders"] == 3
    assert stats["total_revenue"] == 2100
    assert stats["active_drivers"] == 1
    assert stats["vehicles_in_use"] == 0
    assert stats["monthly_revenue"] == [
        {"label": "Jan 2024", "value": 1200.0},
        {"label": "Feb 2024", "value": 800.0},
    ]
    assert stats["kyc_status"] == "not-submitted"

def test_dashboard_is_per_operator(client, operator_headers, other_operator_headers):
    client.post("/api/orders", json=make_order("ORD-1", price="500"), headers=operator_headers)
    stats = client.get("/api/dashboard/stats", headers=other_operator_headers).json()
    assert stats["total_orders"] == 0
    assert stats["total_revenue"] == 0
