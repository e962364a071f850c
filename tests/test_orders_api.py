from conftest import make_order

def test_save_and_list_orders(client, operator_headers):
    response = client.post("/api/orders", json=make_order("ORD-1"), headers=operator_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Order saved successfully"
    assert [item["order_id"] for item in body["items"]] == ["ORD-1"]
    assert body["items"][0]["id"] == "ORD-1"

    client.post("/api/orders", json=make_order("ORD-2", order_status="completed"), headers=operator_headers)
    orders = client.get("/api/orders", headers=operator_headers).json()
    assert {order["order_id"] for order in orders} == {"ORD-1", "ORD-2"}

def test_save_merges_into_existing_order(client, operator_headers):
    client.post("/api/orders", json=make_order("ORD-1", price="₹500", notes="fragile"), headers=operator_headers)
    client.post("/api/orders", json=make_order("ORD-1", order_status="completed"), headers=operator_headers)

    order = client.get("/api/orders/ORD-1", headers=operator_headers).json()
    assert order["order_status"] == "completed"
    assert order["notes"] == "fragile"
    assert len(client.get("/api/orders", headers=operator_headers).json()) == 1

def test_missing_required_field_is_rejected(client, operator_headers):
    order = make_order()
    order["material"] = "   "
    assert client.post("/api/orders", json=order, headers=operator_headers).status_code == 422
    del order["material"]
    assert client.post("/api/orders", json=order, headers=operator_headers).status_code == 422

def test_search_and_status_filter(client, operator_headers):
    client.post("/api/orders", json=make_order("ORD-1", material="**Steel**"), headers=operator_headers)
    client.post("/api/orders", json=make_order("ORD-2", order_status="completed", booking_status="completed"), headers=operator_headers)

    found = client.get("/api/orders", params={"q": "steel"}, headers=operator_headers).json()
    assert [order["order_id"] for order in found] == ["ORD-1"]

    pending = client.get("/api/orders", params={"status": "pending"}, headers=operator_headers).json()
    assert [order["order_id"] for order in pending] == ["ORD-1"]

    counts = client.get("/api/orders/status-counts", headers=operator_headers).json()
    assert counts["all"] == 2
    assert counts["completed"] == 1

def test_orders_are_owner_scoped(client, operator_headers, other_operator_headers):
    client.post("/api/orders", json=make_order("ORD-1"), headers=operator_headers)

    assert client.get("/api/orders", headers=other_operator_headers).json() == []
    assert client.get("/api/orders/ORD-1", headers=other_operator_headers).status_code == 404

    response = client.post("/api/orders", json=make_order("ORD-1"), headers=other_operator_headers)
    assert response.status_code == 403
    assert client.delete("/api/orders/ORD-1", headers=other_operator_headers).status_code == 403

def test_delete_order(client, operator_headers):
    client.post("/api/orders", json=make_order("ORD-1"), headers=operator_headers)
    response = client.delete("/api/orders/ORD-1", headers=operator_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Order deleted", "items": []}
    assert client.delete("/api/orders/ORD-1", headers=operator_headers).status_code == 404

def test_admin_listing(client, operator_headers, admin_headers):
    client.post("/api/orders", json=make_order("ORD-1"), headers=operator_headers)
    assert client.get("/api/orders/all", headers=operator_headers).status_code == 403
    orders = client.get("/api/orders/all", headers=admin_headers).json()
    assert [order["order_id"] for order in orders] == ["ORD-1"]

def test_orders_require_authentication(client):
    assert client.get("/api/orders").status_code in (401, 403)
