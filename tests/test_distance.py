import httpx
from utils import distance
from utils.distance import get_road_route, haversine_distance

real_client = httpx.Client

def use_transport(monkeypatch, handler):
    monkeypatch.setattr(
        distance.httpx, "Client",
        lambda timeout=None: real_client(transport=httpx.MockTransport(handler), timeout=timeout),
    )

def test_haversine_distance():
    assert haversine_distance(18.52, 73.85, 18.52, 73.85) == 0
    assert 115 < haversine_distance(18.52, 73.85, 19.07, 72.87) < 125

def test_road_route(monkeypatch):
    use_transport(monkeypatch, lambda request: httpx.Response(200, json={
        "code": "Ok",
        "routes": [{"distance": 148400, "geometry": {"coordinates": [[73.85, 18.52], [72.87, 19.07]]}}],
    }))
    assert get_road_route(18.52, 73.85, 19.07, 72.87) == (148.4, [[73.85, 18.52], [72.87, 19.07]])

def test_non_json_body_falls_back(monkeypatch):
    use_transport(monkeypatch, lambda request: httpx.Response(200, text="<html>gateway</html>"))
    assert get_road_route(18.52, 73.85, 19.07, 72.87) == (None, None)

def test_route_without_distance_falls_back(monkeypatch):
    use_transport(monkeypatch, lambda request: httpx.Response(200, json={"code": "Ok", "routes": [{"geometry": {}}]}))
    assert get_road_route(18.52, 73.85, 19.07, 72.87) == (None, None)

def test_error_status_falls_back(monkeypatch):
    use_transport(monkeypatch, lambda request: httpx.Response(502, text="bad gateway"))
    assert get_road_route(18.52, 73.85, 19.07, 72.87) == (None, None)

def test_tracking_keeps_straight_line_when_osrm_answers_garbage(client, operator_headers, monkeypatch):
    from conftest import make_order
    client.post("/api/orders", json=make_order(
        "ORD-1", from_lat=18.52, from_lng=73.85, dest_lat=19.07, dest_lng=72.87,
    ), headers=operator_headers)
    use_transport(monkeypatch, lambda request: httpx.Response(200, text="<html>gateway</html>"))

    response = client.get("/api/tracking/ORD-1", params={"road": "true"}, headers=operator_headers)
    assert response.status_code == 200
    view = response.json()
    assert view["route"] == [{"lat": 18.52, "lng": 73.85}, {"lat": 19.07, "lng": 72.87}]
    assert 115 < view["distance_km"] < 125
