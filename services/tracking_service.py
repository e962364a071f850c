from typing import Any, Dict, List, Optional, Sequence
from utils.distance import haversine_distance, get_road_route, to_coordinate, is_valid_coordinate
from utils.timestamps import parse_flexible_timestamp

UNKNOWN = "Unknown"

def to_tracking_view(order: Dict[str, Any]) -> Dict[str, Any]:
    """Map an order document onto the map view: origin, destination and route"""
    origin = {"lat": to_coordinate(order.get("from_lat")), "lng": to_coordinate(order.get("from_lng"))}
    destination = {"lat": to_coordinate(order.get("dest_lat")), "lng": to_coordinate(order.get("dest_lng"))}

    distance_km = None
    if is_valid_coordinate(origin["lat"], origin["lng"]) and is_valid_coordinate(destination["lat"], destination["lng"]):
        distance_km = round(haversine_distance(origin["lat"], origin["lng"], destination["lat"], destination["lng"]), 2)

    return {
        "id": str(order.get("order_id") or order.get("id") or ""),
        "driver": order.get("user_name") or UNKNOWN,
        "vehicle": order.get("vehicle_type") or UNKNOWN,
        "vehicleNumber": order.get("vehicleNumber") or "",
        "location": destination,
        "status": order.get("order_status") or UNKNOWN,
        "lastUpdated": parse_flexible_timestamp(order.get("booking_date")),
        "route": [origin, destination],
        "distance_km": distance_km,
    }

def with_road_route(view: Dict[str, Any]) -> Dict[str, Any]:
    """Replace the straight origin/destination line with the road route when OSRM answers"""
    if view["distance_km"] is None:
        return view
    origin, destination = view["route"][0], view["route"][-1]
    distance_km, coordinates = get_road_route(origin["lat"], origin["lng"], destination["lat"], destination["lng"])
    if distance_km is None or not coordinates:
        return view
    return {
        **view,
        "route": [{"lat": lat, "lng": lng} for lng, lat in coordinates],
        "distance_km": round(distance_km, 2),
    }

def search_tracking(views: Sequence[Dict[str, Any]], query: Optional[str] = None) -> List[Dict[str, Any]]:
    """Match order id or vehicle number, case-insensitively"""
    needle = (query or "").strip().lower()
    if not needle:
        return list(views)
    return [
        view for view in views
        if needle in view["id"].lower()
        or (view["vehicleNumber"] and needle in view["vehicleNumber"].lower())
    ]
