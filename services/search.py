"""
In-memory search and status filtering over fetched entity lists.

Every call re-scans the full list; lists are per-operator and small.
"""
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

MARKUP_CHARS = re.compile(r"[*_`~]")

ORDER_SEARCH_FIELDS = (
    "order_id",
    "user_name",
    "user_phone",
    "company_name",
    "booking_status",
    "order_status",
    "vehicle_type",
    "subtype_vehicle",
    "material",
    "destination_address",
)

DRIVER_SEARCH_FIELDS = (
    "firstName",
    "lastName",
    "mobileNumber",
    "city",
    "state",
    "vehicleNumber",
)

VEHICLE_IGNORED_FIELDS = {"userId", "isPlaceholder"}

ORDER_STATUS_FACETS = (
    "pending",
    "in-progress",
    "completed",
    "rejected",
    "confirmed",
    "cancelled",
)

def normalize(value: Any) -> str:
    """Strip markdown control characters, trim and lower-case"""
    if value is None:
        return ""
    return MARKUP_CHARS.sub("", str(value)).strip().lower()

def matches_query(record: Dict[str, Any], query: Optional[str], fields: Iterable[str]) -> bool:
    needle = normalize(query)
    if not needle:
        return True
    return any(needle in normalize(record.get(field)) for field in fields)

def filter_entities(records: Sequence[Dict[str, Any]], query: Optional[str], fields: Iterable[str]) -> List[Dict[str, Any]]:
    fields = tuple(fields)
    if not normalize(query):
        return list(records)
    return [record for record in records if matches_query(record, query, fields)]

def matches_status(order: Dict[str, Any], status: Optional[str]) -> bool:
    """Either order_status or booking_status may carry the facet value"""
    facet = normalize(status)
    if not facet:
        return True
    return normalize(order.get("order_status")) == facet or normalize(order.get("booking_status")) == facet

def filter_orders(orders: Sequence[Dict[str, Any]], query: Optional[str] = None, status: Optional[str] = None) -> List[Dict[str, Any]]:
    result = filter_entities(orders, query, ORDER_SEARCH_FIELDS)
    if normalize(status):
        result = [order for order in result if matches_status(order, status)]
    return result

def filter_drivers(drivers: Sequence[Dict[str, Any]], query: Optional[str] = None) -> List[Dict[str, Any]]:
    return filter_entities(drivers, query, DRIVER_SEARCH_FIELDS)

def filter_vehicles(vehicles: Sequence[Dict[str, Any]], query: Optional[str] = None) -> List[Dict[str, Any]]:
    """Match against every scalar value; placeholders drop out of searches"""
    if not normalize(query):
        return list(vehicles)
    result = []
    for vehicle in vehicles:
        if vehicle.get("isPlaceholder"):
            continue
        scalar_fields = [
            key for key, value in vehicle.items()
            if key not in VEHICLE_IGNORED_FIELDS and not isinstance(value, (dict, list, bool))
        ]
        if matches_query(vehicle, query, scalar_fields):
            result.append(vehicle)
    return result

def count_by_status(orders: Sequence[Dict[str, Any]]) -> Dict[str, int]:
    counts = {
        facet: sum(1 for order in orders if matches_status(order, facet))
        for facet in ORDER_STATUS_FACETS
    }
    counts["all"] = len(orders)
    return counts
