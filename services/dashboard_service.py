from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
from utils.timestamps import parse_flexible_timestamp
import re

MONTHS_IN_SERIES = 6
NON_NUMERIC = re.compile(r"[^\d.]")

def _to_number(text: str) -> float:
    try:
        return float(text)
    except (TypeError, ValueError):
        return 0.0

def parse_amount(order: Dict[str, Any]) -> float:
    """Revenue of one order: price with currency noise stripped, else total_amount"""
    price = order.get("price")
    if price:
        return _to_number(NON_NUMERIC.sub("", str(price)))
    total_amount = order.get("total_amount")
    if total_amount:
        if isinstance(total_amount, bool):
            return 0.0
        if isinstance(total_amount, (int, float)):
            return float(total_amount)
        return _to_number(str(total_amount).strip())
    return 0.0

def order_timestamp(order: Dict[str, Any]) -> Optional[datetime]:
    """createdAt first, booking_date as the fallback literal date"""
    created = parse_flexible_timestamp(order.get("createdAt"))
    if created is not None:
        return created
    return parse_flexible_timestamp(order.get("booking_date"))

def month_key(moment: datetime) -> Tuple[int, int]:
    return moment.year, moment.month

def month_label(key: Tuple[int, int]) -> str:
    return datetime(key[0], key[1], 1).strftime("%b %Y")

def monthly_revenue(orders: Sequence[Dict[str, Any]], months: int = MONTHS_IN_SERIES) -> List[Dict[str, Any]]:
    """Revenue per calendar month, latest `months` buckets in chronological order"""
    buckets: Dict[Tuple[int, int], float] = {}
    for order in orders:
        moment = order_timestamp(order)
        if moment is None:
            # Unparsable dates stay out of the series rather than skewing "now"
            continue
        key = month_key(moment)
        buckets[key] = buckets.get(key, 0.0) + parse_amount(order)

    latest = sorted(buckets)[-months:] if months > 0 else []
    return [{"label": month_label(key), "value": buckets[key]} for key in latest]

def summarize(orders: Sequence[Dict[str, Any]], active_drivers: int = 0, vehicles_in_use: int = 0) -> Dict[str, Any]:
    total_revenue = sum(parse_amount(order) for order in orders)
    return {
        "total_orders": len(orders),
        "active_drivers": active_drivers,
        "vehicles_in_use": vehicles_in_use,
        "total_revenue": total_revenue,
        "monthly_revenue": monthly_revenue(orders),
    }
