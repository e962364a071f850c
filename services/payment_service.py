from datetime import date
from typing import Any, Dict, List, Optional, Sequence
from services.dashboard_service import NON_NUMERIC
from utils.timestamps import parse_flexible_timestamp

ALL_STATUSES = "All"
DEFAULT_PAYMENT_STATUS = "Unpaid"
PAID_STATUS = "Paid"

def settlement_amount(order: Dict[str, Any]) -> float:
    try:
        return float(NON_NUMERIC.sub("", str(order.get("price"))))
    except ValueError:
        return 0.0

def to_settlement_row(order: Dict[str, Any]) -> Dict[str, Any]:
    booking_date = order.get("booking_date")
    return {
        "id": str(order.get("order_id") or order.get("id") or ""),
        "customer": order.get("user_name") or "",
        "date": str(booking_date)[:10] if booking_date else "",
        "amount": settlement_amount(order),
        "paymentStatus": order.get("payment_status") or DEFAULT_PAYMENT_STATUS,
    }

def _amount_text(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else str(amount)

def _row_date(row: Dict[str, Any]) -> Optional[date]:
    parsed = parse_flexible_timestamp(row.get("date"))
    return parsed.date() if parsed else None

def filter_settlements(
    rows: Sequence[Dict[str, Any]],
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None
) -> List[Dict[str, Any]]:
    search = search or ""
    result = []
    for row in rows:
        if status and status != ALL_STATUSES and row["paymentStatus"] != status:
            continue

        if start_date or end_date:
            row_date = _row_date(row)
            if row_date is None:
                continue
            if start_date and row_date < start_date:
                continue
            if end_date and row_date > end_date:
                continue

        if search and not (
            search.lower() in row["customer"].lower()
            or search in row["id"]
            or search in row["date"]
            or search in _amount_text(row["amount"])
        ):
            continue
        result.append(row)
    return result
