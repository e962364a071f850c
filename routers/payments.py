from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from datetime import date
from database import get_db
from models.user import User
from models.log import LogCategory
from services.entity_store import order_store
from services.payment_service import to_settlement_row, filter_settlements, PAID_STATUS, ALL_STATUSES
from utils.auth_dependency import get_current_user
from utils.logger import DatabaseLogger, log_info

router = APIRouter(prefix="/api/payments", tags=["Payment Settlements"])

class SettlementRow(BaseModel):
    id: str
    customer: str
    date: str
    amount: float
    paymentStatus: str

class MarkPaidResponse(BaseModel):
    message: str
    items: List[SettlementRow]

def _rows(db: Session, user: User) -> List[dict]:
    return [to_settlement_row(order) for order in order_store.list(db, user.id)]

@router.get("", response_model=List[SettlementRow])
def get_settlements(
    status: str = Query(ALL_STATUSES, description="Payment status or All"),
    start_date: Optional[date] = Query(None, description="Inclusive lower bound (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Inclusive upper bound (YYYY-MM-DD)"),
    search: Optional[str] = Query(None, description="Matches customer, order id, date or amount"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return filter_settlements(_rows(db, current_user), status, start_date, end_date, search)

@router.post("/{order_id}/mark-paid", response_model=MarkPaidResponse)
def mark_as_paid(
    order_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Settle an order; only payment_status changes on the stored document"""
    order_store.merge_fields(db, current_user.id, order_id, {"payment_status": PAID_STATUS})

    DatabaseLogger.log_user_activity(
        user_id=current_user.id,
        action="mark_paid",
        entity_type="order",
        entity_id=order_id,
        ip_address=request.client.host if request.client else None,
        db=db
    )
    log_info(f"Order #{order_id} marked as paid", category=LogCategory.PAYMENT_SETTLEMENT, user_id=current_user.id, db=db)
    return MarkPaidResponse(message=f"Order #{order_id} marked as paid.", items=_rows(db, current_user))
