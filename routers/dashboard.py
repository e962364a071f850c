from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
from models.user import User
from services.entity_store import order_store, driver_store, vehicle_store
from services.dashboard_service import summarize
from services.kyc_workflow import normalize_kyc_status
from utils.auth_dependency import get_current_user
from pydantic import BaseModel
from typing import List

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])

class MonthlyRevenuePoint(BaseModel):
    label: str
    value: float

class DashboardStatsResponse(BaseModel):
    total_orders: int = 0
    active_drivers: int = 0
    vehicles_in_use: int = 0
    total_revenue: float = 0.0
    monthly_revenue: List[MonthlyRevenuePoint] = []
    kyc_status: str = "not-submitted"

@router.get("/stats", response_model=DashboardStatsResponse)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Summary cards and monthly revenue for the caller's account"""
    summary = summarize(
        order_store.list(db, current_user.id),
        active_drivers=driver_store.count(db, current_user.id),
        vehicles_in_use=vehicle_store.count(db, current_user.id)
    )
    return DashboardStatsResponse(**summary, kyc_status=normalize_kyc_status(current_user.kyc_status))
