from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from database import get_db
from models.user import User
from services.entity_store import order_store
from services.tracking_service import to_tracking_view, with_road_route, search_tracking
from utils.auth_dependency import get_current_user

router = APIRouter(prefix="/api/tracking", tags=["Tracking"])

class Point(BaseModel):
    lat: float
    lng: float

class OrderTrackingResponse(BaseModel):
    id: str
    driver: str
    vehicle: str
    vehicleNumber: str
    location: Point
    status: str
    lastUpdated: Optional[datetime] = None
    route: List[Point]
    distance_km: Optional[float] = None

@router.get("", response_model=List[OrderTrackingResponse])
def get_tracked_orders(
    q: Optional[str] = Query(None, description="Order id or vehicle number"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    views = [to_tracking_view(order) for order in order_store.list(db, current_user.id)]
    return search_tracking(views, q)

@router.get("/{order_id}", response_model=OrderTrackingResponse)
def get_order_tracking(
    order_id: str,
    road: bool = Query(False, description="Follow roads via OSRM instead of a straight line"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = order_store.get(db, current_user.id, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    view = to_tracking_view(order)
    return with_road_route(view) if road else view
