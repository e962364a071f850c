from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel, validator, Field
from typing import Any, Dict, List, Optional
from database import get_db
from models.user import User
from services.entity_store import order_store
from services.search import filter_orders, count_by_status
from utils.auth_dependency import get_current_user, get_current_admin
from utils.logger import DatabaseLogger
import re

router = APIRouter(prefix="/api/orders", tags=["Orders"])

REQUIRED_TEXT = dict(min_length=1, max_length=500)

class OrderPayload(BaseModel):
    """Order document; fields beyond the required ones are stored as given"""
    order_id: str = Field(..., min_length=1, max_length=200)
    user_name: str = Field(..., **REQUIRED_TEXT)
    user_phone: str = Field(..., min_length=1, max_length=20)
    company_name: str = Field(..., **REQUIRED_TEXT)
    booking_status: str = Field(..., min_length=1, max_length=50)
    order_status: str = Field(..., min_length=1, max_length=50)
    vehicle_type: str = Field(..., min_length=1, max_length=100)
    material: str = Field(..., **REQUIRED_TEXT)
    destination_address: str = Field(..., **REQUIRED_TEXT)

    class Config:
        extra = "allow"

    @validator('order_id', 'user_name', 'user_phone', 'company_name', 'booking_status',
               'order_status', 'vehicle_type', 'material', 'destination_address')
    def required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Required')
        return v

    @validator('order_id')
    def validate_order_id(cls, v):
        if '/' in v or re.search(r'[\x00-\x1f]', v):
            raise ValueError('Invalid characters in order id')
        return v

class OrdersChanged(BaseModel):
    message: str
    items: List[Dict[str, Any]]

@router.get("", response_model=List[Dict[str, Any]])
def get_orders(
    q: Optional[str] = Query(None, description="Free-text search"),
    status: Optional[str] = Query(None, description="Matches order_status or booking_status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Orders owned by the caller, filtered by text and status facet"""
    return filter_orders(order_store.list(db, current_user.id), q, status)

@router.get("/status-counts", response_model=Dict[str, int])
def get_status_counts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return count_by_status(order_store.list(db, current_user.id))

@router.get("/all", response_model=List[Dict[str, Any]])
def get_all_orders(
    q: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    """Administrative listing across every operator"""
    return filter_orders(order_store.list_all(db), q, status)

@router.get("/{order_id}", response_model=Dict[str, Any])
def get_order(order_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    order = order_store.get(db, current_user.id, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order

@router.post("", response_model=OrdersChanged)
def save_order(
    payload: OrderPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create or merge an order keyed by order_id, then return the refreshed list"""
    saved = order_store.save(db, current_user.id, payload.model_dump())

    DatabaseLogger.log_user_activity(
        user_id=current_user.id,
        action="save_order",
        entity_type="order",
        entity_id=saved["id"],
        ip_address=request.client.host if request.client else None,
        db=db
    )
    return OrdersChanged(message="Order saved successfully", items=order_store.list(db, current_user.id))

@router.delete("/{order_id}", response_model=OrdersChanged)
def delete_order(
    order_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order_store.delete(db, current_user.id, order_id)

    DatabaseLogger.log_user_activity(
        user_id=current_user.id,
        action="delete_order",
        entity_type="order",
        entity_id=order_id,
        ip_address=request.client.host if request.client else None,
        db=db
    )
    return OrdersChanged(message="Order deleted", items=order_store.list(db, current_user.id))
