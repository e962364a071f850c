from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel, validator, Field
from typing import Any, Dict, List, Optional
from database import get_db
from models.user import User
from services.entity_store import driver_store
from services.search import filter_drivers
from utils.auth_dependency import get_current_user
from utils.logger import DatabaseLogger
import re

router = APIRouter(prefix="/api/drivers", tags=["Drivers"])

def driver_key(mobile_number: str) -> str:
    """Stored key for a mobile number: no surrounding spaces, no leading +"""
    return mobile_number.strip().lstrip('+')

class DriverDocument(BaseModel):
    publicId: str = ""
    url: str = ""

class DriverDocuments(BaseModel):
    Aadhaar_or_PAN_Card: DriverDocument = Field(default_factory=DriverDocument)
    Driving_License: DriverDocument = Field(default_factory=DriverDocument)
    Insurance_Certificate: DriverDocument = Field(default_factory=DriverDocument)
    Vehicle_RC: DriverDocument = Field(default_factory=DriverDocument)

class DriverPayload(BaseModel):
    firstName: str = Field(..., min_length=1, max_length=100)
    lastName: str = Field(..., min_length=1, max_length=100)
    mobileNumber: str = Field(..., min_length=10, max_length=15, description="Mobile number (10-15 digits)")
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    vehicleNumber: str = Field(..., min_length=1, max_length=50)
    occupied: bool = False
    last_completed_order: Optional[str] = ""
    last_delivery_time: Optional[str] = ""
    documents: DriverDocuments = Field(default_factory=DriverDocuments)

    @validator('firstName', 'lastName', 'city', 'state', 'vehicleNumber')
    def required(cls, v):
        v = ' '.join(v.split())
        if not v:
            raise ValueError('Required')
        if re.search(r'<\s*script|<\s*iframe|javascript:', v, re.IGNORECASE):
            raise ValueError('Invalid characters')
        return v

    @validator('mobileNumber')
    def validate_mobile(cls, v):
        v = v.strip()
        if not re.match(r'^\+?[0-9]{10,15}$', v):
            raise ValueError('Invalid mobile number format. Use 10-15 digits with optional + prefix')
        # Stored without the + so the same number always maps to one document
        return driver_key(v)

class DriversChanged(BaseModel):
    message: str
    items: List[Dict[str, Any]]

@router.get("", response_model=List[Dict[str, Any]])
def get_drivers(
    q: Optional[str] = Query(None, description="Free-text search"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return filter_drivers(driver_store.list(db, current_user.id), q)

@router.get("/{mobile_number}", response_model=Dict[str, Any])
def get_driver(mobile_number: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    driver = driver_store.get(db, current_user.id, driver_key(mobile_number))
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    return driver

@router.post("", response_model=DriversChanged)
def save_driver(
    payload: DriverPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create or merge a driver keyed by mobile number"""
    saved = driver_store.save(db, current_user.id, payload.model_dump())

    DatabaseLogger.log_user_activity(
        user_id=current_user.id,
        action="save_driver",
        entity_type="driver",
        entity_id=saved["id"],
        ip_address=request.client.host if request.client else None,
        db=db
    )
    return DriversChanged(message="Driver saved successfully", items=driver_store.list(db, current_user.id))

@router.delete("/{mobile_number}", response_model=DriversChanged)
def delete_driver(
    mobile_number: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    mobile_number = driver_key(mobile_number)
    driver_store.delete(db, current_user.id, mobile_number)

    DatabaseLogger.log_user_activity(
        user_id=current_user.id,
        action="delete_driver",
        entity_type="driver",
        entity_id=mobile_number,
        ip_address=request.client.host if request.client else None,
        db=db
    )
    return DriversChanged(message="Driver deleted", items=driver_store.list(db, current_user.id))
