from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from pydantic import BaseModel, validator, Field
from typing import Any, Dict, List, Optional, Union
from database import get_db
from models.user import User
from services.entity_store import vehicle_store
from services.search import filter_vehicles
from utils.auth_dependency import get_current_user
from utils.logger import DatabaseLogger
import time

router = APIRouter(prefix="/api/vehicles", tags=["Vehicles"])

Quantity = Optional[Union[float, str]]

class VehiclePayload(BaseModel):
    id: Optional[str] = Field(None, max_length=200)
    company_name: str = Field(..., min_length=1, max_length=200)
    company_url: Optional[str] = Field("", max_length=500)
    subtype: Optional[str] = Field("", max_length=100)
    vehicle_type: str = Field(..., min_length=1, max_length=100)
    capacity: Quantity = ""
    available_wheels: Quantity = ""
    price_per_kg: Quantity = ""
    price_per_tonne: Quantity = ""
    isPlaceholder: bool = False

    @validator('company_name', 'vehicle_type')
    def required(cls, v):
        v = ' '.join(v.split())
        if not v:
            raise ValueError('Required')
        return v

    @validator('id')
    def validate_id(cls, v):
        if v is not None:
            v = v.strip()
            if '/' in v:
                raise ValueError('Invalid characters in vehicle id')
        return v or None

class VehiclesChanged(BaseModel):
    message: str
    items: List[Dict[str, Any]]

def new_vehicle_id() -> str:
    """Millisecond timestamp, the id scheme existing vehicle documents use"""
    return str(int(time.time() * 1000))

def group_by_company(vehicles: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Derived company -> subtype hierarchy for display"""
    companies: Dict[str, Dict[str, Any]] = {}
    for vehicle in vehicles:
        name = vehicle.get("company_name") or "Unknown"
        company = companies.setdefault(name, {
            "company_name": name,
            "company_url": vehicle.get("company_url") or "",
            "subtypes": {},
        })
        subtype = vehicle.get("subtype") or ""
        company["subtypes"].setdefault(subtype, []).append(vehicle)

    return [
        {
            "company_name": company["company_name"],
            "company_url": company["company_url"],
            "subtypes": [
                {"subtype": subtype, "vehicles": items}
                for subtype, items in sorted(company["subtypes"].items())
            ],
        }
        for _, company in sorted(companies.items(), key=lambda item: item[0].lower())
    ]

@router.get("", response_model=List[Dict[str, Any]])
def get_vehicles(
    q: Optional[str] = Query(None, description="Free-text search across all fields"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return filter_vehicles(vehicle_store.list(db, current_user.id), q)

@router.get("/hierarchy", response_model=List[Dict[str, Any]])
def get_vehicle_hierarchy(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    vehicles = [v for v in vehicle_store.list(db, current_user.id) if not v.get("isPlaceholder")]
    return group_by_company(vehicles)

@router.get("/{vehicle_id}", response_model=Dict[str, Any])
def get_vehicle(vehicle_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    vehicle = vehicle_store.get(db, current_user.id, vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle

@router.post("", response_model=VehiclesChanged)
def save_vehicle(
    payload: VehiclePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create (server-assigned id) or merge a vehicle"""
    data = payload.model_dump()
    if not data.get("id"):
        data["id"] = new_vehicle_id()
        while vehicle_store.exists(db, data["id"]):
            data["id"] = str(int(data["id"]) + 1)
    saved = vehicle_store.save(db, current_user.id, data)

    DatabaseLogger.log_user_activity(
        user_id=current_user.id,
        action="save_vehicle",
        entity_type="vehicle",
        entity_id=saved["id"],
        ip_address=request.client.host if request.client else None,
        db=db
    )
    return VehiclesChanged(message="Vehicle saved successfully!", items=vehicle_store.list(db, current_user.id))

@router.delete("/{vehicle_id}", response_model=VehiclesChanged)
def delete_vehicle(
    vehicle_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    vehicle_store.delete(db, current_user.id, vehicle_id)

    DatabaseLogger.log_user_activity(
        user_id=current_user.id,
        action="delete_vehicle",
        entity_type="vehicle",
        entity_id=vehicle_id,
        ip_address=request.client.host if request.client else None,
        db=db
    )
    return VehiclesChanged(message="Vehicle deleted successfully.", items=vehicle_store.list(db, current_user.id))
