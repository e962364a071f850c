from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from pydantic import BaseModel, validator, Field
from typing import Optional
from datetime import datetime
from database import get_db
from services.auth_service import AuthService
from services.kyc_workflow import normalize_kyc_status
from models.user import User
from models.log import LogCategory
from utils.auth_dependency import get_current_user
from utils.errors import AuthError, StoreError
from utils.logger import DatabaseLogger, log_info, log_warning
import re
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

class SignupRequest(BaseModel):
    full_name: str = Field(..., alias="fullName", min_length=2, max_length=100, description="Full name (2-100 characters)")
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=100, description="Password (minimum 6 characters)")

    class Config:
        populate_by_name = True

    @validator('full_name')
    def validate_full_name(cls, v):
        v = ' '.join(v.split())
        if len(v) < 2:
            raise ValueError('Name must be at least 2 characters')
        if re.search(r'<\s*script|<\s*iframe|javascript:', v, re.IGNORECASE):
            raise ValueError('Invalid characters in name')
        return v

    @validator('email')
    def validate_email(cls, v):
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError('Invalid email address')
        return v

class SigninRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=100)

class UserResponse(BaseModel):
    id: int
    full_name: str = Field(..., alias="fullName")
    email: str
    role: str
    kyc_status: str = Field(..., alias="kycStatus")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True

def serialize_user(user: User) -> dict:
    return UserResponse(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        role=user.role.value,
        kyc_status=normalize_kyc_status(user.kyc_status),
        created_at=user.created_at
    ).model_dump(by_alias=True, mode="json")

def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None

@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, request: Request, db: Session = Depends(get_db)):
    try:
        user = AuthService.register(
            db=db,
            full_name=payload.full_name,
            email=payload.email,
            password=payload.password
        )
    except AuthError as e:
        return JSONResponse(status_code=e.status_code, content={"message": e.message})
    except (StoreError, SQLAlchemyError):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Registration failed. Try a different email."}
        )

    log_info(
        "Operator account registered",
        category=LogCategory.AUTHENTICATION,
        user_id=user.id,
        ip_address=_client_ip(request),
        db=db
    )
    return {"message": "User registered successfully!"}

@router.post("/signin")
def signin(payload: SigninRequest, request: Request, db: Session = Depends(get_db)):
    try:
        user = AuthService.authenticate(db, payload.email, payload.password)
        token = AuthService.generate_token(user)
    except AuthError as e:
        log_warning(
            f"Sign-in rejected: {e.message}",
            category=LogCategory.AUTHENTICATION,
            ip_address=_client_ip(request),
            db=db
        )
        return JSONResponse(status_code=e.status_code, content={"message": e.message})
    except Exception as e:
        logger.error(f"Login error: {e}", exc_info=True)
        DatabaseLogger.log_error(
            error_type=type(e).__name__,
            error_message=str(e),
            endpoint="/api/auth/signin",
            db=db
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Login error"}
        )

    DatabaseLogger.log_user_activity(
        user_id=user.id,
        action="signin",
        ip_address=_client_ip(request),
        db=db
    )
    return {"token": token, "user": serialize_user(user)}

@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return serialize_user(current_user)
