from sqlalchemy import String, Enum as SQLEnum, Boolean, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional
from database import Base
import enum

class UserRole(str, enum.Enum):
    ADMIN = "admin"
    OPERATOR = "operator"

class KycStatus(str, enum.Enum):
    NOT_SUBMITTED = "not-submitted"
    PENDING = "pending"
    COMPLETED = "completed"

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(SQLEnum(UserRole), nullable=False, default=UserRole.OPERATOR)

    # Account status
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')

    # KYC record; status is kept raw so admin-side synonyms survive until read
    kyc_status: Mapped[str] = mapped_column(String(30), nullable=False, default=KycStatus.NOT_SUBMITTED.value, server_default=KycStatus.NOT_SUBMITTED.value)
    documents: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    document_upload_method: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    operational_info: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    kyc_submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
