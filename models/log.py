from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index, Enum as SQLEnum
from datetime import datetime
from database import Base
import enum

class LogLevel(str, enum.Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

class LogCategory(str, enum.Enum):
    DATABASE = "database"
    AUTHENTICATION = "authentication"
    ORDER_MANAGEMENT = "order_management"
    DRIVER_MANAGEMENT = "driver_management"
    VEHICLE_MANAGEMENT = "vehicle_management"
    PAYMENT_SETTLEMENT = "payment_settlement"
    KYC = "kyc"
    FILE_UPLOAD = "file_upload"
    SYSTEM = "system"
    USER_ACTION = "user_action"

class SystemLog(Base):
    """General system logs for all application events"""
    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True, index=True)
    level = Column(SQLEnum(LogLevel), nullable=False, index=True)
    category = Column(SQLEnum(LogCategory), nullable=False, index=True)
    message = Column(Text, nullable=False)
    details = Column(Text, nullable=True)  # JSON string for additional data
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    ip_address = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

class ErrorLog(Base):
    """Error and exception logs"""
    __tablename__ = "error_logs"

    id = Column(Integer, primary_key=True, index=True)
    error_type = Column(String(200), nullable=False, index=True)
    error_message = Column(Text, nullable=False)
    stack_trace = Column(Text, nullable=True)
    endpoint = Column(String(500), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    request_data = Column(Text, nullable=True)
    severity = Column(SQLEnum(LogLevel), default=LogLevel.ERROR, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

class UserActivityLog(Base):
    """User activity and action logs"""
    __tablename__ = "user_activity_logs"
    __table_args__ = (
        Index("ix_user_activity_logs_entity", "entity_type", "entity_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(String(200), nullable=False, index=True)  # signin, save_order, submit_kyc, etc.
    description = Column(Text, nullable=True)
    entity_type = Column(String(100), nullable=True)  # order, driver, vehicle, kyc
    entity_id = Column(String(200), nullable=True)
    ip_address = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
