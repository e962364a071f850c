"""
Database-backed audit logging

Rows are written through the request's session when one is passed, otherwise
through a short-lived session of their own. Every value is run through
DataSanitizer first, and a failed write is reported to the module logger and
never reaches the caller.
"""
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from models.log import SystemLog, ErrorLog, UserActivityLog, LogLevel, LogCategory
from database import SessionLocal
from utils.sanitizer import DataSanitizer
from typing import Optional, Dict, Any
from traceback import format_exception
import logging

logger = logging.getLogger(__name__)

class DatabaseLogger:
    """Audit trail for sign-ins, entity writes, KYC and settlements"""

    @staticmethod
    def _write(row, kind: str, db: Optional[Session] = None) -> None:
        owns_session = db is None
        if owns_session:
            if SessionLocal is None:
                return
            db = SessionLocal()

        try:
            db.add(row)
            db.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to write {kind} log: {e}")
            db.rollback()
        finally:
            if owns_session:
                db.close()

    @staticmethod
    def log_system(
        level: LogLevel,
        category: LogCategory,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        db: Optional[Session] = None
    ):
        row = SystemLog(
            level=level,
            category=category,
            message=DataSanitizer.sanitize_string(message),
            details=DataSanitizer.to_json(details),
            user_id=user_id,
            ip_address=ip_address
        )
        DatabaseLogger._write(row, "system", db)

    @staticmethod
    def log_error(
        error_type: str,
        error_message: str,
        stack_trace: Optional[str] = None,
        endpoint: Optional[str] = None,
        user_id: Optional[int] = None,
        request_data: Optional[Dict[str, Any]] = None,
        severity: LogLevel = LogLevel.ERROR,
        db: Optional[Session] = None
    ):
        row = ErrorLog(
            error_type=error_type,
            error_message=DataSanitizer.sanitize_string(error_message),
            stack_trace=DataSanitizer.sanitize_string(stack_trace),
            endpoint=endpoint,
            user_id=user_id,
            request_data=DataSanitizer.to_json(request_data),
            severity=severity
        )
        DatabaseLogger._write(row, "error", db)

    @staticmethod
    def log_exception(exc: Exception, endpoint: Optional[str] = None, user_id: Optional[int] = None):
        """Record an unhandled exception with its traceback"""
        DatabaseLogger.log_error(
            error_type=type(exc).__name__,
            error_message=str(exc) or type(exc).__name__,
            stack_trace="".join(format_exception(type(exc), exc, exc.__traceback__)),
            endpoint=endpoint,
            user_id=user_id,
            severity=LogLevel.CRITICAL
        )

    @staticmethod
    def log_user_activity(
        user_id: int,
        action: str,
        description: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        db: Optional[Session] = None
    ):
        row = UserActivityLog(
            user_id=user_id,
            action=action,
            description=DataSanitizer.sanitize_string(description),
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            ip_address=ip_address
        )
        DatabaseLogger._write(row, "user activity", db)

def log_info(message: str, category: LogCategory = LogCategory.SYSTEM, **kwargs):
    DatabaseLogger.log_system(LogLevel.INFO, category, message, **kwargs)

def log_warning(message: str, category: LogCategory = LogCategory.SYSTEM, **kwargs):
    DatabaseLogger.log_system(LogLevel.WARNING, category, message, **kwargs)
