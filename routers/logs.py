"""
Audit log endpoints for administrators
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import desc
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel
from database import get_db
from models.log import SystemLog, ErrorLog, UserActivityLog
from models.user import User
from utils.auth_dependency import get_current_admin

router = APIRouter(prefix="/api/logs", tags=["Logs"])

class LogResponse(BaseModel):
    id: int
    log_type: str
    level: Optional[str] = None
    category: Optional[str] = None
    message: Optional[str] = None
    action: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    endpoint: Optional[str] = None
    user_id: Optional[int] = None
    created_at: datetime

@router.get("", response_model=List[LogResponse])
def get_logs(
    log_type: Optional[str] = Query(None, description="system, error or activity"),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin)
):
    """Most recent log entries of every kind, newest first"""
    entries = []

    if log_type in (None, "system"):
        for log in db.query(SystemLog).order_by(desc(SystemLog.created_at)).limit(limit).all():
            entries.append(LogResponse(
                id=log.id,
                log_type="system",
                level=log.level.value,
                category=log.category.value,
                message=log.message,
                user_id=log.user_id,
                created_at=log.created_at
            ))

    if log_type in (None, "error"):
        for log in db.query(ErrorLog).order_by(desc(ErrorLog.created_at)).limit(limit).all():
            entries.append(LogResponse(
                id=log.id,
                log_type="error",
                level=log.severity.value,
                category=log.error_type,
                message=log.error_message,
                endpoint=log.endpoint,
                user_id=log.user_id,
                created_at=log.created_at
            ))

    if log_type in (None, "activity"):
        for log in db.query(UserActivityLog).order_by(desc(UserActivityLog.created_at)).limit(limit).all():
            entries.append(LogResponse(
                id=log.id,
                log_type="activity",
                action=log.action,
                message=log.description,
                entity_type=log.entity_type,
                entity_id=log.entity_id,
                user_id=log.user_id,
                created_at=log.created_at
            ))

    entries.sort(key=lambda entry: entry.created_at, reverse=True)
    return entries[:limit]
