from models.user import User, UserRole, KycStatus
from models.entity_document import EntityDocument
from models.log import SystemLog, ErrorLog, UserActivityLog, LogLevel, LogCategory

__all__ = ["User", "UserRole", "KycStatus", "EntityDocument", "SystemLog", "ErrorLog", "UserActivityLog", "LogLevel", "LogCategory"]
