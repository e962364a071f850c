"""
Redaction of credentials and contact details before they reach the log tables
"""
import re
import json
from typing import Optional, Dict, Any

class DataSanitizer:
    """Sanitize sensitive data before logging"""

    # Field names whose values are always redacted
    SENSITIVE_FIELDS = {
        'password', 'token', 'secret', 'authorization', 'jwt', 'bearer',
        'password_hash', 'pepper'
    }

    # Patterns to detect and redact sensitive data inside free text
    SENSITIVE_PATTERNS = [
        (r'Bearer\s+[\w\-\.]+', 'Bearer [REDACTED]'),
        (r'"password"\s*:\s*"[^"]*"', '"password":"[REDACTED]"'),
        (r'"token"\s*:\s*"[^"]*"', '"token":"[REDACTED]"'),
        (r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b', '[EMAIL_REDACTED]'),
        (r'(?<!\d)(?:\+?91)?[6-9]\d{9}(?!\d)', '[PHONE_REDACTED]'),
    ]

    MAX_BODY_SIZE = 10000  # Max characters kept per logged value

    @staticmethod
    def is_sensitive_key(key: str) -> bool:
        lowered = key.lower()
        return any(sensitive in lowered for sensitive in DataSanitizer.SENSITIVE_FIELDS)

    @staticmethod
    def sanitize_dict(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively sanitize dictionary data"""
        if not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if DataSanitizer.is_sensitive_key(str(key)):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = DataSanitizer.sanitize_dict(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    DataSanitizer.sanitize_dict(item) if isinstance(item, dict) else item
                    for item in value
                ]
            elif isinstance(value, str):
                sanitized[key] = DataSanitizer.sanitize_string(value)
            else:
                sanitized[key] = value

        return sanitized

    @staticmethod
    def sanitize_string(text: Optional[str]) -> Optional[str]:
        """Sanitize sensitive patterns from string data"""
        if not text:
            return text

        if len(text) > DataSanitizer.MAX_BODY_SIZE:
            text = text[:DataSanitizer.MAX_BODY_SIZE] + "...[TRUNCATED]"

        sanitized = text
        for pattern, replacement in DataSanitizer.SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized

    @staticmethod
    def to_json(data: Optional[Dict[str, Any]]) -> Optional[str]:
        """Sanitize a dict and serialize it for a Text column"""
        if not data:
            return None
        result = json.dumps(DataSanitizer.sanitize_dict(data), default=str)
        if len(result) > DataSanitizer.MAX_BODY_SIZE:
            result = result[:DataSanitizer.MAX_BODY_SIZE] + "...[TRUNCATED]"
        return result
