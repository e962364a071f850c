"""
Lenient timestamp parsing for documents written by different clients.

Order documents carry their creation time in whatever shape the writing client
used: a native datetime, an epoch object such as {"seconds": ..., "nanoseconds": ...},
plain epoch seconds, or a date string. parse_flexible_timestamp turns all of
them into a naive UTC datetime, or None when the value cannot be understood.
"""
from datetime import datetime, date, timezone
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
)

def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def _from_epoch(seconds: float, nanoseconds: float = 0) -> Optional[datetime]:
    try:
        instant = datetime.fromtimestamp(float(seconds) + float(nanoseconds) / 1e9, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return instant.replace(tzinfo=None)

def _from_string(text: str) -> Optional[datetime]:
    text = text.strip()
    if not text:
        return None

    iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return _to_naive_utc(datetime.fromisoformat(iso_text))
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None

def parse_flexible_timestamp(value: Any) -> Optional[datetime]:
    """Parse any supported timestamp representation, None if unparsable"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanoseconds = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
            return None
        if isinstance(nanoseconds, bool) or not isinstance(nanoseconds, (int, float)):
            nanoseconds = 0
        return _from_epoch(seconds, nanoseconds)
    if isinstance(value, str):
        return _from_string(value)

    logger.debug(f"Unsupported timestamp type: {type(value).__name__}")
    return None
