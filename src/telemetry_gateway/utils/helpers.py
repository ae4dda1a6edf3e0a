from datetime import datetime, timezone
from typing import Any, Optional

# Stored values are fixed width (zero-padded year) so lexical order equals time order
DB_TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S.%fZ'

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    value = ensure_utc(value)
    # strftime does not pad years below 1000 on every platform
    return f"{value.year:04d}" + value.strftime('-%m-%dT%H:%M:%S.%fZ')


def from_db_timestamp(value: str) -> datetime:
    return datetime.strptime(value, DB_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def coerce_float(value: Any) -> Optional[float]:
    """
    Loosely convert a device value to float.

    Values that cannot be converted come back as None rather than raising,
    mirroring how the device firmware values have always been accepted.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    # NaN and infinities are stored as "invalid"
    if result != result or result in (float('inf'), float('-inf')):
        return None
    return result


def coerce_int(value: Any) -> Optional[int]:
    """Loosely convert a device value to int, truncating fractional input."""
    result = coerce_float(value)
    if result is None:
        return None
    return int(result)


def coerce_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', 'on', '1', 'yes'):
            return True
        if lowered in ('false', 'off', '0', 'no'):
            return False
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or datetime into an aware UTC datetime."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str) and value:
        try:
            return ensure_utc(datetime.fromisoformat(value.replace('Z', '+00:00')))
        except ValueError:
            return None
    return None


def time_ago(moment: Optional[datetime], now: datetime) -> str:
    """
    Render the age of a timestamp as a coarse human string.

    Uses whole seconds under a minute, whole minutes under an hour and
    whole hours beyond that, with no days tier.
    """
    if moment is None:
        return "Never"
    seconds = int((now - moment).total_seconds())
    if seconds < 60:
        return f"{seconds} seconds ago"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} minutes ago"
    hours = minutes // 60
    return f"{hours} hours ago"
