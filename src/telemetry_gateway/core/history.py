"""
Resolution of relative history periods ("15m", "6h", "1week", ...) into
absolute time windows, and bounded range queries over the reading log.
"""
import re
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from ..models.things import Reading
from ..storage.sensor_database import SensorDatabase, READINGS
from ..utils.exceptions import InvalidPeriod
from ..utils.helpers import EARLIEST

DEFAULT_RECENT_LIMIT = 10
DEFAULT_RANGE_LIMIT = 1000
DEFAULT_HISTORY_LIMIT = 10000

NAMED_PERIODS = {
    "1m": timedelta(minutes=1),
    "1minute": timedelta(minutes=1),
    "5m": timedelta(minutes=5),
    "5minutes": timedelta(minutes=5),
    "15m": timedelta(minutes=15),
    "15minutes": timedelta(minutes=15),
    "30m": timedelta(minutes=30),
    "30minutes": timedelta(minutes=30),
    "1h": timedelta(hours=1),
    "1hour": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "6hours": timedelta(hours=6),
    "1d": timedelta(days=1),
    "1day": timedelta(days=1),
    "1w": timedelta(weeks=1),
    "1week": timedelta(weeks=1),
}

CUSTOM_PERIOD = re.compile(r"^(\d+)([mhd])$")

UNITS = {
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}

PERIOD_HELP = "Use: 1m, 5m, 15m, 30m, 1h, 6h, 1d, 1w, or custom like 10m, 12h, 3d"


def parse_period(period: Optional[str]) -> timedelta:
    if not period:
        raise InvalidPeriod(f"Period parameter is required. {PERIOD_HELP}")
    if period in NAMED_PERIODS:
        return NAMED_PERIODS[period]
    match = CUSTOM_PERIOD.match(period)
    if not match:
        raise InvalidPeriod(f"Invalid period. {PERIOD_HELP}")
    value, unit = match.groups()
    try:
        return int(value) * UNITS[unit]
    except OverflowError:
        return timedelta.max


def resolve_window(period: Optional[str], now: datetime) -> Tuple[datetime, datetime]:
    """
    Return (start, end) with end == now and start == now - period.

    Periods reaching back before year 1 start at the earliest
    representable moment.
    """
    duration = parse_period(period)
    try:
        start = now - duration
    except OverflowError:
        start = EARLIEST
    return start, now


def effective_limit(limit: Optional[int], default_limit: int) -> int:
    if limit is None or limit <= 0:
        return default_limit
    return limit


async def query_range(db: SensorDatabase, start: datetime, end: datetime,
                      limit: Optional[int] = None,
                      default_limit: int = DEFAULT_RANGE_LIMIT) -> List[Reading]:
    """Readings captured in [start, end], newest first, capped at the limit"""
    if start > end:
        return []
    return await db.find_range(READINGS, start, end, effective_limit(limit, default_limit))
