import re
from datetime import datetime
from typing import Optional

from ..models.things import Reading, new_reading
from ..utils.helpers import coerce_float, coerce_int
from ..utils.logging import get_logger

logger = get_logger(__name__)

# e.g. "Temperature: 22.50 °C, Humidity: 55.00 %, LDR Output: 312"
READING_LINE = re.compile(
    r"Temperature: (-?\d+(?:\.\d+)?) °C, "
    r"Humidity: (-?\d+(?:\.\d+)?) %, "
    r"LDR Output: (\d+)"
)


def parse_device_line(raw, captured_at: Optional[datetime] = None) -> Optional[Reading]:
    """
    Parse one line of device serial output into a Reading.

    Anything that is not a reading line (boot banners, debug output,
    partial lines) returns None.
    """
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8', errors='replace')
    if not raw:
        return None

    line = raw.strip()
    match = READING_LINE.search(line)
    if not match:
        logger.debug(f"Ignoring device line: {line!r}")
        return None

    temperature, humidity, light = match.groups()
    return new_reading(
        temperature=coerce_float(temperature),
        humidity=coerce_float(humidity),
        light_level=coerce_int(light),
        captured_at=captured_at,
    )
