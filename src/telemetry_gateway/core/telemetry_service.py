from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .connectivity import ConnectivityTracker, CONNECTION_TIMEOUT
from .history import (
    DEFAULT_HISTORY_LIMIT, DEFAULT_RANGE_LIMIT, DEFAULT_RECENT_LIMIT,
    effective_limit, query_range, resolve_window,
)
from .mailbox import CommandMailbox
from ..models.device import ConnectivitySummary
from ..models.things import Alert, DeviceStatus, Reading
from ..storage.sensor_database import SensorDatabase, READINGS, STATUSES, ALERTS
from ..utils.exceptions import ValidationError
from ..utils.helpers import coerce_bool, coerce_float, coerce_int, parse_timestamp, utc_now
from ..utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ALERT_LIMIT = 50

# Accepted payload keys per field; the first is the canonical wire name,
# the rest are the names the device firmware sends.
READING_KEYS = {
    'temperature': ('temperature',),
    'humidity': ('humidity',),
    'light_level': ('lightLevel', 'ldr'),
}

STATUS_KEYS = {
    'uptime_seconds': (('uptimeSeconds', 'uptime'), coerce_int),
    'total_readings': (('totalReadings',), coerce_int),
    'sampling_interval_ms': (('samplingIntervalMs', 'samplingInterval'), coerce_int),
    'led_on': (('ledOn', 'ledState'), coerce_bool),
    'temperature_offset': (('temperatureOffset',), coerce_float),
    'humidity_offset': (('humidityOffset',), coerce_float),
    'light_threshold': (('lightThreshold',), coerce_int),
    'ip_address': (('ipAddress',), lambda v: None if v is None else str(v)),
    'signal_strength': (('signalStrength', 'rssi'), coerce_int),
}


def _lookup(payload: Dict[str, Any], keys: Tuple[str, ...]) -> Tuple[bool, Any]:
    for key in keys:
        if key in payload:
            return True, payload[key]
    return False, None


def _require_mapping(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


class TelemetryService:
    """
    Process-wide owner of the gateway's mutable state.

    Holds the command mailbox, the connectivity tracker and the latest
    reading/status caches, and routes ingestion and queries to the
    durable store. Nothing here survives a restart or is shared between
    server instances.
    """
    def __init__(self, db: SensorDatabase, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        history_config = config.get('history', {})
        device_config = config.get('device', {})

        self.db = db
        self.mailbox = CommandMailbox()
        self.tracker = ConnectivityTracker(
            timeout=device_config.get('connection_timeout', CONNECTION_TIMEOUT)
        )
        self.recent_limit = history_config.get('recent_limit', DEFAULT_RECENT_LIMIT)
        self.range_limit = history_config.get('range_limit', DEFAULT_RANGE_LIMIT)
        self.history_limit = history_config.get('history_limit', DEFAULT_HISTORY_LIMIT)
        self.alert_limit = history_config.get('alert_limit', DEFAULT_ALERT_LIMIT)

        self._latest_reading: Optional[Reading] = None
        self._latest_status: Optional[DeviceStatus] = None

    # Ingestion

    async def ingest_reading(self, payload: Any) -> Reading:
        payload = _require_mapping(payload)
        values = {}
        for field, keys in READING_KEYS.items():
            found, value = _lookup(payload, keys)
            if not found:
                raise ValidationError("Missing required fields")
            values[field] = value

        reading = Reading(
            temperature=coerce_float(values['temperature']),
            humidity=coerce_float(values['humidity']),
            light_level=coerce_int(values['light_level']),
            captured_at=parse_timestamp(payload.get('capturedAt')) or utc_now(),
        )
        return await self.store_reading(reading)

    async def store_reading(self, reading: Reading) -> Reading:
        """Persist an already-built reading and update the live state"""
        await self.persist_reading(reading)
        self.note_reading(reading)
        logger.info(
            f"New reading: {reading.formatted} "
            f"(total received: {self.tracker.state.total_readings_received})"
        )
        return reading

    async def persist_reading(self, reading: Reading) -> Reading:
        """Write a reading to the store without touching liveness"""
        reading.id = await self.db.insert(READINGS, reading)
        return reading

    def note_reading(self, reading: Reading) -> None:
        """Mark a reading as received: cache it and count it towards liveness"""
        self._latest_reading = reading
        self.tracker.record_reading()

    async def ingest_status(self, payload: Any) -> DeviceStatus:
        payload = _require_mapping(payload)
        values = {}
        for field, (keys, coerce) in STATUS_KEYS.items():
            _, value = _lookup(payload, keys)
            values[field] = coerce(value)

        status = DeviceStatus(
            reported_at=parse_timestamp(payload.get('reportedAt')) or utc_now(),
            **values
        )
        status.id = await self.db.insert(STATUSES, status)
        self._latest_status = status
        self.tracker.record_status()
        logger.info(f"Device status updated: {status.model_dump(exclude_none=True)}")
        return status

    async def ingest_alert(self, message: Any) -> Alert:
        if not message:
            raise ValidationError("Missing alert message")
        alert = Alert(message=str(message), raised_at=utc_now())
        alert.id = await self.db.insert(ALERTS, alert)
        logger.warning(f"Alert received: {alert.message}")
        return alert

    # Commands

    def enqueue_command(self, command: Any) -> str:
        self.mailbox.enqueue(command)
        return command

    def poll_command(self) -> Optional[str]:
        command = self.mailbox.poll()
        self.tracker.record_command_poll()
        if command is not None:
            self.tracker.record_command_delivered()
        return command

    # Queries

    async def latest_reading(self) -> Optional[Reading]:
        stored = await self.db.find_latest(READINGS)
        return stored or self._latest_reading

    async def latest_status(self) -> Optional[DeviceStatus]:
        stored = await self.db.find_latest(STATUSES)
        return stored or self._latest_status

    async def recent_readings(self, limit: Optional[int] = None) -> List[Reading]:
        return await self.db.find_recent(READINGS, effective_limit(limit, self.recent_limit))

    async def all_readings(self) -> List[Reading]:
        """Every stored reading, newest first, without a limit"""
        return await self.db.find_recent(READINGS, None)

    async def readings_between(self, start: Optional[datetime], end: Optional[datetime],
                               limit: Optional[int] = None) -> List[Reading]:
        if start is None and end is None:
            return await self.db.find_recent(READINGS, effective_limit(limit, self.range_limit))
        if start is None or end is None:
            raise ValidationError("Both start and end are required for a range query")
        if start > end:
            raise ValidationError("start must not be after end")
        return await query_range(self.db, start, end, limit, self.range_limit)

    async def history(self, period: Optional[str], limit: Optional[int] = None,
                      now: Optional[datetime] = None) -> Tuple[datetime, datetime, List[Reading]]:
        start, end = resolve_window(period, now or utc_now())
        readings = await query_range(self.db, start, end, limit, self.history_limit)
        logger.info(f"Found {len(readings)} readings for the last {period}")
        return start, end, readings

    async def recent_alerts(self, limit: Optional[int] = None) -> List[Alert]:
        return await self.db.find_recent(ALERTS, effective_limit(limit, self.alert_limit))

    def connectivity(self, now: Optional[datetime] = None) -> ConnectivitySummary:
        summary = self.tracker.snapshot(now)
        summary.latest_reading = self._latest_reading
        return summary
