from typing import Dict, Any
from .database import BaseRepository
from ..models.things import DeviceStatus
from ..utils.helpers import to_db_timestamp, from_db_timestamp


class StatusRepository(BaseRepository[DeviceStatus]):
    table_name = "device_statuses"
    timestamp_column = "reported_at"

    async def create_table(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute('''
                CREATE TABLE IF NOT EXISTS device_statuses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    uptime_seconds INTEGER,
                    total_readings INTEGER,
                    sampling_interval_ms INTEGER,
                    led_on BOOLEAN,
                    temperature_offset REAL,
                    humidity_offset REAL,
                    light_threshold INTEGER,
                    ip_address TEXT,
                    signal_strength INTEGER,
                    reported_at TEXT NOT NULL
                )
            ''')
            await conn.commit()

    def _record_to_row(self, record: DeviceStatus) -> Dict[str, Any]:
        row = record.model_dump(exclude={'id', 'reported_at'})
        row['reported_at'] = to_db_timestamp(record.reported_at)
        return row

    def _row_to_record(self, row: Dict[str, Any]) -> DeviceStatus:
        led_on = row['led_on']
        return DeviceStatus(
            id=row['id'],
            uptime_seconds=row['uptime_seconds'],
            total_readings=row['total_readings'],
            sampling_interval_ms=row['sampling_interval_ms'],
            led_on=None if led_on is None else bool(led_on),
            temperature_offset=row['temperature_offset'],
            humidity_offset=row['humidity_offset'],
            light_threshold=row['light_threshold'],
            ip_address=row['ip_address'],
            signal_strength=row['signal_strength'],
            reported_at=from_db_timestamp(row['reported_at'])
        )
