from typing import Dict, Any
from .database import BaseRepository
from ..models.things import Reading
from ..utils.helpers import to_db_timestamp, from_db_timestamp


class ReadingRepository(BaseRepository[Reading]):
    table_name = "readings"
    timestamp_column = "captured_at"

    async def create_table(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute('''
                CREATE TABLE IF NOT EXISTS readings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    temperature REAL,
                    humidity REAL,
                    light_level INTEGER,
                    captured_at TEXT NOT NULL
                )
            ''')
            await conn.commit()

    def _record_to_row(self, record: Reading) -> Dict[str, Any]:
        return {
            'temperature': record.temperature,
            'humidity': record.humidity,
            'light_level': record.light_level,
            'captured_at': to_db_timestamp(record.captured_at),
        }

    def _row_to_record(self, row: Dict[str, Any]) -> Reading:
        return Reading(
            id=row['id'],
            temperature=row['temperature'],
            humidity=row['humidity'],
            light_level=row['light_level'],
            captured_at=from_db_timestamp(row['captured_at'])
        )
