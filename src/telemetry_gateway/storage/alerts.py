from typing import Dict, Any
from .database import BaseRepository
from ..models.things import Alert
from ..utils.helpers import to_db_timestamp, from_db_timestamp


class AlertRepository(BaseRepository[Alert]):
    table_name = "alerts"
    timestamp_column = "raised_at"

    async def create_table(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute('''
                CREATE TABLE IF NOT EXISTS alerts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    message TEXT NOT NULL CHECK (length(message) > 0),
                    raised_at TEXT NOT NULL
                )
            ''')
            await conn.commit()

    def _record_to_row(self, record: Alert) -> Dict[str, Any]:
        return {
            'message': record.message,
            'raised_at': to_db_timestamp(record.raised_at),
        }

    def _row_to_record(self, row: Dict[str, Any]) -> Alert:
        return Alert(
            id=row['id'],
            message=row['message'],
            raised_at=from_db_timestamp(row['raised_at'])
        )
