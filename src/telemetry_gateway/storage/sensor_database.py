from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .database import BaseRepository, ConnectionPool
from .readings import ReadingRepository
from .statuses import StatusRepository
from .alerts import AlertRepository
from ..utils.logging import get_logger
from ..utils.exceptions import StoreError

logger = get_logger(__name__)

READINGS = "readings"
STATUSES = "statuses"
ALERTS = "alerts"


class SensorDatabase:
    """Durable store for the reading, status and alert logs"""
    def __init__(self, db_path: str, max_connections: int = 5):
        self.pool = ConnectionPool(db_path, max_connections)
        self.repositories: Dict[str, BaseRepository] = {}
        self._setup_repositories()

    def _setup_repositories(self):
        """Initialize all repository instances"""
        self.repositories[READINGS] = ReadingRepository(self.pool)
        self.repositories[STATUSES] = StatusRepository(self.pool)
        self.repositories[ALERTS] = AlertRepository(self.pool)

    async def initialize(self) -> None:
        """Initialize the database and all repositories"""
        if self.pool.db_path != ":memory:":
            Path(self.pool.db_path).parent.mkdir(parents=True, exist_ok=True)
        await self.pool.initialize()

        for repo in self.repositories.values():
            await repo.create_table()
            await repo.create_indices()
        logger.info(f"Database ready at {self.pool.db_path}")

    def _repository(self, collection: str) -> BaseRepository:
        try:
            return self.repositories[collection]
        except KeyError:
            raise StoreError(f"Unknown collection: {collection}")

    async def insert(self, collection: str, record: Any) -> int:
        return await self._repository(collection).insert(record)

    async def find_latest(self, collection: str) -> Optional[Any]:
        return await self._repository(collection).find_latest()

    async def find_range(self, collection: str, start_time: datetime,
                         end_time: datetime, limit: Optional[int] = None) -> List[Any]:
        return await self._repository(collection).find_range(start_time, end_time, limit)

    async def find_recent(self, collection: str, limit: Optional[int]) -> List[Any]:
        return await self._repository(collection).find_recent(limit)

    async def close(self) -> None:
        """Close all database connections"""
        logger.info("Shutting down database...")
        await self.pool.close()
        logger.info("Database connections closed")
