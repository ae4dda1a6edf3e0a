from typing import List, Dict, Any, Optional, Generic, TypeVar
import aiosqlite
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from abc import ABC, abstractmethod

from ..utils.logging import get_logger
from ..utils.helpers import to_db_timestamp
from ..utils.exceptions import ConnectionPoolError, StoreError


logger = get_logger(__name__)

T = TypeVar('T')


class ConnectionPool:
    """Manages a pool of database connections"""
    def __init__(self, db_path: str, max_connections: int = 5):
        self.db_path = db_path
        self.max_connections = max_connections
        self._pool: asyncio.Queue = asyncio.Queue(maxsize=max_connections)
        self._active_connections = 0
        self._lock = asyncio.Lock()

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        # The PRAGMA returns a row; an unread cursor keeps the database locked
        async with conn.execute('PRAGMA journal_mode=WAL') as cursor:
            await cursor.fetchall()
        return conn

    async def initialize(self):
        """Initialize the connection pool"""
        logger.info(f"Initializing connection pool with {self.max_connections} connections")
        try:
            for _ in range(self.max_connections):
                conn = await self._connect()
                await self._pool.put(conn)
                self._active_connections += 1
        except Exception as e:
            logger.error(f"Failed to initialize connection pool: {e}")
            raise ConnectionPoolError(f"Connection pool initialization failed: {e}")

    @asynccontextmanager
    async def acquire(self):
        """Acquire a connection from the pool"""
        connection = None
        try:
            async with self._lock:
                if self._pool.empty() and self._active_connections < self.max_connections:
                    connection = await self._connect()
                    self._active_connections += 1
                else:
                    try:
                        connection = await asyncio.wait_for(self._pool.get(), timeout=5.0)
                    except asyncio.TimeoutError:
                        raise ConnectionPoolError("Timeout waiting for database connection")

            try:
                yield connection
            except BaseException:
                # Never hand a half-finished transaction to the next caller
                await connection.rollback()
                raise

        finally:
            if connection:
                try:
                    self._pool.put_nowait(connection)
                except Exception as e:
                    logger.error(f"Error returning connection to pool: {e}")
                    await connection.close()
                    async with self._lock:
                        self._active_connections -= 1

    async def close(self):
        """Close all connections in the pool"""
        while not self._pool.empty():
            conn = await self._pool.get()
            await conn.close()
        self._active_connections = 0


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base class for append-only record repositories.

    Subclasses declare the table, its timestamp column and the mapping
    between rows and models. There are no update or delete paths.
    """
    table_name: str = ""
    timestamp_column: str = ""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    @abstractmethod
    async def create_table(self) -> None:
        """Create the repository's table"""
        pass

    async def create_indices(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(f'''
                CREATE INDEX IF NOT EXISTS idx_{self.table_name}_time
                ON {self.table_name}({self.timestamp_column})
            ''')
            await conn.commit()

    @abstractmethod
    def _record_to_row(self, record: T) -> Dict[str, Any]:
        """Convert a model into column values (without the id)"""
        pass

    @abstractmethod
    def _row_to_record(self, row: Dict[str, Any]) -> T:
        """Convert a database row to a model"""
        pass

    async def insert(self, record: T) -> int:
        """Append a record and return its row id"""
        row = self._record_to_row(record)
        columns = ', '.join(row.keys())
        placeholders = ', '.join('?' for _ in row)
        try:
            async with self.pool.acquire() as conn:
                async with conn.execute(
                    f'INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})',
                    list(row.values())
                ) as cursor:
                    row_id = cursor.lastrowid
                await conn.commit()
                return row_id
        except Exception as e:
            logger.error(f"Failed to insert into {self.table_name}: {e}")
            raise StoreError(f"Failed to insert into {self.table_name}: {e}")

    async def _select(self, where: str = '', params: Optional[List[Any]] = None,
                      limit: Optional[int] = None) -> List[T]:
        query = f'SELECT * FROM {self.table_name} {where} ' \
                f'ORDER BY {self.timestamp_column} DESC, id DESC'
        params = list(params or [])
        if limit is not None:
            query += ' LIMIT ?'
            params.append(limit)

        try:
            async with self.pool.acquire() as conn:
                conn.row_factory = aiosqlite.Row
                async with conn.execute(query, params) as cursor:
                    rows = await cursor.fetchall()
                    return [self._row_to_record(dict(row)) for row in rows]
        except Exception as e:
            logger.error(f"Failed to query {self.table_name}: {e}")
            raise StoreError(f"Failed to query {self.table_name}: {e}")

    async def find_latest(self) -> Optional[T]:
        records = await self._select(limit=1)
        return records[0] if records else None

    async def find_recent(self, limit: Optional[int]) -> List[T]:
        return await self._select(limit=limit)

    async def find_range(self, start_time: datetime, end_time: datetime,
                         limit: Optional[int] = None) -> List[T]:
        """Records with start_time <= timestamp <= end_time, newest first"""
        return await self._select(
            f'WHERE {self.timestamp_column} BETWEEN ? AND ?',
            [to_db_timestamp(start_time), to_db_timestamp(end_time)],
            limit
        )
