import pytest
import pytest_asyncio
from datetime import datetime, timezone

from telemetry_gateway.core.telemetry_service import TelemetryService
from telemetry_gateway.storage.sensor_database import SensorDatabase


@pytest.fixture
def mock_config():
    return {
        "api": {"host": "127.0.0.1", "port": 5000},
        "device": {"connection_timeout": 60},
        "history": {
            "recent_limit": 10,
            "range_limit": 1000,
            "history_limit": 10000,
            "alert_limit": 50,
        },
    }


@pytest.fixture
def now():
    return datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def db(tmp_path):
    database = SensorDatabase(str(tmp_path / "telemetry.db"), max_connections=2)
    await database.initialize()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def service(db, mock_config):
    return TelemetryService(db, mock_config)
