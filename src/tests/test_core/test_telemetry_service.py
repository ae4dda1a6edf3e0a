from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from telemetry_gateway.models.things import new_reading
from telemetry_gateway.storage.sensor_database import READINGS, STATUSES, ALERTS
from telemetry_gateway.utils.exceptions import (
    InvalidCommand, InvalidPeriod, StoreError, ValidationError,
)
from telemetry_gateway.utils.helpers import utc_now


@pytest.mark.asyncio
async def test_ingested_reading_is_returned_as_latest(service):
    stored = await service.ingest_reading({"temperature": 22.5, "humidity": 55, "lightLevel": 300})

    latest = await service.latest_reading()

    assert latest.id == stored.id
    assert (latest.temperature, latest.humidity, latest.light_level) == (22.5, 55.0, 300)
    assert len(await service.db.find_recent(READINGS, 10)) == 1
    assert service.tracker.state.total_readings_received == 1


@pytest.mark.asyncio
async def test_device_ldr_key_is_accepted(service):
    reading = await service.ingest_reading({"temperature": "21.0", "humidity": "40.5", "ldr": "512"})

    assert reading.light_level == 512
    assert reading.temperature == 21.0


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"temperature": 22.5, "humidity": 55},
    {"temperature": 22.5, "lightLevel": 300},
    {"humidity": 55, "lightLevel": 300},
    {},
])
async def test_missing_reading_field_is_rejected_and_nothing_persisted(service, payload):
    with pytest.raises(ValidationError):
        await service.ingest_reading(payload)

    assert await service.db.find_recent(READINGS, 10) == []
    assert service.tracker.state.last_reading_at is None


@pytest.mark.asyncio
async def test_non_object_reading_payload_is_rejected(service):
    with pytest.raises(ValidationError):
        await service.ingest_reading(["22.5", "55", "300"])


@pytest.mark.asyncio
async def test_uncoercible_values_are_stored_as_invalid(service):
    reading = await service.ingest_reading({"temperature": "warm", "humidity": None, "lightLevel": "12.9"})

    assert reading.temperature is None
    assert reading.humidity is None
    assert reading.light_level == 12

    latest = await service.latest_reading()
    assert latest.temperature is None


@pytest.mark.asyncio
async def test_device_supplied_capture_time_is_kept(service):
    captured = utc_now() - timedelta(minutes=3)
    reading = await service.ingest_reading({
        "temperature": 1, "humidity": 2, "lightLevel": 3,
        "capturedAt": captured.isoformat(),
    })

    assert reading.captured_at == captured


@pytest.mark.asyncio
async def test_no_data_yet(service):
    assert await service.latest_reading() is None
    assert await service.latest_status() is None


@pytest.mark.asyncio
async def test_latest_reading_falls_back_to_cache(service):
    await service.ingest_reading({"temperature": 19, "humidity": 30, "lightLevel": 10})
    service.db.find_latest = AsyncMock(return_value=None)

    latest = await service.latest_reading()

    assert latest.temperature == 19.0


@pytest.mark.asyncio
async def test_status_with_firmware_keys_is_normalised(service):
    status = await service.ingest_status({
        "uptime": 3600,
        "totalReadings": 42,
        "samplingInterval": 5000,
        "ledState": True,
        "temperatureOffset": -0.5,
        "humidityOffset": 1.5,
        "lightThreshold": 200,
        "ipAddress": "192.168.1.40",
        "rssi": -61,
    })

    assert status.uptime_seconds == 3600
    assert status.sampling_interval_ms == 5000
    assert status.led_on is True
    assert status.signal_strength == -61

    latest = await service.latest_status()
    assert latest.id == status.id
    assert latest.ip_address == "192.168.1.40"
    assert latest.temperature_offset == -0.5


@pytest.mark.asyncio
async def test_status_is_accepted_as_is(service):
    status = await service.ingest_status({"uptimeSeconds": "abc", "unknownField": 1})

    assert status.uptime_seconds is None
    assert service.tracker.state.total_status_updates == 1
    # Status pushes never make the device look online
    assert service.connectivity().is_connected is False


@pytest.mark.asyncio
async def test_every_status_report_is_logged(service):
    await service.ingest_status({"uptime": 1})
    await service.ingest_status({"uptime": 2})

    statuses = await service.db.find_recent(STATUSES, 10)
    assert [s.uptime_seconds for s in statuses] == [2, 1]


@pytest.mark.asyncio
async def test_alert_is_persisted(service):
    alert = await service.ingest_alert("Temperature above threshold")

    alerts = await service.recent_alerts()
    assert [a.message for a in alerts] == ["Temperature above threshold"]
    assert alerts[0].id == alert.id


@pytest.mark.asyncio
@pytest.mark.parametrize("message", [None, ""])
async def test_empty_alert_is_rejected(service, message):
    with pytest.raises(ValidationError):
        await service.ingest_alert(message)

    assert await service.db.find_recent(ALERTS, 10) == []


@pytest.mark.asyncio
async def test_command_round_trip_updates_connectivity(service):
    service.enqueue_command("READ")

    assert service.poll_command() == "READ"
    assert service.poll_command() is None

    summary = service.connectivity()
    assert summary.is_connected is True
    assert summary.statistics.total_command_polls == 2
    assert summary.statistics.total_commands_delivered == 1


@pytest.mark.asyncio
async def test_empty_command_is_rejected(service):
    with pytest.raises(InvalidCommand):
        service.enqueue_command("")


@pytest.mark.asyncio
async def test_history_window(service, now):
    for minutes_ago in (10, 45, 120):
        await service.store_reading(new_reading(
            20.0, 50.0, minutes_ago, captured_at=now - timedelta(minutes=minutes_ago)
        ))

    start, end, readings = await service.history("1h", now=now)

    assert end == now
    assert start == now - timedelta(hours=1)
    assert [r.light_level for r in readings] == [10, 45]

    _, _, nothing = await service.history("5m", now=now)
    assert nothing == []


@pytest.mark.asyncio
async def test_history_requires_a_valid_period(service):
    with pytest.raises(InvalidPeriod):
        await service.history("bogus")
    with pytest.raises(InvalidPeriod):
        await service.history(None)


@pytest.mark.asyncio
async def test_range_query_validation(service, now):
    with pytest.raises(ValidationError):
        await service.readings_between(now, None)
    with pytest.raises(ValidationError):
        await service.readings_between(now, now - timedelta(minutes=1))


@pytest.mark.asyncio
async def test_range_query_without_bounds_returns_most_recent(service, now):
    for minutes_ago in (1, 2, 3):
        await service.store_reading(new_reading(
            20.0, 50.0, minutes_ago, captured_at=now - timedelta(minutes=minutes_ago)
        ))

    readings = await service.readings_between(None, None, limit=2)

    assert [r.light_level for r in readings] == [1, 2]


@pytest.mark.asyncio
async def test_logs_are_append_only(service):
    await service.ingest_reading({"temperature": 20, "humidity": 40, "lightLevel": 100})
    await service.ingest_alert("door open")
    readings_before = await service.db.find_recent(READINGS, 100)
    alerts_before = await service.db.find_recent(ALERTS, 100)

    # Unrelated operations
    service.enqueue_command("STATUS")
    service.poll_command()
    await service.ingest_status({"uptime": 10})
    await service.history("1d")
    await service.latest_reading()
    await service.ingest_reading({"temperature": 21, "humidity": 41, "lightLevel": 101})

    readings_after = await service.db.find_recent(READINGS, 100)
    alerts_after = await service.db.find_recent(ALERTS, 100)

    assert readings_after[1:] == readings_before
    assert alerts_after == alerts_before


@pytest.mark.asyncio
async def test_store_failure_does_not_poison_later_requests(service):
    original_insert = service.db.insert
    service.db.insert = AsyncMock(side_effect=StoreError("disk I/O error"))

    with pytest.raises(StoreError):
        await service.ingest_reading({"temperature": 20, "humidity": 40, "lightLevel": 100})
    assert service.tracker.state.total_readings_received == 0

    service.db.insert = original_insert
    reading = await service.ingest_reading({"temperature": 20, "humidity": 40, "lightLevel": 100})

    assert reading.id is not None
    assert service.tracker.state.total_readings_received == 1
