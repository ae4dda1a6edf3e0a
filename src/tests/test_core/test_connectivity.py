from datetime import datetime, timedelta, timezone

import pytest

from telemetry_gateway.core.connectivity import ConnectivityTracker, CONNECTION_TIMEOUT
from telemetry_gateway.utils.helpers import time_ago


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock(now):
    return FakeClock(now)


@pytest.fixture
def tracker(clock):
    return ConnectivityTracker(clock=clock)


def test_default_timeout_is_sixty_seconds():
    assert CONNECTION_TIMEOUT == 60


def test_never_seen_device_is_offline(tracker, now):
    summary = tracker.snapshot(now)

    assert summary.is_connected is False
    assert summary.last_reading is None
    assert summary.last_status_update is None
    assert summary.last_command_poll is None


def test_recent_reading_means_connected(tracker, clock):
    tracker.record_reading()
    clock.advance(30)

    summary = tracker.snapshot()

    assert summary.is_connected is True
    assert summary.last_reading.time_ago == "30 seconds ago"
    assert summary.statistics.total_readings_received == 1


def test_stale_reading_means_disconnected(tracker, clock):
    tracker.record_reading()
    clock.advance(90)

    assert tracker.snapshot().is_connected is False


def test_timeout_boundary_is_exclusive(tracker, clock):
    tracker.record_reading()
    clock.advance(60)

    assert tracker.is_connected() is False


def test_command_poll_counts_as_liveness(tracker, clock):
    tracker.record_reading()
    clock.advance(120)
    tracker.record_command_poll()
    clock.advance(10)

    summary = tracker.snapshot()

    # The most recent of the two signals decides
    assert summary.is_connected is True
    assert summary.last_reading.time_ago == "2 minutes ago"
    assert summary.last_command_poll.time_ago == "10 seconds ago"
    assert summary.statistics.total_command_polls == 1


def test_status_updates_do_not_count_as_liveness(tracker, clock):
    tracker.record_status()
    clock.advance(1)

    summary = tracker.snapshot()

    assert summary.is_connected is False
    assert summary.last_status_update is not None
    assert summary.statistics.total_status_updates == 1


def test_delivered_commands_are_counted_separately_from_polls(tracker):
    tracker.record_command_poll()
    tracker.record_command_poll()
    tracker.record_command_delivered()

    stats = tracker.snapshot().statistics

    assert stats.total_command_polls == 2
    assert stats.total_commands_delivered == 1


def test_custom_timeout(clock):
    tracker = ConnectivityTracker(timeout=300, clock=clock)
    tracker.record_reading()
    clock.advance(200)

    assert tracker.is_connected() is True


def test_summary_serializes_with_camel_case_keys(tracker, clock):
    tracker.record_reading()
    body = tracker.snapshot().model_dump(mode="json", by_alias=True)

    assert body["isConnected"] is True
    assert body["lastReading"]["timeAgo"] == "0 seconds ago"
    assert body["statistics"]["totalReadingsReceived"] == 1


@pytest.mark.parametrize("age, expected", [
    (0, "0 seconds ago"),
    (59, "59 seconds ago"),
    (60, "1 minutes ago"),
    (3599, "59 minutes ago"),
    (3600, "1 hours ago"),
    (3 * 3600 + 3599, "3 hours ago"),
    (50 * 3600, "50 hours ago"),
])
def test_time_ago_tiers(now, age, expected):
    assert time_ago(now - timedelta(seconds=age), now) == expected


def test_time_ago_without_timestamp(now):
    assert time_ago(None, now) == "Never"
