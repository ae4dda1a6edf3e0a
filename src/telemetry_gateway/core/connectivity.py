from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import threading

from ..models.device import ConnectivityStatistics, ConnectivitySummary, LastSeen
from ..utils.helpers import time_ago, utc_now

# Seconds without a reading or command poll before the device counts as offline
CONNECTION_TIMEOUT = 60


@dataclass
class ConnectivityState:
    last_reading_at: Optional[datetime] = None
    last_status_at: Optional[datetime] = None
    last_command_poll_at: Optional[datetime] = None
    total_readings_received: int = 0
    total_status_updates: int = 0
    total_command_polls: int = 0
    total_commands_delivered: int = 0


class ConnectivityTracker:
    """
    Infers whether the device is online from its most recent interactions.

    Readings (pushed by the device) and command polls (pulled by the
    device) both count as signs of life. Status pushes are recorded for
    display only and do not affect liveness.
    """
    def __init__(self, timeout: float = CONNECTION_TIMEOUT, clock=utc_now):
        self.timeout = timeout
        self._clock = clock
        self._state = ConnectivityState()
        self._lock = threading.Lock()

    def record_reading(self) -> None:
        with self._lock:
            self._state.last_reading_at = self._clock()
            self._state.total_readings_received += 1

    def record_status(self) -> None:
        with self._lock:
            self._state.last_status_at = self._clock()
            self._state.total_status_updates += 1

    def record_command_poll(self) -> None:
        with self._lock:
            self._state.last_command_poll_at = self._clock()
            self._state.total_command_polls += 1

    def record_command_delivered(self) -> None:
        with self._lock:
            self._state.total_commands_delivered += 1

    @property
    def state(self) -> ConnectivityState:
        """A copy of the current counters and timestamps"""
        with self._lock:
            return ConnectivityState(**vars(self._state))

    def is_connected(self, now: Optional[datetime] = None) -> bool:
        return self._is_connected(self.state, now or self._clock())

    def _is_connected(self, state: ConnectivityState, now: datetime) -> bool:
        signals = [t for t in (state.last_reading_at, state.last_command_poll_at) if t]
        if not signals:
            return False
        return (now - max(signals)).total_seconds() < self.timeout

    def snapshot(self, now: Optional[datetime] = None) -> ConnectivitySummary:
        now = now or self._clock()
        state = self.state

        def last_seen(moment: Optional[datetime]) -> Optional[LastSeen]:
            if moment is None:
                return None
            return LastSeen(timestamp=moment, time_ago=time_ago(moment, now))

        return ConnectivitySummary(
            is_connected=self._is_connected(state, now),
            last_reading=last_seen(state.last_reading_at),
            last_status_update=last_seen(state.last_status_at),
            last_command_poll=last_seen(state.last_command_poll_at),
            statistics=ConnectivityStatistics(
                total_readings_received=state.total_readings_received,
                total_status_updates=state.total_status_updates,
                total_command_polls=state.total_command_polls,
                total_commands_delivered=state.total_commands_delivered,
            ),
        )
