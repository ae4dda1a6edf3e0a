from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, List, Optional

from .things import Reading


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CommandRequest(BaseModel):
    command: Optional[str] = None


class SamplingIntervalRequest(BaseModel):
    # Seconds; converted to milliseconds for the device
    interval: Optional[Any] = None


class CommandResponse(BaseModel):
    command: Optional[str] = None


class AckResponse(BaseModel):
    success: bool = True
    message: str


class LastSeen(CamelModel):
    timestamp: datetime
    time_ago: str


class ConnectivityStatistics(CamelModel):
    total_readings_received: int = 0
    total_status_updates: int = 0
    total_command_polls: int = 0
    total_commands_delivered: int = 0


class ConnectivitySummary(CamelModel):
    is_connected: bool
    last_reading: Optional[LastSeen] = None
    last_status_update: Optional[LastSeen] = None
    last_command_poll: Optional[LastSeen] = None
    statistics: ConnectivityStatistics = Field(default_factory=ConnectivityStatistics)
    latest_reading: Optional[Reading] = None


class HistoryResponse(CamelModel):
    period: str
    start_time: datetime
    end_time: datetime
    count: int
    data: List[Reading]
