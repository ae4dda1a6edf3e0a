from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from ..utils.helpers import utc_now


class BaseRecord(BaseModel):
    """Common config for persisted records: camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[int] = None


class Reading(BaseRecord):
    # None marks a value the device sent but that could not be coerced
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    light_level: Optional[int] = None
    captured_at: datetime

    @property
    def formatted(self) -> str:
        return (
            f"Temperature: {self.temperature}°C | "
            f"Humidity: {self.humidity}% | "
            f"Light: {self.light_level}"
        )


class DeviceStatus(BaseRecord):
    uptime_seconds: Optional[int] = None
    total_readings: Optional[int] = None
    sampling_interval_ms: Optional[int] = None
    led_on: Optional[bool] = None
    temperature_offset: Optional[float] = None
    humidity_offset: Optional[float] = None
    light_threshold: Optional[int] = None
    ip_address: Optional[str] = None
    signal_strength: Optional[int] = None
    reported_at: datetime


class Alert(BaseRecord):
    message: str
    raised_at: datetime

    @field_validator('message')
    def validate_message(cls, v):
        if not v:
            raise ValueError("Alert message must not be empty")
        return v


def new_reading(temperature: Optional[float], humidity: Optional[float],
                light_level: Optional[int],
                captured_at: Optional[datetime] = None) -> Reading:
    return Reading(
        temperature=temperature,
        humidity=humidity,
        light_level=light_level,
        captured_at=captured_at or utc_now(),
    )
