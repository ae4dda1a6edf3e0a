# src/telemetry_gateway/api/routes.py
from fastapi import APIRouter, Body
from typing import Any, Dict, List, Optional
from datetime import datetime
from ..models.device import AckResponse, HistoryResponse
from ..models.things import Reading
from ..utils.helpers import ensure_utc
from .dependencies import TelemetryDependency

sensor_router = APIRouter()

@sensor_router.post("/sensors/data", response_model=AckResponse)
async def receive_sensor_data(
    service: TelemetryDependency,
    payload: Any = Body(None),
) -> AckResponse:
    await service.ingest_reading(payload)
    return AckResponse(message="Data saved successfully")


@sensor_router.get("/sensors", response_model=List[Reading])
async def get_recent_readings(
    service: TelemetryDependency,
    limit: Optional[int] = None,
) -> List[Reading]:
    return await service.recent_readings(limit)


@sensor_router.get("/sensors/all", response_model=List[Reading])
async def get_all_readings(service: TelemetryDependency) -> List[Reading]:
    return await service.all_readings()


@sensor_router.get("/sensors/latest")
async def get_latest_reading(service: TelemetryDependency) -> Dict[str, Any]:
    reading = await service.latest_reading()
    if reading is None:
        return {"message": "No sensor data available yet"}
    body = reading.model_dump(mode="json", by_alias=True)
    body["formatted"] = reading.formatted
    return body


@sensor_router.get("/sensors/range", response_model=List[Reading])
async def get_readings_in_range(
    service: TelemetryDependency,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[Reading]:
    return await service.readings_between(
        ensure_utc(start) if start else None,
        ensure_utc(end) if end else None,
        limit
    )


@sensor_router.get("/sensors/history", response_model=HistoryResponse)
async def get_history(
    service: TelemetryDependency,
    period: Optional[str] = None,
    limit: Optional[int] = None,
) -> HistoryResponse:
    start, end, readings = await service.history(period, limit)
    return HistoryResponse(
        period=period,
        start_time=start,
        end_time=end,
        count=len(readings),
        data=readings
    )
