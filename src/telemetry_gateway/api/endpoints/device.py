from fastapi import APIRouter, Body
from typing import Any, Dict, List, Optional
from ...models.device import AckResponse, CommandRequest, CommandResponse, ConnectivitySummary
from ...models.things import Alert
from ..dependencies import TelemetryDependency

device_router = APIRouter()


'''
Device side (HTTP mode):
    POST /api/sensors/data           push a reading
    GET  /api/device/commands        poll for the pending command
    POST /api/device/status-update   push device status
    POST /api/device/alerts          push an alert

Client side:
    POST /api/device/command         queue a command
    GET  /api/device/status          latest device status
    GET  /api/device/connection      liveness summary
    GET  /api/alerts                 recent alerts
'''

@device_router.get("/device/commands", response_model=CommandResponse)
async def poll_command(service: TelemetryDependency) -> CommandResponse:
    return CommandResponse(command=service.poll_command())


@device_router.post("/device/command", response_model=AckResponse)
async def queue_command(service: TelemetryDependency, request: CommandRequest) -> AckResponse:
    service.enqueue_command(request.command)
    return AckResponse(message="Command queued successfully")


@device_router.post("/device/status-update", response_model=AckResponse)
async def update_device_status(
    service: TelemetryDependency,
    payload: Any = Body(None),
) -> AckResponse:
    await service.ingest_status(payload)
    return AckResponse(message="Status updated successfully")


@device_router.get("/device/status")
async def get_device_status(service: TelemetryDependency) -> Dict[str, Any]:
    status = await service.latest_status()
    if status is None:
        return {"message": "No status available"}
    return status.model_dump(mode="json", by_alias=True)


@device_router.get("/device/connection", response_model=ConnectivitySummary)
async def get_connection_status(service: TelemetryDependency) -> ConnectivitySummary:
    return service.connectivity()


@device_router.post("/device/alerts", response_model=AckResponse)
async def receive_alert(
    service: TelemetryDependency,
    payload: Any = Body(None),
) -> AckResponse:
    message = payload.get("message") if isinstance(payload, dict) else None
    await service.ingest_alert(message)
    return AckResponse(message="Alert saved successfully")


@device_router.get("/alerts", response_model=List[Alert])
async def get_alerts(
    service: TelemetryDependency,
    limit: Optional[int] = None,
) -> List[Alert]:
    return await service.recent_alerts(limit)
