from fastapi import APIRouter
from typing import Any, Dict
from ...models.device import AckResponse, SamplingIntervalRequest
from ...utils.exceptions import ValidationError
from ...utils.helpers import coerce_float
from ...utils.logging import get_logger
from ..dependencies import TelemetryDependency

logger = get_logger(__name__)

command_router = APIRouter()

# Shortcut path -> (device command, acknowledgement)
SHORTCUTS = {
    "/sensors/read": ("READ", "Reading command queued"),
    "/sensors/temp/enable": ("TEMP:ON", "Temperature/Humidity readings enabled"),
    "/sensors/temp/disable": ("TEMP:OFF", "Temperature/Humidity readings disabled"),
    "/sensors/light/enable": ("LIGHT:ON", "Light (LDR) readings enabled"),
    "/sensors/light/disable": ("LIGHT:OFF", "Light (LDR) readings disabled"),
    "/device/status-request": ("STATUS", "Status request queued"),
}


def _shortcut_endpoint(command: str, message: str):
    async def endpoint(service: TelemetryDependency) -> AckResponse:
        service.enqueue_command(command)
        return AckResponse(message=message)
    endpoint.__name__ = f"queue_{command.lower().replace(':', '_')}"
    return endpoint


for path, (command, message) in SHORTCUTS.items():
    command_router.add_api_route(
        path,
        _shortcut_endpoint(command, message),
        methods=["POST"],
        response_model=AckResponse,
    )


@command_router.post("/settings/sampling-interval")
async def set_sampling_interval(
    service: TelemetryDependency,
    request: SamplingIntervalRequest,
) -> Dict[str, Any]:
    interval = coerce_float(request.interval)
    if interval is None or interval < 1:
        raise ValidationError("Invalid interval")

    interval_ms = int(interval * 1000)
    service.enqueue_command(f"INTERVAL:{interval_ms}")
    logger.info(f"Sampling interval command queued: {interval} seconds")
    return {"success": True, "interval": request.interval}
