# src/telemetry_gateway/api/dependencies.py
from fastapi import Request
from typing import Annotated
from fastapi import Depends
from ..core.telemetry_service import TelemetryService

async def get_telemetry_service(request: Request) -> TelemetryService:
    return request.app.state.components.telemetry_service

# Type definitions for dependencies
TelemetryDependency = Annotated[TelemetryService, Depends(get_telemetry_service)]
