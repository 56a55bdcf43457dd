# transit_hub/services/realtime_hub/routes.py
"""
HTTP endpoints хаба:
- GET /health - проверка здоровья
- GET /stats - статистика соединений
- POST /api/incidents - создание инцидента с оповещением администраторов
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from transit_hub.common.exceptions import StorageError
from transit_hub.common.logger import log_error
from transit_hub.core.incidents.models import IncidentCreateDTO
from transit_hub.core.incidents.service import IncidentService
from transit_hub.services.realtime_hub.dependencies import get_hub, get_incident_service
from transit_hub.services.realtime_hub.service import RealtimeHubService

router = APIRouter()


class HealthStatus(BaseModel):
    """Ответ health check."""
    status: str
    service: str
    version: str
    database: bool


class StatsResponse(BaseModel):
    """Статистика соединений."""
    active_connections: int
    total_connections_ever: int
    total_messages_sent: int
    total_send_failures: int
    connections_by_role: dict[str, int]


@router.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check(request: Request) -> HealthStatus:
    """Проверка здоровья сервиса."""
    db = getattr(request.app.state, "db", None)
    database_ok = await db.health_check() if db is not None else False
    return HealthStatus(
        status="healthy",
        service="realtime_hub",
        version=request.app.version,
        database=database_ok,
    )


@router.get("/stats", response_model=StatsResponse, tags=["Stats"])
async def get_stats(hub: RealtimeHubService = Depends(get_hub)) -> StatsResponse:
    """Получить статистику соединений."""
    return StatsResponse(**hub.get_stats())


@router.post("/api/incidents", status_code=status.HTTP_201_CREATED, tags=["Incidents"])
async def report_incident(
    request: IncidentCreateDTO,
    service: IncidentService = Depends(get_incident_service),
) -> JSONResponse:
    """Создать инцидент. Администраторы получают newIncident по WebSocket."""
    try:
        incident = await service.report(request)
    except StorageError as e:
        await log_error(f"Ошибка создания инцидента: {e}")
        raise HTTPException(status_code=500, detail="Failed to report incident")

    payload: dict[str, Any] = incident.to_payload()
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=payload)
