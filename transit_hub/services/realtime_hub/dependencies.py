# transit_hub/services/realtime_hub/dependencies.py
"""
FastAPI зависимости: компоненты хаба живут в app.state и создаются в create_app().
"""

from fastapi import Request

from transit_hub.core.incidents.service import IncidentService
from transit_hub.services.realtime_hub.service import RealtimeHubService


def get_hub(request: Request) -> RealtimeHubService:
    return request.app.state.hub


def get_incident_service(request: Request) -> IncidentService:
    return request.app.state.incident_service
