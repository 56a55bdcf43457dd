# transit_hub/core/incidents/models.py
"""
Модели инцидентов.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from transit_hub.common.constants import IncidentStatus, IncidentType, UserRole
from transit_hub.core.fleet.models import Bus, CamelModel, EntityId, Location


class Reporter(CamelModel):
    """Автор инцидента (без чувствительных полей пользователя)."""

    id: EntityId
    username: str
    full_name: Optional[str] = None
    role: UserRole = UserRole.PASSENGER
    phone: Optional[str] = None


class Incident(CamelModel):
    """Запись об инциденте."""

    id: EntityId
    bus_id: EntityId
    reported_by: EntityId
    incident_type: IncidentType
    description: str
    location: Optional[Location] = None
    status: IncidentStatus = IncidentStatus.REPORTED
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


class IncidentDetails(Incident):
    """Инцидент вместе с автобусом и автором - то, что получают администраторы."""

    bus: Optional[Bus] = None
    reporter: Optional[Reporter] = None


class IncidentCreateDTO(CamelModel):
    """DTO для создания инцидента."""

    bus_id: EntityId
    reported_by: EntityId
    incident_type: IncidentType
    description: str = Field(..., min_length=1, max_length=2000)
    location: Optional[Location] = None
