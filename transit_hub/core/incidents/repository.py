# transit_hub/core/incidents/repository.py
"""
Репозиторий инцидентов (PostgreSQL).
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Optional

from transit_hub.common.exceptions import StorageError
from transit_hub.core.fleet.models import Bus
from transit_hub.core.fleet.repository import _db_id, _read_location
from transit_hub.core.incidents.models import IncidentCreateDTO, IncidentDetails, Reporter
from transit_hub.infra.database import DatabaseManager


class IncidentStorage(ABC):
    """Интерфейс хранилища инцидентов."""

    @abstractmethod
    async def create(self, dto: IncidentCreateDTO) -> str:
        """Создаёт инцидент и возвращает его id."""

    @abstractmethod
    async def get_details(self, incident_id: str) -> Optional[IncidentDetails]:
        """Инцидент с автобусом и автором, или None."""


class IncidentRepository(IncidentStorage):
    """Репозиторий инцидентов."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def create(self, dto: IncidentCreateDTO) -> str:
        bus_key = _db_id(dto.bus_id)
        reporter_key = _db_id(dto.reported_by)
        if bus_key is None or reporter_key is None:
            raise StorageError("create_incident", ValueError("некорректный id автобуса или автора"))

        try:
            incident_id = await self._db.fetchval(
                """
                INSERT INTO incidents (bus_id, reported_by, incident_type, description, location, status)
                VALUES ($1, $2, $3, $4, $5::jsonb, 'reported')
                RETURNING id
                """,
                bus_key,
                reporter_key,
                dto.incident_type.value,
                dto.description,
                json.dumps(dto.location.model_dump()) if dto.location else None,
            )
        except Exception as e:
            raise StorageError("create_incident", e) from e

        return str(incident_id)

    async def get_details(self, incident_id: str) -> Optional[IncidentDetails]:
        key = _db_id(incident_id)
        if key is None:
            return None

        try:
            row = await self._db.fetchrow(
                """
                SELECT i.id, i.bus_id, i.reported_by, i.incident_type, i.description,
                       i.location, i.status, i.created_at, i.resolved_at,
                       b.bus_number, b.capacity, b.status AS bus_status,
                       b.current_location AS bus_location, b.driver_id AS bus_driver_id,
                       b.route_id AS bus_route_id, b.created_at AS bus_created_at,
                       u.username, u.full_name, u.role AS reporter_role, u.phone
                FROM incidents i
                LEFT JOIN buses b ON b.id = i.bus_id
                LEFT JOIN users u ON u.id = i.reported_by
                WHERE i.id = $1
                """,
                key,
            )
            if row is None:
                return None

            bus = None
            if row["bus_number"] is not None:
                bus = Bus(
                    id=row["bus_id"],
                    bus_number=row["bus_number"],
                    capacity=row["capacity"],
                    status=row["bus_status"],
                    current_location=await _read_location(row["bus_location"], f"автобус {row['bus_id']}"),
                    driver_id=row["bus_driver_id"],
                    route_id=row["bus_route_id"],
                    created_at=row["bus_created_at"],
                )

            reporter = None
            if row["username"] is not None:
                reporter = Reporter(
                    id=row["reported_by"],
                    username=row["username"],
                    full_name=row["full_name"],
                    role=row["reporter_role"],
                    phone=row["phone"],
                )

            return IncidentDetails(
                id=row["id"],
                bus_id=row["bus_id"],
                reported_by=row["reported_by"],
                incident_type=row["incident_type"],
                description=row["description"],
                location=await _read_location(row["location"], f"инцидент {row['id']}"),
                status=row["status"],
                created_at=row["created_at"],
                resolved_at=row["resolved_at"],
                bus=bus,
                reporter=reporter,
            )
        except Exception as e:
            raise StorageError("get_incident_details", e) from e
