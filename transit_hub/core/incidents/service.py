# transit_hub/core/incidents/service.py
"""
Сервис инцидентов: сохранение через REST и оповещение администраторов.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from transit_hub.common.exceptions import StorageError
from transit_hub.common.logger import log_info
from transit_hub.core.incidents.models import IncidentCreateDTO, IncidentDetails
from transit_hub.core.incidents.repository import IncidentStorage

# Колбэк рассылки: получает созданный инцидент, возвращает число доставок
IncidentNotifier = Callable[[IncidentDetails], Awaitable[int]]


class IncidentService:
    """Создание инцидентов с последующей рассылкой администраторам."""

    def __init__(self, repository: IncidentStorage, notifier: IncidentNotifier) -> None:
        self._repository = repository
        self._notify = notifier

    async def report(self, dto: IncidentCreateDTO) -> IncidentDetails:
        """
        Сохраняет инцидент, перечитывает его с деталями и оповещает админов.

        Raises:
            StorageError: если запись не удалось сохранить или перечитать
        """
        incident_id = await self._repository.create(dto)

        incident = await self._repository.get_details(incident_id)
        if incident is None:
            raise StorageError("get_incident_details", LookupError(f"инцидент {incident_id} не найден"))

        delivered = await self._notify(incident)
        await log_info(
            f"Инцидент {incident.id} ({incident.incident_type.value}) по автобусу {incident.bus_id} "
            f"создан, оповещено администраторов: {delivered}"
        )
        return incident
