# transit_hub/core/fleet/snapshot.py
"""
Начальный снимок состояния, который клиент получает сразу после auth.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from transit_hub.common.constants import BusStatus, OutboundType, UserRole
from transit_hub.core.fleet.models import BusDetails
from transit_hub.core.fleet.repository import FleetStorage


@dataclass(frozen=True)
class Snapshot:
    """Тип исходящего сообщения и его данные."""

    type: OutboundType
    data: Any


class SnapshotProvider:
    """
    Формирует начальный снимок по роли:

    - passenger - все активные автобусы с маршрутами и остановками (busLocations)
    - driver - назначенный водителю автобус с маршрутом (busRoute) или None
    - admin - снимок не отправляется
    """

    def __init__(self, fleet: FleetStorage) -> None:
        self._fleet = fleet

    async def get_initial_payload(self, role: UserRole, user_id: str) -> Optional[Snapshot]:
        """
        Returns:
            Snapshot или None, если отправлять нечего. Отсутствие автобуса
            у водителя - не ошибка.

        Raises:
            StorageError: при сбое хранилища
        """
        if role == UserRole.PASSENGER:
            buses = await self._fleet.get_buses_by_status(BusStatus.ACTIVE.value)
            active = [bus for bus in buses if bus.status == BusStatus.ACTIVE]
            return Snapshot(type=OutboundType.BUS_LOCATIONS, data=active)

        if role == UserRole.DRIVER:
            bus: Optional[BusDetails] = await self._fleet.get_bus_details_by_driver(user_id)
            if bus is None:
                return None
            return Snapshot(type=OutboundType.BUS_ROUTE, data=bus)

        return None
