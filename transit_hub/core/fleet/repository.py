# transit_hub/core/fleet/repository.py
"""
Репозиторий автопарка (PostgreSQL).
Реализует паттерн Repository для абстракции доступа к данным.

Хаб зависит только от интерфейса FleetStorage; реализация сама
нормализует идентификаторы и JSONB-поля.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from asyncpg import Record

from transit_hub.common.exceptions import StorageError
from transit_hub.common.logger import log_debug, log_warning
from transit_hub.core.fleet.models import Bus, BusDetails, Location, Route, RouteStop, Stop
from transit_hub.infra.database import DatabaseManager


class FleetStorage(ABC):
    """Интерфейс хранилища автопарка, который потребляет хаб."""

    @abstractmethod
    async def get_buses_by_status(self, status: str) -> list[BusDetails]:
        """Автобусы с указанным статусом вместе с маршрутами и остановками."""

    @abstractmethod
    async def get_bus_by_driver(self, driver_id: str) -> Optional[Bus]:
        """Автобус, назначенный водителю, или None."""

    @abstractmethod
    async def get_bus_details_by_driver(self, driver_id: str) -> Optional[BusDetails]:
        """Автобус водителя с маршрутом и упорядоченными остановками, или None."""

    @abstractmethod
    async def update_bus_location(self, bus_id: str, location: Location) -> bool:
        """Записывает current_location автобуса. True если запись найдена."""


def _db_id(entity_id: str) -> Optional[int]:
    """Преобразует канонический id в ключ таблицы (SERIAL). Чужой формат → None."""
    try:
        return int(entity_id)
    except (TypeError, ValueError):
        return None


def _decode_json(value: Any) -> Any:
    """asyncpg без кодека отдаёт JSONB строкой."""
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


async def _read_location(value: Any, owner: str) -> Optional[Location]:
    """
    Геолокация из JSONB.

    Строгая проверка действует только для входящих сообщений. Запись в БД
    могла сделать другая система: некорректное значение читается как None,
    чтобы одна строка не ломала всю выборку.
    """
    if value is None:
        return None
    try:
        return Location.model_validate(_decode_json(value))
    except ValueError as e:
        await log_warning(
            f"Некорректная геолокация в БД ({owner}), прочитана как пустая",
            extra={"raw": str(value), "error": str(e)},
        )
        return None


_BUS_COLUMNS = """
    id, bus_number, capacity, status, current_location,
    driver_id, route_id, created_at
"""


class FleetRepository(FleetStorage):
    """Репозиторий автобусов, маршрутов и остановок."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def get_buses_by_status(self, status: str) -> list[BusDetails]:
        try:
            rows = await self._db.fetch(
                f"SELECT {_BUS_COLUMNS} FROM buses WHERE status = $1 ORDER BY id",
                status,
            )
            buses = [await self._row_to_bus(row) for row in rows]
            routes = await self._load_routes(bus.route_id for bus in buses)
        except Exception as e:
            raise StorageError("get_buses_by_status", e) from e

        return [
            BusDetails(**bus.model_dump(), route=routes.get(bus.route_id))
            for bus in buses
        ]

    async def get_bus_by_driver(self, driver_id: str) -> Optional[Bus]:
        key = _db_id(driver_id)
        if key is None:
            await log_debug(f"Некорректный id водителя: {driver_id!r}")
            return None

        try:
            row = await self._db.fetchrow(
                f"SELECT {_BUS_COLUMNS} FROM buses WHERE driver_id = $1 ORDER BY id LIMIT 1",
                key,
            )
            return await self._row_to_bus(row) if row is not None else None
        except Exception as e:
            raise StorageError("get_bus_by_driver", e) from e

    async def get_bus_details_by_driver(self, driver_id: str) -> Optional[BusDetails]:
        bus = await self.get_bus_by_driver(driver_id)
        if bus is None:
            return None

        try:
            routes = await self._load_routes([bus.route_id])
        except Exception as e:
            raise StorageError("get_bus_details_by_driver", e) from e

        return BusDetails(**bus.model_dump(), route=routes.get(bus.route_id))

    async def update_bus_location(self, bus_id: str, location: Location) -> bool:
        key = _db_id(bus_id)
        if key is None:
            return False

        try:
            status = await self._db.execute(
                "UPDATE buses SET current_location = $2::jsonb WHERE id = $1",
                key,
                json.dumps(location.model_dump()),
            )
        except Exception as e:
            raise StorageError("update_bus_location", e) from e

        # asyncpg возвращает статус вида "UPDATE 1"
        return status.split()[-1] != "0"

    # -------------------------------------------------------------------------
    # Маршруты
    # -------------------------------------------------------------------------

    async def _load_routes(self, route_ids: Iterable[Optional[str]]) -> dict[str, Route]:
        """Загружает маршруты с остановками, отсортированными по order."""
        keys = sorted({k for k in (_db_id(r) for r in route_ids if r) if k is not None})
        if not keys:
            return {}

        route_rows = await self._db.fetch(
            """
            SELECT id, name, description, status, created_at
            FROM routes
            WHERE id = ANY($1::int[])
            """,
            keys,
        )
        stop_rows = await self._db.fetch(
            """
            SELECT rs.route_id, rs."order", rs.scheduled_arrival, rs.scheduled_departure,
                   s.id AS stop_id, s.name AS stop_name, s.location AS stop_location,
                   s.created_at AS stop_created_at
            FROM route_stops rs
            JOIN stops s ON s.id = rs.stop_id
            WHERE rs.route_id = ANY($1::int[])
            ORDER BY rs.route_id, rs."order" ASC
            """,
            keys,
        )

        stops_by_route: dict[str, list[RouteStop]] = {}
        for row in stop_rows:
            stops_by_route.setdefault(str(row["route_id"]), []).append(
                RouteStop(
                    order=row["order"],
                    scheduled_arrival=row["scheduled_arrival"],
                    scheduled_departure=row["scheduled_departure"],
                    stop=Stop(
                        id=row["stop_id"],
                        name=row["stop_name"],
                        location=await _read_location(row["stop_location"], f"остановка {row['stop_id']}"),
                        created_at=row["stop_created_at"],
                    ),
                )
            )

        routes: dict[str, Route] = {}
        for row in route_rows:
            route_id = str(row["id"])
            route_stops = sorted(stops_by_route.get(route_id, []), key=lambda rs: rs.order)
            routes[route_id] = Route(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                status=row["status"],
                created_at=row["created_at"],
                route_stops=route_stops,
            )
        return routes

    @staticmethod
    async def _row_to_bus(row: Record) -> Bus:
        return Bus(
            id=row["id"],
            bus_number=row["bus_number"],
            capacity=row["capacity"],
            status=row["status"],
            current_location=await _read_location(row["current_location"], f"автобус {row['id']}"),
            driver_id=row["driver_id"],
            route_id=row["route_id"],
            created_at=row["created_at"],
        )
