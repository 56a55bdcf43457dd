# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.websockets import WebSocketState

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from transit_hub.common.constants import BusStatus, UserRole
from transit_hub.core.fleet.models import Bus, BusDetails, Location, Route, RouteStop, Stop
from transit_hub.core.incidents.models import IncidentDetails, Reporter
from transit_hub.services.realtime_hub.connection_registry import ConnectionRegistry
from transit_hub.services.realtime_hub.dispatcher import RoleDispatcher


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "transit_hub_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "REALTIME_HUB_HOST": "127.0.0.1",
        "REALTIME_HUB_PORT": 9000,
        "LOG_LEVEL": "DEBUG",
        "LOG_FORMAT": "json",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "DB_HOST": "db.local",
        "DB_PORT": 5433,
        "DB_NAME": "transit_test",
        "DB_USER": "tester",
        "DB_PASSWORD": "secret",
        "WS_PATH": "/realtime",
    }


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> MagicMock:
    """Мок менеджера базы данных."""
    db = MagicMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="UPDATE 1")
    db.fetchval = AsyncMock(return_value=None)
    db.health_check = AsyncMock(return_value=True)
    return db


@pytest.fixture
def make_websocket() -> Callable[..., MagicMock]:
    """Фабрика мок-сокетов с управляемым состоянием."""
    def _make(open_: bool = True, fail: bool = False) -> MagicMock:
        ws = MagicMock()
        state = WebSocketState.CONNECTED if open_ else WebSocketState.DISCONNECTED
        ws.application_state = state
        ws.client_state = state
        ws.send_text = AsyncMock(side_effect=RuntimeError("broken pipe") if fail else None)
        return ws
    return _make


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def dispatcher(registry: ConnectionRegistry) -> RoleDispatcher:
    return RoleDispatcher(registry)


@pytest.fixture
def identified(
    registry: ConnectionRegistry,
    make_websocket: Callable[..., MagicMock],
) -> Callable[..., tuple[str, MagicMock]]:
    """Регистрирует соединение и сразу объявляет роль."""
    def _identify(role: UserRole, user_id: str = "u1", **ws_kwargs: Any) -> tuple[str, MagicMock]:
        ws = make_websocket(**ws_kwargs)
        connection_id = registry.register(ws)
        registry.declare_identity(connection_id, role, user_id)
        return connection_id, ws
    return _identify


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def sample_route() -> Route:
    """Маршрут с двумя остановками."""
    return Route(
        id="7",
        name="Центр - Вокзал",
        route_stops=[
            RouteStop(order=1, stop=Stop(id="10", name="Площадь", location=Location(lat=50.45, lng=30.52))),
            RouteStop(order=2, stop=Stop(id="11", name="Вокзал", location=Location(lat=50.44, lng=30.49))),
        ],
    )


@pytest.fixture
def sample_bus() -> Bus:
    return Bus(
        id="bus42",
        bus_number="A-42",
        capacity=50,
        status=BusStatus.ACTIVE,
        driver_id="d1",
        route_id="7",
    )


@pytest.fixture
def sample_bus_details(sample_bus: Bus, sample_route: Route) -> BusDetails:
    return BusDetails(**sample_bus.model_dump(), route=sample_route)


@pytest.fixture
def sample_incident(sample_bus: Bus) -> IncidentDetails:
    return IncidentDetails(
        id="501",
        bus_id=sample_bus.id,
        reported_by="77",
        incident_type="breakdown",
        description="Не открывается задняя дверь",
        location=Location(lat=50.4, lng=30.5),
        created_at=datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc),
        bus=sample_bus,
        reporter=Reporter(id="77", username="olena", full_name="Олена К."),
    )


@pytest.fixture
def mock_fleet(sample_bus: Bus, sample_bus_details: BusDetails) -> MagicMock:
    """Мок хранилища автопарка: у водителя d1 автобус bus42."""
    fleet = MagicMock()

    async def bus_by_driver(driver_id: str) -> Bus | None:
        return sample_bus if driver_id == "d1" else None

    async def details_by_driver(driver_id: str) -> BusDetails | None:
        return sample_bus_details if driver_id == "d1" else None

    fleet.get_bus_by_driver = AsyncMock(side_effect=bus_by_driver)
    fleet.get_bus_details_by_driver = AsyncMock(side_effect=details_by_driver)
    fleet.get_buses_by_status = AsyncMock(return_value=[sample_bus_details])
    fleet.update_bus_location = AsyncMock(return_value=True)
    return fleet
