# transit_hub/core/fleet/models.py
"""
Модели данных автопарка: автобусы, маршруты, остановки, геолокация.

Все идентификаторы приводятся к строке на границе модели, поэтому хаб
работает с одним каноническим типом id независимо от хранилища.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, Field
from pydantic.alias_generators import to_camel

from transit_hub.common.constants import BusStatus


def _to_canonical_id(value: Any) -> Any:
    """Приводит int/str идентификатор к строке; остальное оставляет валидатору."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


EntityId = Annotated[str, BeforeValidator(_to_canonical_id)]


class CamelModel(BaseModel):
    """Базовая модель: snake_case в Python, camelCase в JSON для клиентов."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    def to_payload(self) -> dict[str, Any]:
        """Сериализует модель в JSON-совместимый словарь с camelCase ключами."""
        return self.model_dump(mode="json", by_alias=True)


class Location(BaseModel):
    """Точка на карте. Числа строгие: строки и bool не принимаются."""

    lat: float = Field(..., ge=-90.0, le=90.0, strict=True, allow_inf_nan=False, description="Широта")
    lng: float = Field(..., ge=-180.0, le=180.0, strict=True, allow_inf_nan=False, description="Долгота")


class Stop(CamelModel):
    """Остановка."""

    id: EntityId
    name: str
    location: Optional[Location] = None
    created_at: Optional[datetime] = None


class RouteStop(CamelModel):
    """Остановка в составе маршрута с порядковым номером и расписанием."""

    order: int = Field(..., description="Порядок остановки на маршруте")
    scheduled_arrival: Optional[str] = None
    scheduled_departure: Optional[str] = None
    stop: Stop


class Route(CamelModel):
    """Маршрут с упорядоченным списком остановок."""

    id: EntityId
    name: str
    description: Optional[str] = None
    status: str = "active"
    created_at: Optional[datetime] = None
    route_stops: list[RouteStop] = Field(default_factory=list)


class Bus(CamelModel):
    """Автобус."""

    id: EntityId
    bus_number: str
    capacity: int
    status: BusStatus = BusStatus.INACTIVE
    current_location: Optional[Location] = None
    driver_id: Optional[EntityId] = None
    route_id: Optional[EntityId] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == BusStatus.ACTIVE


class BusDetails(Bus):
    """Автобус вместе с маршрутом и остановками."""

    route: Optional[Route] = None
