# transit_hub/services/realtime_hub/messages.py
"""
Протокол WebSocket хаба: один JSON-объект на текстовый фрейм.

Входящие (клиент → сервер):
- {"type": "auth", "userId": ..., "role": "passenger" | "driver" | "admin"}
- {"type": "updateLocation", "location": {"lat": ..., "lng": ...}}

Исходящие (сервер → клиент):
- busLocations, busRoute, busLocationUpdate, newIncident
"""

from __future__ import annotations

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, field_validator

from transit_hub.common.constants import InboundType, OutboundType, UserRole
from transit_hub.common.exceptions import ProtocolError
from transit_hub.core.fleet.models import CamelModel, EntityId, Location


# =============================================================================
# ВХОДЯЩИЕ СООБЩЕНИЯ
# =============================================================================

class AuthMessage(BaseModel):
    """Объявление личности соединения."""

    type: Literal["auth"]
    user_id: Union[StrictStr, StrictInt] = Field(..., alias="userId")
    role: UserRole

    @field_validator("user_id")
    @classmethod
    def normalize_user_id(cls, v: str | int) -> str:
        """userId приходит строкой или числом; внутри хаба - всегда строка."""
        value = str(v).strip()
        if not value:
            raise ValueError("userId не может быть пустым")
        return value


class UpdateLocationMessage(BaseModel):
    """Новая геолокация от водителя."""

    type: Literal["updateLocation"]
    location: Location


InboundMessage = Union[AuthMessage, UpdateLocationMessage]

_INBOUND_MODELS: dict[str, type[BaseModel]] = {
    InboundType.AUTH.value: AuthMessage,
    InboundType.UPDATE_LOCATION.value: UpdateLocationMessage,
}


def parse_inbound(raw: str | bytes) -> InboundMessage:
    """
    Разбирает входящий фрейм.

    Raises:
        ProtocolError: не JSON, не объект или неизвестный type
        pydantic.ValidationError: обязательные поля отсутствуют или некорректны
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Некорректный JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError(f"Ожидался JSON-объект, получен {type(data).__name__}")

    msg_type = data.get("type")
    model = _INBOUND_MODELS.get(msg_type) if isinstance(msg_type, str) else None
    if model is None:
        raise ProtocolError(f"Неизвестный тип сообщения: {msg_type!r}")

    return model.model_validate(data)  # type: ignore[return-value]


# =============================================================================
# ИСХОДЯЩИЕ СООБЩЕНИЯ
# =============================================================================

class BusLocationUpdate(CamelModel):
    """Данные busLocationUpdate."""

    bus_id: EntityId
    location: Location


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, CamelModel):
        return data.to_payload()
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return [_to_jsonable(item) for item in data]
    return data


def build_envelope(msg_type: OutboundType, data: Any) -> dict[str, Any]:
    """Конверт {type, data}; модели сериализуются с camelCase ключами."""
    return {"type": msg_type.value, "data": _to_jsonable(data)}
