# transit_hub/services/realtime_hub/service.py
"""
Обработка событий realtime-хаба.

Каждый входящий фрейм обрабатывается до конца: успехом или записью в лог.
Ни одна ошибка не выходит за пределы handle_frame и не закрывает соединение.
"""

from __future__ import annotations

from typing import Any

from fastapi import WebSocket
from pydantic import BaseModel, ValidationError

from transit_hub.common.constants import ConnectionState, OutboundType, UserRole
from transit_hub.common.exceptions import ProtocolError, StorageError
from transit_hub.common.logger import log_debug, log_error, log_info, log_warning
from transit_hub.core.fleet.repository import FleetStorage
from transit_hub.core.fleet.snapshot import SnapshotProvider
from transit_hub.services.realtime_hub.connection_registry import ConnectionRegistry
from transit_hub.services.realtime_hub.dispatcher import RoleDispatcher
from transit_hub.services.realtime_hub.messages import (
    AuthMessage,
    BusLocationUpdate,
    UpdateLocationMessage,
    build_envelope,
    parse_inbound,
)


class RealtimeHubService:
    """
    Хаб: идентификация соединений, приём геолокации водителей,
    рассылка обновлений пассажирам и инцидентов администраторам.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        dispatcher: RoleDispatcher,
        snapshots: SnapshotProvider,
        fleet: FleetStorage,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._snapshots = snapshots
        self._fleet = fleet

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def dispatcher(self) -> RoleDispatcher:
        return self._dispatcher

    # -------------------------------------------------------------------------
    # Жизненный цикл соединения
    # -------------------------------------------------------------------------

    async def open_connection(self, websocket: WebSocket) -> str:
        """Регистрирует принятое соединение в состоянии unauthenticated."""
        connection_id = self._registry.register(websocket)
        await log_debug(f"WS соединение {connection_id} открыто")
        return connection_id

    async def close_connection(self, connection_id: str) -> None:
        """Удаляет соединение из реестра. Незавершённые операции не отменяются."""
        conn = self._registry.get(connection_id)
        self._registry.remove(connection_id)
        if conn is not None:
            await log_debug(
                f"WS соединение {connection_id} закрыто",
                extra={"role": conn.role, "user_id": conn.user_id},
            )

    # -------------------------------------------------------------------------
    # Входящие фреймы
    # -------------------------------------------------------------------------

    async def handle_frame(self, connection_id: str, raw: str | bytes) -> None:
        """Граница обработки одного фрейма: протокольные и прочие ошибки логируются."""
        try:
            message = parse_inbound(raw)
        except ProtocolError as e:
            await log_warning(f"Отброшен фрейм от {connection_id}: {e}")
            return
        except ValidationError as e:
            await log_debug(
                f"Отброшено некорректное сообщение от {connection_id}",
                extra={"errors": e.errors(include_url=False)},
            )
            return

        try:
            if isinstance(message, AuthMessage):
                await self.handle_auth(connection_id, message)
            elif isinstance(message, UpdateLocationMessage):
                await self.handle_update_location(connection_id, message)
        except Exception as e:
            await log_error(
                f"Ошибка обработки {message.type} от {connection_id}: {e}",
                exc_info=True,
            )

    async def handle_auth(self, connection_id: str, message: AuthMessage) -> None:
        """
        Переход unauthenticated → identified и отправка начального снимка.

        Повторный auth от уже идентифицированного соединения игнорируется.
        """
        conn = self._registry.get(connection_id)
        if conn is None:
            return

        if conn.state == ConnectionState.IDENTIFIED:
            await log_warning(
                f"Повторный auth от {connection_id} проигнорирован "
                f"(уже {conn.role.value}:{conn.user_id})"
            )
            return

        if not self._registry.declare_identity(connection_id, message.role, message.user_id):
            return

        await log_info(
            f"Соединение {connection_id} идентифицировано: {message.role.value}:{message.user_id}"
        )

        try:
            snapshot = await self._snapshots.get_initial_payload(message.role, message.user_id)
        except StorageError as e:
            await log_error(f"Не удалось получить снимок для {message.role.value}:{message.user_id}: {e}")
            return

        if snapshot is None:
            return

        await self._dispatcher.send_to(connection_id, build_envelope(snapshot.type, snapshot.data))

    async def handle_update_location(self, connection_id: str, message: UpdateLocationMessage) -> None:
        """
        Приём геолокации водителя.

        1. Найти автобус водителя (нет автобуса - событие отбрасывается)
        2. Сохранить current_location (запись не найдена - событие отбрасывается)
        3. Разослать busLocationUpdate всем пассажирам
        """
        conn = self._registry.get(connection_id)
        if conn is None or conn.role != UserRole.DRIVER:
            await log_debug(f"updateLocation от {connection_id} без роли driver отброшен")
            return

        # Читаем из записи до первого await: соединение может закрыться
        # во время запроса к БД, а рассылка всё равно должна состояться.
        driver_id = conn.user_id

        try:
            bus = await self._fleet.get_bus_by_driver(driver_id)
            if bus is None:
                await log_debug(f"У водителя {driver_id} нет автобуса, геолокация отброшена")
                return

            stored = await self._fleet.update_bus_location(bus.id, message.location)
        except StorageError as e:
            await log_error(f"Геолокация водителя {driver_id} не сохранена: {e}")
            return

        if not stored:
            await log_debug(f"Автобус {bus.id} не найден при записи геолокации, событие отброшено")
            return

        update = BusLocationUpdate(bus_id=bus.id, location=message.location)
        await self._dispatcher.broadcast(
            UserRole.PASSENGER,
            build_envelope(OutboundType.BUS_LOCATION_UPDATE, update),
        )

    # -------------------------------------------------------------------------
    # Инциденты
    # -------------------------------------------------------------------------

    async def notify_admins(self, incident: BaseModel | dict[str, Any]) -> int:
        """
        Разослать newIncident всем администраторам. Подтверждения не ждём.

        Returns:
            Количество доставленных сообщений
        """
        return await self._dispatcher.broadcast(
            UserRole.ADMIN,
            build_envelope(OutboundType.NEW_INCIDENT, incident),
        )

    def get_stats(self) -> dict[str, Any]:
        """Статистика соединений и рассылок."""
        return {
            "active_connections": len(self._registry),
            "total_connections_ever": self._registry.total_connections,
            "total_messages_sent": self._dispatcher.total_messages_sent,
            "total_send_failures": self._dispatcher.total_send_failures,
            "connections_by_role": self._registry.count_by_role(),
        }
