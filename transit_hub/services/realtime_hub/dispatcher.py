# transit_hub/services/realtime_hub/dispatcher.py
"""
Рассылка исходящих сообщений по ролям.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from transit_hub.common.constants import UserRole
from transit_hub.common.logger import log_warning
from transit_hub.services.realtime_hub.connection_registry import ConnectionInfo, ConnectionRegistry


def is_open(websocket: WebSocket) -> bool:
    """Сокет открыт с обеих сторон."""
    return (
        websocket.application_state == WebSocketState.CONNECTED
        and websocket.client_state == WebSocketState.CONNECTED
    )


class RoleDispatcher:
    """
    Доставляет сообщение всем открытым соединениям роли.

    Доставка best-effort, без повторов: ошибка записи в одно соединение
    логируется и не прерывает рассылку остальным. Закрытые соединения
    пропускаются, но не удаляются - это делает обработчик закрытия сокета.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._total_messages_sent: int = 0
        self._total_send_failures: int = 0

    @property
    def total_messages_sent(self) -> int:
        return self._total_messages_sent

    @property
    def total_send_failures(self) -> int:
        return self._total_send_failures

    @staticmethod
    def serialize(message: dict[str, Any]) -> str:
        return json.dumps(message, ensure_ascii=False, default=str)

    async def broadcast(self, role: UserRole, message: dict[str, Any]) -> int:
        """
        Отправить сообщение всем соединениям роли.

        Сообщение сериализуется один раз.

        Returns:
            Количество успешно отправленных сообщений
        """
        payload = self.serialize(message)
        sent_count = 0

        for conn in self._registry.for_each_of_role(role):
            if not is_open(conn.websocket):
                continue
            if await self._write(conn, payload):
                sent_count += 1

        return sent_count

    async def send_to(self, connection_id: str, message: dict[str, Any]) -> bool:
        """
        Отправить сообщение одному соединению.

        Returns:
            True если сообщение отправлено
        """
        conn = self._registry.get(connection_id)
        if conn is None or not is_open(conn.websocket):
            return False
        return await self._write(conn, self.serialize(message))

    async def _write(self, conn: ConnectionInfo, payload: str) -> bool:
        try:
            await conn.websocket.send_text(payload)
        except Exception as e:
            self._total_send_failures += 1
            await log_warning(
                f"Не удалось отправить сообщение в соединение {conn.connection_id}: {e}",
                extra={"connection_id": conn.connection_id, "role": conn.role},
            )
            return False

        self._total_messages_sent += 1
        return True
