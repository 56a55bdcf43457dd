# transit_hub/services/realtime_hub/connection_registry.py
"""
Реестр живых WebSocket соединений.
Хранит роль и идентификатор пользователя, объявленные через auth.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator
from uuid import uuid4

from fastapi import WebSocket

from transit_hub.common.constants import ConnectionState, UserRole


@dataclass
class ConnectionInfo:
    """Информация о соединении."""
    connection_id: str
    websocket: WebSocket
    role: UserRole | None = None
    user_id: str | None = None
    state: ConnectionState = ConnectionState.UNAUTHENTICATED
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_identified(self) -> bool:
        return self.state == ConnectionState.IDENTIFIED


class ConnectionRegistry:
    """
    Реестр соединений, ключ - сгенерированный connection_id.

    Один экземпляр на процесс, создаётся при старте приложения и
    передаётся диспетчеру и обработчикам явно. Мутации выполняются
    только в потоке event loop, поэтому блокировки не нужны.
    """

    def __init__(self) -> None:
        # connection_id -> ConnectionInfo (порядок вставки сохраняется)
        self._connections: dict[str, ConnectionInfo] = {}
        self._total_connections: int = 0

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    @property
    def total_connections(self) -> int:
        """Сколько соединений было зарегистрировано за всё время."""
        return self._total_connections

    def register(self, websocket: WebSocket) -> str:
        """Регистрирует принятое соединение без роли и возвращает его id."""
        connection_id = uuid4().hex
        self._connections[connection_id] = ConnectionInfo(
            connection_id=connection_id,
            websocket=websocket,
        )
        self._total_connections += 1
        return connection_id

    def declare_identity(self, connection_id: str, role: UserRole, user_id: str) -> bool:
        """
        Привязывает роль и пользователя к соединению.

        Неизвестный id (соединение уже закрыто) и повторное объявление
        игнорируются без исключения.

        Returns:
            True если соединение перешло в состояние identified
        """
        conn = self._connections.get(connection_id)
        if conn is None or conn.state != ConnectionState.UNAUTHENTICATED:
            return False

        conn.role = role
        conn.user_id = user_id
        conn.state = ConnectionState.IDENTIFIED
        return True

    def remove(self, connection_id: str) -> None:
        """Удаляет соединение. Повторный вызов ничего не делает."""
        conn = self._connections.pop(connection_id, None)
        if conn is not None:
            conn.state = ConnectionState.CLOSED

    def get(self, connection_id: str) -> ConnectionInfo | None:
        return self._connections.get(connection_id)

    def for_each_of_role(self, role: UserRole) -> Iterator[ConnectionInfo]:
        """
        Лениво перебирает соединения с указанной ролью в порядке регистрации.

        Итерация идёт по копии, а перед каждой выдачей проверяется, что
        соединение всё ещё в реестре: удалённые во время рассылки пропускаются.
        """
        for connection_id, conn in list(self._connections.items()):
            if conn.role != role:
                continue
            if self._connections.get(connection_id) is not conn:
                continue
            yield conn

    def count_by_role(self) -> dict[str, int]:
        """Подсчёт соединений по роли (без роли - unauthenticated)."""
        counts: dict[str, int] = {}
        for conn in self._connections.values():
            key = conn.role.value if conn.role is not None else ConnectionState.UNAUTHENTICATED.value
            counts[key] = counts.get(key, 0) + 1
        return counts
