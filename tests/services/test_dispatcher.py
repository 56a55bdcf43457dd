# tests/services/test_dispatcher.py
"""
Тесты для рассылки по ролям.
"""

from __future__ import annotations

import json
from typing import Callable
from unittest.mock import MagicMock, patch, AsyncMock

import pytest
from starlette.websockets import WebSocketState

from transit_hub.common.constants import UserRole
from transit_hub.services.realtime_hub.connection_registry import ConnectionRegistry
from transit_hub.services.realtime_hub.dispatcher import RoleDispatcher, is_open


def test_is_open_requires_both_sides(make_websocket: Callable[..., MagicMock]) -> None:
    ws = make_websocket()
    assert is_open(ws) is True

    ws.client_state = WebSocketState.DISCONNECTED
    assert is_open(ws) is False


class TestBroadcast:
    """Тесты broadcast."""

    @pytest.mark.asyncio
    async def test_delivers_only_to_role(self, dispatcher: RoleDispatcher, identified) -> None:
        _, passenger_ws = identified(UserRole.PASSENGER, "p1")
        _, driver_ws = identified(UserRole.DRIVER, "d1")
        _, admin_ws = identified(UserRole.ADMIN, "a1")

        sent = await dispatcher.broadcast(UserRole.PASSENGER, {"type": "ping", "data": 1})

        assert sent == 1
        passenger_ws.send_text.assert_awaited_once()
        assert json.loads(passenger_ws.send_text.await_args.args[0]) == {"type": "ping", "data": 1}
        driver_ws.send_text.assert_not_awaited()
        admin_ws.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_serializes_once(self, dispatcher: RoleDispatcher, identified) -> None:
        identified(UserRole.ADMIN, "a1")
        identified(UserRole.ADMIN, "a2")

        with patch.object(RoleDispatcher, "serialize", wraps=RoleDispatcher.serialize) as serialize:
            sent = await dispatcher.broadcast(UserRole.ADMIN, {"type": "newIncident", "data": {}})

        assert sent == 2
        serialize.assert_called_once()

    @pytest.mark.asyncio
    async def test_skips_closed_without_removing(
        self,
        dispatcher: RoleDispatcher,
        registry: ConnectionRegistry,
        identified,
    ) -> None:
        """Закрытое соединение пропускается, но из реестра не удаляется."""
        closed_id, closed_ws = identified(UserRole.PASSENGER, "p1", open_=False)
        _, open_ws = identified(UserRole.PASSENGER, "p2")

        sent = await dispatcher.broadcast(UserRole.PASSENGER, {"type": "x"})

        assert sent == 1
        closed_ws.send_text.assert_not_awaited()
        open_ws.send_text.assert_awaited_once()
        assert closed_id in registry

    @pytest.mark.asyncio
    async def test_failed_write_does_not_stop_delivery(self, dispatcher: RoleDispatcher, identified) -> None:
        """Ошибка записи в одно соединение не мешает остальным."""
        _, broken_ws = identified(UserRole.PASSENGER, "p1", fail=True)
        _, ok_ws = identified(UserRole.PASSENGER, "p2")

        with patch("transit_hub.services.realtime_hub.dispatcher.log_warning", new_callable=AsyncMock) as warn:
            sent = await dispatcher.broadcast(UserRole.PASSENGER, {"type": "x"})

        assert sent == 1
        broken_ws.send_text.assert_awaited_once()
        ok_ws.send_text.assert_awaited_once()
        warn.assert_awaited_once()
        assert dispatcher.total_send_failures == 1
        assert dispatcher.total_messages_sent == 1

    @pytest.mark.asyncio
    async def test_removed_connection_gets_nothing(
        self,
        dispatcher: RoleDispatcher,
        registry: ConnectionRegistry,
        identified,
    ) -> None:
        connection_id, ws = identified(UserRole.ADMIN, "a1")
        registry.remove(connection_id)

        sent = await dispatcher.broadcast(UserRole.ADMIN, {"type": "x"})

        assert sent == 0
        ws.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_role(self, dispatcher: RoleDispatcher) -> None:
        assert await dispatcher.broadcast(UserRole.DRIVER, {"type": "x"}) == 0


class TestSendTo:
    """Тесты отправки одному соединению."""

    @pytest.mark.asyncio
    async def test_send_to_open_connection(self, dispatcher: RoleDispatcher, identified) -> None:
        connection_id, ws = identified(UserRole.DRIVER, "d1")

        assert await dispatcher.send_to(connection_id, {"type": "busRoute", "data": None}) is True
        ws.send_text.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_send_to_unknown_or_closed(self, dispatcher: RoleDispatcher, identified) -> None:
        connection_id, ws = identified(UserRole.DRIVER, "d1", open_=False)

        assert await dispatcher.send_to("missing", {"type": "x"}) is False
        assert await dispatcher.send_to(connection_id, {"type": "x"}) is False
        ws.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_to_write_error(self, dispatcher: RoleDispatcher, identified) -> None:
        connection_id, _ = identified(UserRole.DRIVER, "d1", fail=True)

        with patch("transit_hub.services.realtime_hub.dispatcher.log_warning", new_callable=AsyncMock):
            assert await dispatcher.send_to(connection_id, {"type": "x"}) is False
