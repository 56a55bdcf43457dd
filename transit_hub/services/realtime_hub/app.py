# transit_hub/services/realtime_hub/app.py
"""
FastAPI приложение realtime-хаба.

WebSocket endpoint:
- {WS_PATH} (по умолчанию /ws) - общий для пассажиров, водителей и администраторов;
  роль объявляется первым сообщением {"type": "auth", ...}

REST endpoints - см. routes.py.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from transit_hub import __version__
from transit_hub.common.logger import log_info, log_warning, setup_logging
from transit_hub.config import settings
from transit_hub.core.fleet.repository import FleetRepository, FleetStorage
from transit_hub.core.fleet.snapshot import SnapshotProvider
from transit_hub.core.incidents.repository import IncidentRepository, IncidentStorage
from transit_hub.core.incidents.service import IncidentService
from transit_hub.infra.database import DatabaseManager, close_db, init_db
from transit_hub.services.realtime_hub.connection_registry import ConnectionRegistry
from transit_hub.services.realtime_hub.dispatcher import RoleDispatcher
from transit_hub.services.realtime_hub.routes import router
from transit_hub.services.realtime_hub.service import RealtimeHubService


_CLOSED = object()


async def _consume_frames(hub: RealtimeHubService, connection_id: str, frames: asyncio.Queue) -> None:
    """Обрабатывает фреймы соединения по одному, в порядке поступления."""
    while True:
        raw = await frames.get()
        if raw is _CLOSED:
            return
        await hub.handle_frame(connection_id, raw)


async def websocket_endpoint(websocket: WebSocket) -> None:
    """
    Цикл одного соединения.

    Чтение сокета и обработка фреймов разделены очередью: пока обработчик
    ждёт БД, disconnect всё равно читается, и соединение сразу удаляется
    из реестра. Уже начатая обработка не отменяется и дорабатывает до
    конца; фреймы одного соединения обрабатываются строго по порядку.
    """
    hub: RealtimeHubService = websocket.app.state.hub

    await websocket.accept()
    connection_id = await hub.open_connection(websocket)

    frames: asyncio.Queue = asyncio.Queue()
    consumer = asyncio.create_task(_consume_frames(hub, connection_id, frames))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue

            frames.put_nowait(raw)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        await log_warning(f"WS соединение {connection_id} оборвано: {e}")
    finally:
        await hub.close_connection(connection_id)
        frames.put_nowait(_CLOSED)
        await consumer


def create_app(
    *,
    db: DatabaseManager | None = None,
    fleet: FleetStorage | None = None,
    incidents: IncidentStorage | None = None,
) -> FastAPI:
    """
    Собирает приложение: один реестр соединений на процесс, передаваемый
    диспетчеру и обработчикам явно.

    Если хранилища переданы снаружи (тесты, другой backend), пул PostgreSQL
    при старте не поднимается.
    """
    manage_db = fleet is None or incidents is None
    db = db or DatabaseManager()
    fleet = fleet or FleetRepository(db)
    incidents = incidents or IncidentRepository(db)

    registry = ConnectionRegistry()
    dispatcher = RoleDispatcher(registry)
    snapshots = SnapshotProvider(fleet)
    hub = RealtimeHubService(registry, dispatcher, snapshots, fleet)
    incident_service = IncidentService(incidents, hub.notify_admins)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Жизненный цикл приложения."""
        setup_logging()
        if manage_db:
            await init_db(db)
        await log_info(f"Realtime хаб запущен, WebSocket: {settings.hub.WS_PATH}")

        yield

        if manage_db:
            await close_db(db)
        await log_info("Realtime хаб остановлен")

    app = FastAPI(
        title="Transit Realtime Hub",
        description="WebSocket хаб геолокации автобусов и оповещений об инцидентах.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.db = db
    app.state.registry = registry
    app.state.hub = hub
    app.state.incident_service = incident_service

    app.include_router(router)
    app.add_api_websocket_route(settings.hub.WS_PATH, websocket_endpoint)

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        create_app(),
        host=settings.deployment.REALTIME_HUB_HOST,
        port=settings.deployment.REALTIME_HUB_PORT,
    )
