#!/usr/bin/env python3
"""
Entrypoint для Realtime хаба.

Запуск:
    python entrypoints/entrypoint_realtime_hub.py

Хост и порт берутся из config/config.json (REALTIME_HUB_HOST / REALTIME_HUB_PORT).
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from transit_hub.config import settings


def main() -> None:
    """Запустить Realtime хаб."""
    uvicorn.run(
        "transit_hub.services.realtime_hub.app:create_app",
        factory=True,
        host=settings.deployment.REALTIME_HUB_HOST,
        port=settings.deployment.REALTIME_HUB_PORT,
        reload=settings.system.DEBUG,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
