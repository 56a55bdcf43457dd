# transit_hub/services/__init__.py
"""
Сервисы приложения.

- realtime_hub: WebSocket хаб (геолокация автобусов, инциденты) + REST триггер инцидентов
"""

__all__: list[str] = []
