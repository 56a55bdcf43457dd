# transit_hub/config/__init__.py
"""
Модуль конфигурации.
Экспортирует настройки приложения.
"""

from transit_hub.config.loader import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
