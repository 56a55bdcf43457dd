# transit_hub/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей."""
    PASSENGER = "passenger"
    DRIVER = "driver"
    ADMIN = "admin"


class ConnectionState(str, Enum):
    """Состояния WebSocket соединения."""
    UNAUTHENTICATED = "unauthenticated"
    IDENTIFIED = "identified"
    CLOSED = "closed"


class BusStatus(str, Enum):
    """Статусы автобуса."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class IncidentType(str, Enum):
    """Типы инцидентов."""
    DELAY = "delay"
    BREAKDOWN = "breakdown"
    ACCIDENT = "accident"
    OTHER = "other"


class IncidentStatus(str, Enum):
    """Статусы инцидента."""
    REPORTED = "reported"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class InboundType(str, Enum):
    """Типы входящих сообщений (клиент → сервер)."""
    AUTH = "auth"
    UPDATE_LOCATION = "updateLocation"


class OutboundType(str, Enum):
    """Типы исходящих сообщений (сервер → клиент)."""
    BUS_LOCATIONS = "busLocations"
    BUS_ROUTE = "busRoute"
    BUS_LOCATION_UPDATE = "busLocationUpdate"
    NEW_INCIDENT = "newIncident"
