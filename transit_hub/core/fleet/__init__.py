# transit_hub/core/fleet/__init__.py
"""
Домен автопарка.
Модели автобусов и маршрутов, хранилище и начальные снимки для клиентов.
"""

from transit_hub.core.fleet.models import Bus, BusDetails, Location, Route, RouteStop, Stop
from transit_hub.core.fleet.repository import FleetRepository, FleetStorage
from transit_hub.core.fleet.snapshot import Snapshot, SnapshotProvider

__all__ = [
    "Bus",
    "BusDetails",
    "Location",
    "Route",
    "RouteStop",
    "Stop",
    "FleetRepository",
    "FleetStorage",
    "Snapshot",
    "SnapshotProvider",
]
