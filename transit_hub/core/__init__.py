# transit_hub/core/__init__.py
"""
Доменный слой: автопарк и инциденты.
Внешние коллабораторы хаба - хранилища и снимки состояния.
"""

from transit_hub.core.fleet import FleetRepository, FleetStorage, SnapshotProvider
from transit_hub.core.incidents import IncidentRepository, IncidentService, IncidentStorage

__all__ = [
    "FleetRepository",
    "FleetStorage",
    "SnapshotProvider",
    "IncidentRepository",
    "IncidentService",
    "IncidentStorage",
]
