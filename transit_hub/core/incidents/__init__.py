# transit_hub/core/incidents/__init__.py
"""
Домен инцидентов.
"""

from transit_hub.core.incidents.models import Incident, IncidentCreateDTO, IncidentDetails, Reporter
from transit_hub.core.incidents.repository import IncidentRepository, IncidentStorage
from transit_hub.core.incidents.service import IncidentService

__all__ = [
    "Incident",
    "IncidentCreateDTO",
    "IncidentDetails",
    "Reporter",
    "IncidentRepository",
    "IncidentStorage",
    "IncidentService",
]
