# transit_hub/infra/__init__.py
"""
Инфраструктурный слой: PostgreSQL.
"""

from transit_hub.infra.database import DatabaseManager, close_db, init_db

__all__ = [
    "DatabaseManager",
    "close_db",
    "init_db",
]
