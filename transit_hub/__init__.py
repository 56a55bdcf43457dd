# transit_hub/__init__.py
"""
Transit Hub - realtime-ядро системы отслеживания автобусов.

Принимает WebSocket соединения пассажиров, водителей и администраторов,
рассылает обновления геолокации автобусов и уведомления об инцидентах.
"""

__version__ = "1.0.0"
