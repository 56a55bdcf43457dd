# transit_hub/services/realtime_hub/__init__.py
"""
Realtime хаб - WebSocket сервис отслеживания автобусов.

Обеспечивает:
- Идентификацию соединений по роли (passenger / driver / admin)
- Начальный снимок состояния после auth
- Рассылку геолокации автобусов пассажирам
- Оповещение администраторов о новых инцидентах
"""
