# transit_hub/common/exceptions.py
"""
Исключения realtime-хаба.
"""

from __future__ import annotations


class HubError(Exception):
    """Базовое исключение хаба."""


class ProtocolError(HubError):
    """Некорректный входящий фрейм (не JSON, не объект, неизвестный тип)."""


class StorageError(HubError):
    """Ошибка внешнего хранилища (БД недоступна, запрос упал)."""

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.cause = cause
        message = f"Ошибка хранилища при операции '{operation}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
