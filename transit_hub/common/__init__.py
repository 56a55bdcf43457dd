# transit_hub/common/__init__.py
"""
Общие утилиты, константы и логгер.
"""

from transit_hub.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from transit_hub.common.constants import TypeMsg, UserRole

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
    "UserRole",
]
