# tests/common/test_logger.py
"""
Unit тесты для модуля логирования (transit_hub/common/logger.py).
"""

import json
import logging
import sys
from unittest.mock import MagicMock, patch

import pytest

from transit_hub.common import logger as logger_module
from transit_hub.common.constants import TypeMsg
from transit_hub.common.logger import (
    ColoredFormatter,
    JsonFormatter,
    _get_caller_info,
    _loggers,
    get_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
    setup_logging,
)


def make_record(level: int = logging.INFO, msg: str = "Test message", exc_info=None) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    record.module = "test_module"
    record.funcName = "test_function"
    return record


class TestJsonFormatter:
    """Тесты для JsonFormatter."""

    def test_format_basic_record(self) -> None:
        result = json.loads(JsonFormatter().format(make_record()))

        assert result["level"] == "INFO"
        assert result["message"] == "Test message"
        assert result["module"] == "test_module"
        assert result["function"] == "test_function"
        assert result["line"] == 10
        assert result["timestamp"].endswith("Z")

    def test_format_with_extra_data(self) -> None:
        record = make_record(logging.WARNING)
        record.extra_data = {"connection_id": "abc", "role": "driver"}

        result = json.loads(JsonFormatter().format(record))

        assert result["extra"] == {"connection_id": "abc", "role": "driver"}

    def test_format_with_exception(self) -> None:
        try:
            raise ValueError("Test exception")
        except ValueError:
            exc_info = sys.exc_info()

        result = json.loads(JsonFormatter().format(make_record(logging.ERROR, exc_info=exc_info)))

        assert "ValueError" in result["exception"]
        assert "Test exception" in result["exception"]

    def test_non_ascii_is_kept(self) -> None:
        result = JsonFormatter().format(make_record(msg="Автобус A-42"))
        assert "Автобус A-42" in result


class TestColoredFormatter:
    """Тесты для ColoredFormatter."""

    def test_format_basic_record(self) -> None:
        result = ColoredFormatter().format(make_record())

        assert "INFO" in result
        assert "Test message" in result
        assert "\033[" in result

    def test_format_with_caller_info(self) -> None:
        record = make_record(logging.DEBUG)
        record.extra_data = {
            "caller_function": "handle_auth",
            "caller_module": "transit_hub.services.realtime_hub.service",
            "caller_file": "service.py",
            "caller_line": 42,
        }

        result = ColoredFormatter().format(record)

        assert "handle_auth()" in result
        assert "service.py:42" in result


class TestGetLogger:
    """Тесты для get_logger."""

    def test_logger_is_cached(self) -> None:
        first = get_logger("transit_hub.test_cache")
        second = get_logger("transit_hub.test_cache")

        assert first is second
        assert len(first.handlers) == 1
        assert "transit_hub.test_cache" in _loggers

    def test_logger_does_not_propagate(self) -> None:
        assert get_logger("transit_hub.test_propagate").propagate is False

    def test_file_handlers(self, tmp_path) -> None:
        conf = {
            "level": "INFO",
            "format": "json",
            "to_file": True,
            "file_path": str(tmp_path / "logs" / "hub.log"),
            "max_bytes": 1024,
            "backup_count": 1,
        }
        with patch.object(logger_module, "_read_logging_settings", return_value=conf), \
                patch.object(logger_module, "_FILE_HANDLER", None), \
                patch.object(logger_module, "_ERROR_HANDLER", None):
            log = get_logger("transit_hub.test_files")
            try:
                assert len(log.handlers) == 3
                assert (tmp_path / "logs").is_dir()
                assert log.handlers[2].level == logging.ERROR
            finally:
                for handler in log.handlers[1:]:
                    handler.close()
                log.handlers.clear()
                _loggers.pop("transit_hub.test_files", None)


def test_setup_logging_is_idempotent() -> None:
    with patch.object(logger_module, "_LOGGING_INITIALIZED", False), \
            patch.object(logger_module, "get_logger") as mock_get_logger:
        setup_logging()
        setup_logging()

    mock_get_logger.assert_called_once_with(logger_module.DEFAULT_LOGGER_NAME)


def test_caller_info_points_to_caller() -> None:
    info = _get_caller_info()

    assert info["caller_function"] == "test_caller_info_points_to_caller"
    assert info["caller_file"] == "test_logger.py"


class TestAsyncHelpers:
    """Тесты асинхронных функций log_*."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "type_msg, method",
        [
            (TypeMsg.DEBUG, "debug"),
            (TypeMsg.INFO, "info"),
            (TypeMsg.WARNING, "warning"),
            (TypeMsg.ERROR, "error"),
            (TypeMsg.CRITICAL, "critical"),
        ],
    )
    async def test_log_info_dispatches_by_type(self, type_msg: TypeMsg, method: str) -> None:
        mock_logger = MagicMock()
        with patch.object(logger_module, "get_logger", return_value=mock_logger):
            await log_info("msg", type_msg=type_msg, extra={"bus_id": "42"})

        call = getattr(mock_logger, method).call_args
        assert call.args == ("msg",)
        assert call.kwargs["extra"]["extra_data"]["bus_id"] == "42"

    @pytest.mark.asyncio
    async def test_wrappers_report_real_caller(self) -> None:
        """log_debug/log_warning не подменяют место вызова собой."""
        mock_logger = MagicMock()
        with patch.object(logger_module, "get_logger", return_value=mock_logger):
            await log_debug("d")
            await log_warning("w")

        for method in (mock_logger.debug, mock_logger.warning):
            extra_data = method.call_args.kwargs["extra"]["extra_data"]
            assert extra_data["caller_function"] == "test_wrappers_report_real_caller"

    @pytest.mark.asyncio
    async def test_log_error_with_traceback(self) -> None:
        mock_logger = MagicMock()
        with patch.object(logger_module, "get_logger", return_value=mock_logger):
            await log_error("boom", exc_info=True)

        assert mock_logger.error.call_args.kwargs["exc_info"] is True
