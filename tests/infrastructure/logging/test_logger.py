"""Tests for the logging helpers."""

import logging
from unittest.mock import MagicMock

import pytest

from src.infrastructure.logging import logger as logger_module


@pytest.fixture
def log_root(tmp_path, monkeypatch):
    monkeypatch.setattr(logger_module, "get_project_root", lambda: tmp_path)
    monkeypatch.setattr(
        logger_module.LoggerBuilder,
        "_today_stamp",
        staticmethod(lambda: "20250405"),
    )
    monkeypatch.setattr(logger_module.AppLogger, "_instance", None)
    monkeypatch.setattr(logger_module.UsageLogger, "_instance", None)
    return tmp_path


def _file_paths(built: logging.Logger) -> list[str]:
    return [
        handler.baseFilename
        for handler in built.handlers
        if isinstance(handler, logging.FileHandler)
    ]


def test_default_builder_writes_dated_analysis_file(log_root):
    built = logger_module.LoggerBuilder().name("ledger_test.default").build()

    assert built.level == logging.INFO
    assert not built.propagate
    assert _file_paths(built) == [str(log_root / "logs" / "app" / "20250405_app.log")]
    assert len(built.handlers) == 1


def test_rebuilding_a_name_replaces_its_handlers(log_root):
    """A second builder for the same name must not stack file handlers."""
    first = (
        logger_module.LoggerBuilder()
        .name("ledger_test.rebuild")
        .prefix("first")
        .console(True)
        .build()
    )
    second = (
        logger_module.LoggerBuilder()
        .name("ledger_test.rebuild")
        .prefix("second")
        .level(logging.DEBUG)
        .build()
    )

    assert first is second
    assert second.level == logging.DEBUG
    assert _file_paths(second) == [
        str(log_root / "logs" / "app" / "20250405_second.log")
    ]
    assert len(second.handlers) == 1


def test_builder_uses_custom_factories(log_root):
    fmt = logging.Formatter("%(message)s")
    file_factory = MagicMock(return_value=logging.NullHandler())
    console_factory = MagicMock(return_value=logging.NullHandler())

    builder = (
        logger_module.LoggerBuilder()
        .name("ledger_test.factories")
        .subdir("reports")
        .console(True)
        .formatter(lambda: fmt)
        .file_handler(file_factory)
        .console_handler(console_factory)
    )
    built = builder.build()

    file_factory.assert_called_once_with(
        log_root / "logs" / "reports" / "20250405_app.log",
        fmt,
    )
    console_factory.assert_called_once_with(fmt)
    assert (log_root / "logs" / "reports").is_dir()
    assert builder.build() is built
    assert file_factory.call_count == 1


def test_usage_logger_writes_to_its_own_file_without_console(log_root):
    usage = logger_module.get_usage_logger()
    app = logger_module.get_app_logger()

    assert usage is logger_module.get_usage_logger()
    assert app is logger_module.get_app_logger()
    assert usage is not app
    assert _file_paths(usage.logger) == [
        str(log_root / "logs" / "usage" / "20250405_usage.log")
    ]
    assert not any(
        type(handler) is logging.StreamHandler for handler in usage.logger.handlers
    )
    assert _file_paths(app.logger) == [
        str(log_root / "logs" / "app" / "20250405_analysis.log")
    ]


def test_app_logger_delegates_each_level(log_root, monkeypatch):
    wrapped = MagicMock()
    monkeypatch.setattr(logger_module.LoggerBuilder, "build", lambda self: wrapped)

    app = logger_module.get_app_logger()
    app.debug("cache miss")
    app.info("Ledger analysis complete")
    app.warning("reconciliation mismatch")
    app.error("closed account")
    app.critical("stop")

    wrapped.debug.assert_called_once_with("cache miss")
    wrapped.info.assert_called_once_with("Ledger analysis complete")
    wrapped.warning.assert_called_once_with("reconciliation mismatch")
    wrapped.error.assert_called_once_with("closed account")
    wrapped.critical.assert_called_once_with("stop")
