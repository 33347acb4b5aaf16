"""Tests for diagnostics sinks and structured logging."""

import json
import logging

import pytest

from ledger.diagnostics import CollectingDiagnostics, LoggingDiagnostics, timed
from ledger.logging import JsonFormatter, get_logger


@pytest.fixture
def test_logger():
    logger = logging.getLogger("tests.diagnostics")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def app_logger():
    """The application root logger, reset around the test."""
    logger = logging.getLogger("aldersbach")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


class TestLoggingDiagnostics:
    """Events forwarded to a logger with context."""

    def test_levels(self, test_logger, caplog):
        diagnostics = LoggingDiagnostics(test_logger)
        with caplog.at_level(logging.DEBUG, logger="tests.diagnostics"):
            diagnostics.report_skipped_amount(1, "invalid quantity", "zwelf")
            diagnostics.report_skipped_record(2, "empty text")
            diagnostics.report_unknown_currency(3, "ducat")

        levels = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert levels == [
            (logging.DEBUG, "Amount skipped"),
            (logging.INFO, "Record skipped"),
            (logging.WARNING, "Unknown currency code"),
        ]
        assert caplog.records[2].context == {"record": 3, "code": "ducat"}

    def test_slow_operation_warns(self, test_logger, caplog):
        diagnostics = LoggingDiagnostics(test_logger, slow_threshold_ms=10)
        with caplog.at_level(logging.DEBUG, logger="tests.diagnostics"):
            diagnostics.report_duration("filter", 25.0, results=3)
            diagnostics.report_duration("filter", 2.0)

        assert [r.levelno for r in caplog.records] == [logging.WARNING, logging.DEBUG]
        assert caplog.records[0].getMessage() == "Slow filter"
        assert caplog.records[0].context["results"] == 3


    def test_default_logger_follows_configured_level(self, app_logger, capsys):
        get_logger("aldersbach", level="DEBUG")
        LoggingDiagnostics().report_skipped_amount(4, "invalid quantity", "zwelf")

        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert lines == [
            {
                "level": "DEBUG",
                "message": "Amount skipped",
                "logger": "aldersbach.diagnostics",
                "context": {"record": 4, "reason": "invalid quantity", "text": "zwelf"},
            }
        ]

    def test_default_logger_follows_configured_format(self, app_logger, capsys):
        get_logger("aldersbach", json_output=False, level="INFO")
        LoggingDiagnostics().report_skipped_amount(4, "invalid quantity", "zwelf")
        LoggingDiagnostics().report_skipped_record(6, "empty text")

        assert capsys.readouterr().out.splitlines() == ["INFO aldersbach.diagnostics: Record skipped"]

class TestTimed:
    """Duration reporting around a block."""

    def test_reports_once(self):
        diagnostics = CollectingDiagnostics()
        with timed(diagnostics, "render", section="charts") as timer:
            pass
        assert len(diagnostics.durations) == 1
        operation, duration, context = diagnostics.durations[0]
        assert operation == "render"
        assert duration == timer.duration_ms >= 0
        assert context == {"section": "charts"}

    def test_reports_on_error(self):
        diagnostics = CollectingDiagnostics()
        with pytest.raises(RuntimeError):
            with timed(diagnostics, "load"):
                raise RuntimeError("boom")
        assert [d[0] for d in diagnostics.durations] == ["load"]


class TestJsonLogging:
    """The JSON formatter and logger factory."""

    def test_formatter_includes_context(self):
        record = logging.LogRecord("aldersbach", logging.INFO, __file__, 1, "Data loaded", None, None)
        record.context = {"transactions": 7}
        data = json.loads(JsonFormatter().format(record))
        assert data == {
            "level": "INFO",
            "message": "Data loaded",
            "logger": "aldersbach",
            "context": {"transactions": 7},
        }

    def test_formatter_without_context(self):
        record = logging.LogRecord("aldersbach", logging.WARNING, __file__, 1, "Slow %s", ("filter",), None)
        data = json.loads(JsonFormatter().format(record))
        assert data["message"] == "Slow filter"
        assert "context" not in data

    def test_get_logger_is_idempotent(self):
        first = get_logger("tests.factory", level="debug")
        second = get_logger("tests.factory")
        assert first is second
        assert len(first.handlers) == 1
        assert first.level == logging.DEBUG
        assert first.propagate is False
