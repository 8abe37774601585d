"""Tests for structured logging functionality."""

import json
import logging

from agent_hub.logging import (
    HumanReadableFormatter,
    StructuredJSONFormatter,
    clear_log_context,
    get_log_context,
    set_log_context,
)
from agent_hub.uvicorn_filters import ExcludeMetricsFilter


def _record(msg: str = "Client registered", level: int = logging.INFO):
    return logging.LogRecord(
        name="agent_hub",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestLogContext:
    """Test log context management."""

    def test_set_log_context_adds_fields(self):
        clear_log_context()
        set_log_context(connection_id=3)
        set_log_context(username="Bob")

        assert get_log_context() == {"connection_id": 3, "username": "Bob"}

        clear_log_context()

    def test_clear_log_context_removes_fields(self):
        set_log_context(connection_id=3)
        clear_log_context()

        assert get_log_context() == {}


class TestStructuredJSONFormatter:
    """Test JSON formatter output."""

    def test_format_includes_context(self):
        clear_log_context()
        set_log_context(connection_id=9)

        output = json.loads(StructuredJSONFormatter().format(_record()))

        assert output["message"] == "Client registered"
        assert output["level"] == "INFO"
        assert output["connection_id"] == 9
        assert "environment" in output

        clear_log_context()


class TestHumanReadableFormatter:
    """Test console formatter output."""

    def test_connection_id_shown_without_request(self):
        clear_log_context()
        set_log_context(connection_id=4)

        output = HumanReadableFormatter().format(_record())

        assert "[ws:4]" in output
        assert "Client registered" in output

        clear_log_context()

    def test_placeholder_without_context(self):
        clear_log_context()

        output = HumanReadableFormatter().format(_record())

        assert "[-]" in output


class TestExcludeMetricsFilter:
    """Test uvicorn access log filtering."""

    def test_monitoring_paths_are_dropped(self):
        log_filter = ExcludeMetricsFilter()

        assert (
            log_filter.filter(_record('"GET /metrics HTTP/1.1" 200')) is False
        )
        assert (
            log_filter.filter(_record('"GET /health HTTP/1.1" 200')) is False
        )

    def test_operator_paths_are_kept(self):
        log_filter = ExcludeMetricsFilter()

        assert (
            log_filter.filter(_record('"GET /api/clients HTTP/1.1" 200'))
            is True
        )
