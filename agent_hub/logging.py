"""
Logging for the agent hub.

Console output is human readable and tagged with either the operator
request's correlation id or the agent connection id of the current task.
Errors are also written as JSON lines to LOG_FILE_PATH, and everything from
INFO up can be shipped to Loki when LOKI_ENABLED is set.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from typing import Any

from agent_hub.settings import app_settings

# Per-task fields attached to every log line (e.g. connection_id)
log_context: ContextVar[dict[str, Any] | None] = ContextVar(
    "log_context", default=None
)


def get_correlation_id() -> str:
    from agent_hub.middlewares.correlation_id import (
        get_correlation_id as _get_cid,
    )

    return _get_cid()


def set_log_context(**kwargs: Any) -> None:
    """
    Adds fields to the log context of the current task.

    Each agent connection runs in its own task, so a `connection_id` set
    here tags only that connection's log lines.
    """
    current = dict(log_context.get() or {})
    current.update(kwargs)
    log_context.set(current)


def get_log_context() -> dict[str, Any]:
    return log_context.get() or {}


def clear_log_context() -> None:
    log_context.set(None)


class StructuredJSONFormatter(logging.Formatter):
    """One JSON object per record, with request and connection context."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "environment": app_settings.ENVIRONMENT,
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_data["request_id"] = correlation_id
        log_data.update(get_log_context())

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Console formatter.

    The bracketed tag is the correlation id inside an operator request,
    `ws:<id>` inside an agent connection task, and `-` elsewhere. Records
    above INFO (and DEBUG) also show where they were logged from.
    """

    DATEFMT = "%Y-%m-%d %H:%M:%S"
    INFO_FMT = "%(asctime)s - [%(log_tag)s] %(levelname)s: %(message)s"
    DETAIL_FMT = "%(asctime)s - [%(log_tag)s] %(levelname)s: %(module)s.%(funcName)s:%(lineno)d - %(message)s"

    def __init__(self) -> None:
        super().__init__()
        self._info = logging.Formatter(self.INFO_FMT, datefmt=self.DATEFMT)
        self._detail = logging.Formatter(self.DETAIL_FMT, datefmt=self.DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        connection_id = get_log_context().get("connection_id")
        record.log_tag = get_correlation_id() or (
            f"ws:{connection_id}" if connection_id is not None else "-"
        )

        if record.levelno == logging.INFO:
            return self._info.format(record)
        return self._detail.format(record)


def setup_logging() -> logging.Logger:
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, app_settings.LOG_LEVEL.upper()))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(HumanReadableFormatter())
    logger.addHandler(console_handler)

    if app_settings.LOG_FILE_PATH:
        try:
            log_dir = os.path.dirname(app_settings.LOG_FILE_PATH)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(app_settings.LOG_FILE_PATH)
            file_handler.setLevel(logging.ERROR)
            file_handler.setFormatter(StructuredJSONFormatter())
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not create error log file: {e}")

    if app_settings.LOKI_ENABLED:
        try:
            from logging_loki import LokiHandler

            loki_handler = LokiHandler(
                url=f"{app_settings.LOKI_URL}/loki/api/v{app_settings.LOKI_VERSION}/push",
                tags={
                    "application": "agent-hub",
                    "environment": app_settings.ENVIRONMENT,
                },
                version=app_settings.LOKI_VERSION,
            )
            loki_handler.setLevel(logging.INFO)
            loki_handler.setFormatter(StructuredJSONFormatter())
            logger.addHandler(loki_handler)
        except Exception as e:
            logger.warning(f"Could not configure Loki handler: {e}")

    # Keep pytest output quiet
    if sys.argv[0].split("/")[-1] in ["pytest"]:
        logging.disable(logging.ERROR)

    return logger


logger = setup_logging()
