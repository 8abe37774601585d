"""Custom filters for uvicorn access logging."""

import logging

from agent_hub.settings import app_settings


class ExcludeMetricsFilter(logging.Filter):
    """
    Logging filter to exclude monitoring endpoint requests from access logs.

    Requests to paths like /metrics and /health will not appear in
    uvicorn's access logs. The excluded paths are configurable via the
    LOG_EXCLUDED_PATHS setting.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(
            path in message for path in app_settings.LOG_EXCLUDED_PATHS
        )
