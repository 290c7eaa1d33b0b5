"""Custom filters for uvicorn access logging."""

import copy
import logging
from typing import Any

from uvicorn.config import LOGGING_CONFIG

from event_relay.settings import app_settings


class ExcludeMonitoringFilter(logging.Filter):
    """
    Logging filter to exclude monitoring endpoint requests from access logs.

    Health checks and Prometheus scraping would otherwise drown out the
    trigger requests in uvicorn's access log.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Determine if the log record should be logged.

        Args:
            record: The log record to evaluate.

        Returns:
            False if the request path is in excluded paths, True otherwise.
        """
        message = record.getMessage()
        # Access lines read like: 127.0.0.1:5000 - "GET /health HTTP/1.1" 200
        return not any(
            f" {path} " in message for path in app_settings.LOG_EXCLUDED_PATHS
        )


def build_log_config() -> dict[str, Any]:
    """
    Uvicorn's default logging config with the monitoring filter attached
    to the access log handler.

    Returns:
        dict[str, Any]: A ``logging.config.dictConfig`` mapping.
    """
    config = copy.deepcopy(LOGGING_CONFIG)
    config.setdefault("filters", {})["exclude_monitoring"] = {
        "()": "event_relay.uvicorn_filters.ExcludeMonitoringFilter"
    }
    config["handlers"]["access"].setdefault("filters", []).append(
        "exclude_monitoring"
    )
    return config
