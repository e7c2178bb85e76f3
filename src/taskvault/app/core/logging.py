"""JSON logging for TaskVault.

Every line carries the service, environment and request id. Identifiers of
the records a message is about (``user_id``, ``owner_id``, ``task_id``,
``attachment_id``, ``blob_key``) are lifted to the top level so log queries
can filter on them. Any other ``extra`` values are grouped under ``context``.
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

from .config import Settings
from .context import NO_REQUEST_ID, get_request_id

RESOURCE_FIELDS = ("user_id", "owner_id", "task_id", "attachment_id", "blob_key")

_STANDARD_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "request_id",
}


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class JsonLogFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def __init__(self, *, service: str, environment: str) -> None:
        super().__init__()
        self._service = service
        self._environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
            "environment": self._environment,
            "request_id": getattr(record, "request_id", NO_REQUEST_ID),
        }

        context: dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in _STANDARD_RECORD_ATTRS:
                continue
            if key in RESOURCE_FIELDS:
                payload[key] = _jsonable(value)
            else:
                context[key] = _jsonable(value)
        if context:
            payload["context"] = context

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class RequestContextFilter(logging.Filter):
    """Stamp records with the request id bound to the current task."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def configure_logging(settings: Settings) -> None:
    """Send the root and uvicorn loggers through one JSON handler on stdout."""

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    handled = {"handlers": ["stdout"], "level": level, "propagate": False}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonLogFormatter,
                    "service": settings.project_name,
                    "environment": settings.environment,
                }
            },
            "filters": {"request_context": {"()": RequestContextFilter}},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "json",
                    "filters": ["request_context"],
                }
            },
            "root": {"handlers": ["stdout"], "level": level},
            "loggers": {
                "uvicorn": dict(handled),
                "uvicorn.access": dict(handled),
            },
        }
    )


__all__ = ["JsonLogFormatter", "RESOURCE_FIELDS", "RequestContextFilter", "configure_logging"]
