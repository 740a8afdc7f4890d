from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from qrorder.api.middleware.request_id import get_request_id
from qrorder.infrastructure.observability.otel import current_trace_ids

_LOGGING_CONFIGURED = False

# Structured fields callers may pass through ``extra=``.
_EXTRA_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "restaurant_id",
    "order_id",
    "table_id",
    "from_status",
    "to_status",
    "error_code",
    "channel",
    "endpoint",
    "failed_checks",
)

# The access middleware already logs every request.
_QUIET_LOGGERS = ("uvicorn.access",)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, stamped with request and trace ids."""

    def __init__(self, service: str, environment: str) -> None:
        super().__init__()
        self._service = service
        self._environment = environment

    def format(self, record: logging.LogRecord) -> str:
        trace_id, span_id = current_trace_ids()
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
            "env": self._environment,
            "request_id": get_request_id(),
            "trace_id": trace_id,
            "span_id": span_id,
        }

        for key in _EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging() -> None:
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JsonFormatter(
            service=os.getenv("OTEL_SERVICE_NAME", "qrorder-backend"),
            environment=os.getenv("APP_ENV", "dev").lower(),
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True
