"""JSON log lines for the storefront client.

Every record carries the correlation id of the current task so that the
refresh, replay and bootstrap events of one logical operation can be joined.
The same id is forwarded to the API as ``X-Request-ID``.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

CORRELATION_ID_CTX: ContextVar[str] = ContextVar("correlation_id", default="")

# Optional structured fields set by the dispatcher and the refresh coordinator.
REQUEST_FIELDS = ("method", "path", "status_code", "pending")


class JsonLogFormatter(logging.Formatter):
    """Render one record per line, lifting request fields passed via ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": CORRELATION_ID_CTX.get(),
        }

        for key in REQUEST_FIELDS:
            value = getattr(record, key, None)
            if value not in (None, ""):
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str = "INFO") -> None:
    """Route all client logs to stderr so CLI output on stdout stays pure JSON."""
    normalized_level = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(normalized_level)
    root_logger.addHandler(handler)


def set_correlation_id(correlation_id: str) -> None:
    """Bind the id forwarded as X-Request-ID by requests in this context."""
    CORRELATION_ID_CTX.set(correlation_id)


def get_correlation_id() -> str:
    """Return the bound correlation id, or an empty string."""
    return CORRELATION_ID_CTX.get()
