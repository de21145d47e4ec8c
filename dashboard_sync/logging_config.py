import json
import logging
import os
from datetime import datetime, timezone
from logging.config import dictConfig
from typing import Any, Dict, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Attributes passed through ``extra=`` that the JSON formatter copies verbatim.
CONTEXT_FIELDS = ("resource", "user_id", "token", "status_code")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's own creation time."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: Optional[str] = None) -> None:
    """Send logs to stderr; stdout is reserved for CLI output."""
    resolved = (level or os.getenv("DASHBOARD_SYNC_LOG_LEVEL", "INFO")).upper()

    if os.getenv("DASHBOARD_SYNC_LOG_JSON", "0") == "1":
        formatter: Dict[str, Any] = {"()": JSONFormatter}
    else:
        formatter = {"format": DEFAULT_LOG_FORMAT}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"sync": formatter},
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "sync",
                },
            },
            "root": {"handlers": ["stderr"], "level": resolved},
        }
    )

    http_level = logging.DEBUG if os.getenv("DASHBOARD_SYNC_DEBUG_HTTP", "0") == "1" else logging.WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(http_level)
