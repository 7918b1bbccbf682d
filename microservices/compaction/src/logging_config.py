"""
Logging configuration for the compaction service.

``LOG_FORMAT=json`` emits one JSON object per line for log shippers;
anything else gives the human-readable console format.  Call
:func:`configure_logging` once, before the first log call.

    >>> from microservices.compaction.src.logging_config import configure_logging
    >>> configure_logging()          # reads LOG_FORMAT and LOG_LEVEL from env
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

_SERVICE_NAME = "compaction"


class _JSONFormatter(logging.Formatter):
    """Emit each log record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "service": _SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def configure_logging() -> None:
    """Set up the root logger from the environment.

    Environment variables
    ---------------------
    LOG_FORMAT : str
        ``"json"`` for structured output, anything else for plain text.
    LOG_LEVEL : str
        Standard Python log level name (default: ``"INFO"``).
    """
    log_format = os.environ.get("LOG_FORMAT", "text").lower()
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if log_format == "json":
        handler.setFormatter(_JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
            )
        )

    root.addHandler(handler)

    # py4j logs every gateway command at INFO
    for noisy in ("py4j", "py4j.clientserver", "py4j.java_gateway"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
