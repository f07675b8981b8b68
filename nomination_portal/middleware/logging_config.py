"""
Logging setup for the portal.

Every record passes through ``RequestContextFilter``, which stamps the
current request id and authenticated user onto it, so a workflow log line
written deep in a service can be joined to its access-log line.

Output format comes from ``LOG_FORMAT`` (``json`` | ``readable``); when unset,
JSON is used outside debug/testing.  ``LOG_LEVEL`` sets the threshold.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# Attributes lifted from ``extra={...}`` into structured output, in this order.
CONTEXT_KEYS = ("request_id", "user_id")
REQUEST_KEYS = ("method", "path", "status", "duration_ms", "remote_addr")
WORKFLOW_KEYS = ("application_id", "actor_id", "action_type", "from_status", "to_status")

_QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine", "alembic.runtime.migration")


class RequestContextFilter(logging.Filter):
    """Attach ``request_id`` / ``user_id`` from ``flask.g`` when inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            if getattr(record, "request_id", None) is None:
                record.request_id = g.get("request_id")
            if getattr(record, "user_id", None) is None:
                record.user_id = g.get("jwt_user_id")
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "at": f"{record.module}:{record.lineno}",
        }
        for key in CONTEXT_KEYS + REQUEST_KEYS + WORKFLOW_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Single-line coloured output for a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            datetime.fromtimestamp(record.created).strftime("%H:%M:%S"),
            f"{self.LEVEL_COLORS.get(record.levelno, '')}{record.levelname:<8}{self.RESET}",
        ]
        request_id = getattr(record, "request_id", None)
        if request_id:
            parts.append(f"[{request_id}]")
        parts.append(f"{record.name}: {record.getMessage()}")

        to_status = getattr(record, "to_status", None)
        if to_status is not None:
            parts.append(
                f"({getattr(record, 'application_id', '?')}: "
                f"{getattr(record, 'from_status', None)} -> {to_status})"
            )
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            parts.append(f"[{duration:.0f}ms]")

        line = " ".join(parts)
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _choose_format(app) -> str:
    fmt = (app.config.get("LOG_FORMAT") or "").lower()
    if fmt in ("json", "readable"):
        return fmt
    quiet = app.config.get("DEBUG", False) or app.config.get("TESTING", False)
    return "readable" if quiet else "json"


def configure_logging(app):
    """Install one stderr handler on the root logger for ``app``."""
    fmt = _choose_format(app)
    default_level = "DEBUG" if app.config.get("DEBUG") else "INFO"
    level_name = (app.config.get("LOG_LEVEL") or os.getenv("LOG_LEVEL") or default_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ReadableFormatter())
    handler.addFilter(RequestContextFilter())
    handler.setLevel(level)

    root = logging.getLogger()
    # create_app runs once per test session and per CLI call; never stack handlers.
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not app.config.get("TESTING", False):
        app.logger.info("Logging configured: level=%s format=%s", level_name, fmt)
