"""
Logging setup for the helpdesk service.

Records carry the request correlation id (see api.middleware.correlation) and a
fixed set of ticket-related extras. Log files are always JSON lines; the console
can switch to a readable one-line format for local development via
``LOG_FORMAT=text``.
"""
import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from ..config.settings import settings


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Attributes passed through ``extra=`` that end up in the output
EXTRA_FIELDS = (
    "ticket_id", "department_id", "actor_id", "action", "status",
    "field_name", "fields", "error_code", "attachment_id", "comment_id",
)

QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "openai": logging.WARNING,
    "pymongo": logging.WARNING,
}


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    extras = {}
    correlation_id = correlation_id_var.get()
    if correlation_id:
        extras["correlation_id"] = correlation_id
    for field in EXTRA_FIELDS:
        if hasattr(record, field):
            extras[field] = getattr(record, field)
    return extras


class JsonFormatter(logging.Formatter):
    """One JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_record_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger: message [key=value ...]``"""

    def __init__(self):
        super().__init__(fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _record_extras(record)
        if extras:
            line += " [" + " ".join(f"{k}={v}" for k, v in extras.items()) + "]"
        return line


def _rotating_handler(filename: str, level: int = logging.NOTSET) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        os.path.join(settings.logs_path, filename),
        maxBytes=settings.log_max_mb * 1024 * 1024,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def setup_logging() -> None:
    """Configure the root logger: console plus helpdesk.log and errors.log"""
    os.makedirs(settings.logs_path, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(TextFormatter() if settings.log_format.lower() == "text" else JsonFormatter())
    root_logger.addHandler(console)

    root_logger.addHandler(_rotating_handler("helpdesk.log"))
    root_logger.addHandler(_rotating_handler("errors.log", logging.ERROR))

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()
