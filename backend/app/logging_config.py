"""
Structured JSON logging configuration.

Every log line is one JSON object on stdout with a channel (http, db, auth),
the current request ID and any business context passed by the caller.
Credential keys (password, password_hash, ...) are redacted before output.
"""

import logging
import json
import os
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

# Set by the request middleware; read by the formatter for every entry
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CHANNELS = ["http", "db", "auth"]

# Keys whose values never reach the log output, at any nesting depth
REDACTED_KEYS = {"password", "password_hash", "hashed_password", "authorization"}
REDACTED = "[REDACTED]"


def redact(data):
    """Return a copy of ``data`` with credential values replaced by [REDACTED]."""
    if isinstance(data, dict):
        return {
            key: REDACTED if str(key).lower() in REDACTED_KEYS else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact(item) for item in data]
    return data


class StructuredJsonFormatter(logging.Formatter):
    """
    Renders a record as one JSON line:
    {timestamp, level, message, channel, context, extra}.

    ``context`` always starts with the current request ID. Credential keys
    in context or extra are redacted before serialisation.
    """

    def format(self, record: logging.LogRecord) -> str:
        channel = getattr(record, "channel", None)
        if not channel:
            channel = record.name.rsplit(".", 1)[-1] if "." in record.name else "app"
        context = {"request_id": request_id_var.get("")}
        context.update(getattr(record, "context", None) or {})

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": channel,
            "context": redact(context),
            "extra": redact(getattr(record, "extra_data", None) or {}),
        }
        return json.dumps(entry, default=str)


def setup_logging():
    """Send the root logger to stdout as JSON and set the channel levels."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    level = getattr(logging, LOG_LEVEL, logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        logging.getLogger(f"app.{channel}").setLevel(level)

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    """Return the logger for a channel (http, db, auth)."""
    return logging.getLogger(f"app.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None):
    """
    Emit a structured log entry.

    Args:
        logger: The channel logger to use
        level: Log level string (INFO, WARNING, ERROR, DEBUG)
        message: Human-readable log message
        context: Business context such as student_id or username
        extra_data: Metadata such as duration_ms or status_code
    """
    structured = {
        "channel": logger.name.rsplit(".", 1)[-1],
        "context": context or {},
        "extra_data": extra_data or {},
    }
    logger.log(getattr(logging, level.upper(), logging.INFO), message, extra=structured)


def generate_request_id() -> str:
    """New UUID4 string identifying one HTTP request in the logs."""
    return str(uuid.uuid4())
