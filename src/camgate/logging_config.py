"""Logging setup for camgate.

Request records carry their context as extras (see ``REQUEST_FIELDS``)
rather than in the message. The JSON formatter emits them as keys; the text
formatter lays them out as an access-log style line::

    2024-05-01 12:00:00,000 INFO camgate.server: 10.0.0.1 GET /2024/05/01 completed status=200 duration_ms=3.1 user=alex
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Request context, in the order it is rendered.
REQUEST_FIELDS = ("remote", "method", "path", "status", "duration_ms", "user")

# Fields the text format puts before the message, bare.
_REQUEST_PREFIX = ("remote", "method", "path")

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _request_context(record: logging.LogRecord) -> dict:
    context = {}
    for key in REQUEST_FIELDS:
        val = getattr(record, key, None)
        if val is not None:
            context[key] = val
    return context


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Fields: timestamp, level, logger, message, plus any request context.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(_request_context(record))
        return json.dumps(entry, default=str)


class RequestTextFormatter(logging.Formatter):
    """Human-readable lines with request context folded in.

    ``remote method path`` goes in front of the message and the remaining
    fields follow as ``key=value``. Records without request context are
    formatted as plain text.
    """

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def formatMessage(self, record: logging.LogRecord) -> str:
        context = _request_context(record)
        if not context:
            return super().formatMessage(record)

        parts = [str(context.pop(key)) for key in _REQUEST_PREFIX if key in context]
        parts.append(record.message)
        parts.extend(f"{key}={val}" for key, val in context.items())

        original = record.message
        record.message = " ".join(parts)
        try:
            return super().formatMessage(record)
        finally:
            record.message = original


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Configure root logging with the specified level and format.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: Format type, 'text' for human-readable or 'json' for structured.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter() if fmt == "json" else RequestTextFormatter())
    root.addHandler(handler)
