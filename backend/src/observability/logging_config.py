"""Logging setup shared by the API and the lifecycle service.

Every record gets the current request ID. In JSON mode each record is one
line on stdout; attributes passed through ``extra`` (user_id, document_id
and friends) become top-level keys so a document's history can be grepped
out of the log stream.
"""

import logging
import json
import sys
from datetime import datetime, timezone

from .request_id import NO_REQUEST_ID, get_request_id

# Extra attributes copied into the JSON line when present on a record
EXTRA_FIELDS = ("user_id", "document_id", "status_code", "duration_ms", "error_type")

PLAIN_FORMAT = '%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s'

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")


class RequestIDFilter(logging.Filter):
    """Stamp records with the request ID from the current context"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", NO_REQUEST_ID),
            "function": record.funcName,
            "message": record.getMessage(),
        }
        entry.update(self._extras(record))

        if record.exc_info:
            entry["error"] = str(record.exc_info[1])
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry)

    @staticmethod
    def _extras(record: logging.LogRecord) -> dict:
        extras = {}
        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is None:
                continue
            extras[name] = value if isinstance(value, (int, float)) else str(value)
        return extras


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Replace root handlers with a single stdout handler.

    ``level`` is a level name; unknown names fall back to INFO.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(RequestIDFilter())
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
