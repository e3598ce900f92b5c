"""Single-line JSON rendering of log records."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else arrived through ``extra=``
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "asctime",
    "message",
    "request_id",
}


class JSONLogFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Fixed keys come first; values passed with ``extra=`` are appended under
    their own names, so an import summary logged as::

        logger.info("Import done", extra={"user_name": "alice", "import_stats": {...}})

    becomes::

        {"timestamp": "...", "level": "INFO", "service": "api", "logger": "...",
         "message": "Import done", "request_id": "...", "user_name": "alice", "import_stats": {...}}
    """

    def __init__(self, service: str = "api") -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            entry["request_id"] = request_id

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str, ensure_ascii=False)
