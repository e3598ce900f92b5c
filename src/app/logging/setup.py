"""Structured logging configuration for the API service."""

import logging
import sys
from contextvars import ContextVar

from app.constants import ServiceName
from app.logging.formatter import JSONLogFormatter

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIDFilter(logging.Filter):
    """Copy the current request ID (set by RequestIDMiddleware) onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


def configure_logging(service: ServiceName = ServiceName.API, level: str = "INFO") -> None:
    """Set up structured JSON logging on the root logger."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONLogFormatter(service=service))
    handler.addFilter(RequestIDFilter())
    root.addHandler(handler)
