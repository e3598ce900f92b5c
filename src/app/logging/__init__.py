"""Structured logging: JSON formatter, request-id propagation and setup."""

from app.logging.formatter import JSONLogFormatter
from app.logging.setup import RequestIDFilter, configure_logging, request_id_var

__all__ = ["JSONLogFormatter", "RequestIDFilter", "configure_logging", "request_id_var"]
