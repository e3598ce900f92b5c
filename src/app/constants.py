"""Centralized constants for the API service."""

import enum
from dataclasses import dataclass

# --- Service identity ---


class ServiceName(enum.StrEnum):
    """Service names used for logging and identification."""

    API = "api"


# --- Application metadata ---

APP_TITLE = "Viking Scrobbles API"
APP_DESCRIPTION = "Listen import and export, listening statistics and live stats stream"
APP_VERSION = "0.1.0"


# --- Route configuration ---


@dataclass(frozen=True, slots=True)
class _Route:
    """A route prefix paired with its OpenAPI tag."""

    prefix: str
    tag: str


class Routes:
    """API route prefixes and tags: single source of truth."""

    LISTENS = _Route("/1", "listens")
    STATS = _Route("/1/stats", "stats")
    PUSH = _Route("/1", "push")
    HEALTH = "/healthz"


# --- Defaults ---

DEFAULT_STATS_TIMEZONE = "UTC"
DEFAULT_IMPORT_MAX_FILE_SIZE_MB = 100
DEFAULT_IMPORT_MAX_REPORTED_ERRORS = 50
DEFAULT_RECENT_LISTENS_COUNT = 25
MAX_RECENT_LISTENS_COUNT = 1000
DEFAULT_TOP_ENTITIES_COUNT = 10
UPLOAD_CHUNK_SIZE = 1024 * 1024
