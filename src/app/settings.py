"""Application settings loaded from environment variables."""

import functools
from datetime import UTC, tzinfo
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings

from app.constants import (
    DEFAULT_IMPORT_MAX_FILE_SIZE_MB,
    DEFAULT_IMPORT_MAX_REPORTED_ERRORS,
    DEFAULT_STATS_TIMEZONE,
)
from scrobbles.enrichment.client import DEFAULT_ENRICHMENT_TIMEOUT
from scrobbles.importing.constants import DEFAULT_DEDUP_TOLERANCE_SECONDS
from scrobbles.push import DEFAULT_DEBOUNCE_SECONDS


class AppSettings(BaseSettings):
    """API service configuration."""

    # Calendar-day reference for weekday, peak day, buckets and streaks (IANA name)
    STATS_TIMEZONE: str = DEFAULT_STATS_TIMEZONE

    # Imports
    DEDUP_TOLERANCE_SECONDS: int = DEFAULT_DEDUP_TOLERANCE_SECONDS
    IMPORT_MAX_FILE_SIZE_MB: int = DEFAULT_IMPORT_MAX_FILE_SIZE_MB
    IMPORT_MAX_REPORTED_ERRORS: int = DEFAULT_IMPORT_MAX_REPORTED_ERRORS

    # Enrichment service; empty disables enrichment
    ENRICHMENT_SERVICE_URL: str = ""
    ENRICHMENT_TIMEOUT_SECONDS: float = DEFAULT_ENRICHMENT_TIMEOUT

    # Live stats stream
    PUSH_DEBOUNCE_SECONDS: float = DEFAULT_DEBOUNCE_SECONDS

    # CORS
    CORS_ALLOWED_ORIGINS: str = "http://localhost:5173"  # comma-separated origins

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = {"env_prefix": ""}

    @property
    def stats_tz(self) -> tzinfo:
        if self.STATS_TIMEZONE.upper() == "UTC":
            return UTC
        return ZoneInfo(self.STATS_TIMEZONE)

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def import_max_file_size_bytes(self) -> int:
        return self.IMPORT_MAX_FILE_SIZE_MB * 1024 * 1024


@functools.lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached application settings singleton."""
    return AppSettings()
