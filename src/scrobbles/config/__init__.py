"""Configuration shared by the library, the API service and migrations."""

from scrobbles.config.constants import DEFAULT_DATABASE_URL
from scrobbles.config.database import DatabaseSettings

__all__ = ["DEFAULT_DATABASE_URL", "DatabaseSettings"]
