"""Where listens are stored."""

from typing import Any

from pydantic_settings import BaseSettings
from sqlalchemy.engine import make_url
from sqlalchemy.pool import NullPool, StaticPool

from scrobbles.config.constants import DEFAULT_DATABASE_URL


class DatabaseSettings(BaseSettings):
    """Database connection settings loaded from environment variables.

    PostgreSQL through asyncpg is the deployment target. A SQLite file through
    aiosqlite (``sqlite+aiosqlite:///scrobbles.db``) serves single-user
    installs, where the schema is created on startup instead of migrated.
    """

    database_url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    use_null_pool: bool = True
    pool_pre_ping: bool = True

    model_config = {"env_prefix": ""}

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.database_url).get_backend_name() == "sqlite"

    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for ``create_async_engine``."""
        options: dict[str, Any] = {"echo": self.echo}
        if self.is_sqlite:
            # an in-memory database only exists on its one connection
            if make_url(self.database_url).database in (None, "", ":memory:"):
                options["poolclass"] = StaticPool
            return options
        if self.use_null_pool:
            options["poolclass"] = NullPool
        options["pool_pre_ping"] = self.pool_pre_ping
        return options
