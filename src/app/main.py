"""Viking Scrobbles API: listen import/export, statistics and the live stats stream."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import APP_DESCRIPTION, APP_TITLE, APP_VERSION, Routes, ServiceName
from app.dependencies import db_manager
from app.listens import router as listens_router
from app.logging import configure_logging
from app.middleware import RequestIDMiddleware
from app.push import router as push_router
from app.settings import get_settings
from app.stats import router as stats_router

logger = logging.getLogger(__name__)


class ScrobblesApp:
    """Builds the FastAPI application once at import time."""

    app: FastAPI

    def __init__(self) -> None:
        settings = get_settings()
        configure_logging(ServiceName.API, level=settings.LOG_LEVEL)
        self.app = FastAPI(title=APP_TITLE, description=APP_DESCRIPTION, version=APP_VERSION, lifespan=self._lifespan)

        # Added last runs first: request IDs must exist before CORS short-circuits preflights
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        self.app.add_middleware(RequestIDMiddleware)

        for router, route in (
            (listens_router, Routes.LISTENS),
            (stats_router, Routes.STATS),
            (push_router, Routes.PUSH),
        ):
            self.app.include_router(router, prefix=route.prefix, tags=[route.tag])
        self.app.add_api_route(Routes.HEALTH, self._health, methods=["GET"], tags=["health"])

    @staticmethod
    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncGenerator[None]:
        if db_manager.is_sqlite:
            logger.info("SQLite database, creating schema from models")
            await db_manager.create_schema()
        try:
            yield
        finally:
            await db_manager.dispose()

    @staticmethod
    async def _health(session: AsyncSession = Depends(db_manager.dependency)) -> JSONResponse:
        """Liveness plus a database round-trip; 503 when storage is unreachable."""
        try:
            await session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Health check: database unreachable", exc_info=True)
            return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})
        return JSONResponse(content={"status": "healthy", "version": APP_VERSION})


_application = ScrobblesApp()
app: FastAPI = _application.app
