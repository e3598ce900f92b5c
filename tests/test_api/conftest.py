"""Fixtures for API endpoint tests."""

from collections.abc import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.dependencies import db_manager, get_enricher
from app.main import app
from app.settings import AppSettings, get_settings


def _test_settings() -> AppSettings:
    return AppSettings(PUSH_DEBOUNCE_SECONDS=0, IMPORT_MAX_REPORTED_ERRORS=2)


def _override_session(engine: AsyncEngine):  # type: ignore[no-untyped-def]
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override() -> AsyncGenerator[AsyncSession]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return _override


@pytest.fixture
def override_deps(async_engine: AsyncEngine) -> Generator[None]:
    app.dependency_overrides[db_manager.dependency] = _override_session(async_engine)
    app.dependency_overrides[get_settings] = _test_settings
    app.dependency_overrides[get_enricher] = lambda: None
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_deps: None) -> TestClient:
    return TestClient(app)


@pytest.fixture
async def broken_client() -> AsyncGenerator[TestClient]:
    """Client whose database has no tables, so every storage call fails."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    app.dependency_overrides[db_manager.dependency] = _override_session(engine)
    app.dependency_overrides[get_settings] = _test_settings
    app.dependency_overrides[get_enricher] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()
    await engine.dispose()
