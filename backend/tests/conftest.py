"""
ms_app - Test Configuration & Fixtures
======================================

Shared fixtures
- settings with startup delays disabled
- in-memory SQLite database standing in for PostgreSQL
- HTTP clients bound to connected and degraded applications
"""

import pytest
import pytest_asyncio
from typing import AsyncGenerator

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from ms_app.core.config import Settings
from ms_app.db.session import Database
from ms_app.main import create_app
from ms_app.models import Base


SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"
UNREACHABLE_SQLITE_URL = "sqlite+aiosqlite:////nonexistent-ms-app-dir/missing.db"


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no waiting and no descriptors from the environment"""
    return Settings(
        _env_file=None,
        DATABASE_URL=None,
        LOCAL_DATABASE_URL=None,
        STARTUP_DELAY_SECONDS=0,
        ROUND_BACKOFF_SECONDS=0,
        ATTEMPT_DELAY_SECONDS=0,
        MAX_STARTUP_ROUNDS=2,
        CONNECT_TIMEOUT_SECONDS=2,
        SCHEMA_TIMEOUT_SECONDS=2,
        QUERY_TIMEOUT_SECONDS=2,
        HEALTH_TIMEOUT_SECONDS=2
    )


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database engine with the users table created"""
    engine = create_async_engine(SQLITE_MEMORY_URL, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def database(test_engine) -> Database:
    """Connected database handle"""
    return Database(engine=test_engine, url=SQLITE_MEMORY_URL, route="direct", retry_count=1)


@pytest.fixture
def app(test_settings, database):
    return create_app(settings=test_settings, database=database)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Client for an application with a working database"""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture
async def degraded_client(test_settings) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Client for an application that never obtained a database"""
    app = create_app(settings=test_settings, database=Database(retry_count=test_settings.MAX_STARTUP_ROUNDS))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
