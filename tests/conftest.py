"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- Repository fixtures for every storage driver
- An HTTP client bound to the ASGI application
"""

import os

import pytest


# Set test environment variables BEFORE any imports of the application
os.environ["DRIVER"] = "memory"
os.environ["CONN"] = ""
os.environ["MOUNT_PREFIX"] = "/view"
os.environ["JSON_LOGS"] = "false"
os.environ["REQUIRE_HX_REQUEST"] = "false"

# PostgreSQL runs the same suites when a scratch database is provided
TEST_POSTGRES_URL = os.getenv("TEST_POSTGRES_URL", "")

DRIVERS = ["memory", "sqlite3", "postgres"]


@pytest.fixture
def anyio_backend():
    """
    Configure anyio backend for async tests.

    Returns:
        str: Backend name ("asyncio")
    """
    return "asyncio"


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    from crud.core.config import Settings

    return Settings(_env_file=None)


@pytest.fixture(params=DRIVERS)
async def repository(request):
    """
    Provide a migrated, empty repository for each driver.

    SQLite uses a private in-memory database; PostgreSQL is skipped unless
    TEST_POSTGRES_URL is set, and its table is dropped afterwards.
    """
    from crud.models import Base, UserRecord
    from crud.repositories import create_repository

    driver = request.param
    if driver == "postgres" and not TEST_POSTGRES_URL:
        pytest.skip("TEST_POSTGRES_URL not set")

    conn = TEST_POSTGRES_URL if driver == "postgres" else ""
    repo = create_repository(driver, conn)
    await repo.migrate()

    yield repo

    if driver == "postgres":
        async with repo.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all, tables=[UserRecord.__table__])
    await repo.close()


@pytest.fixture
async def client(repository, settings):
    """
    Provide an HTTP client for the application.

    The ASGI transport does not run the lifespan, so the repository
    fixture has already migrated storage.
    """
    from httpx import ASGITransport, AsyncClient

    from crud.main import create_app

    app = create_app(repository, settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
