"""
Tests for application startup, shutdown and the Server wrapper.
"""

import pytest

from crud.core.config import Settings
from crud.core.exceptions import ConfigurationError, RepositoryError
from crud.main import Server, create_app, lifespan
from crud.repositories import MemoryUserRepository, SQLiteUserRepository


class FailingMigrationRepository(MemoryUserRepository):
    async def migrate(self) -> None:
        raise RepositoryError("migrate failed: database is locked")


class RecordingRepository(MemoryUserRepository):
    def __init__(self):
        super().__init__()
        self.migrated = False
        self.closed = False

    async def migrate(self) -> None:
        self.migrated = True

    async def close(self) -> None:
        self.closed = True


class TestLifespan:
    """Tests for the application lifespan."""

    @pytest.mark.anyio
    async def test_migrates_on_startup_and_closes_on_shutdown(self):
        # Arrange
        repository = RecordingRepository()
        app = create_app(repository, Settings(_env_file=None))

        # Act
        async with lifespan(app):
            migrated_during = repository.migrated
            closed_during = repository.closed

        # Assert
        assert migrated_during is True
        assert closed_during is False
        assert repository.closed is True

    @pytest.mark.anyio
    async def test_migration_failure_aborts_startup(self):
        """
        Test that a failing migration stops the application.

        Arrange: Repository whose migrate() fails
        Act: Enter the lifespan
        Assert: The error propagates
        """
        app = create_app(FailingMigrationRepository(), Settings(_env_file=None))

        with pytest.raises(RepositoryError):
            async with lifespan(app):
                pass

    @pytest.mark.anyio
    async def test_sqlite_table_created_on_startup(self):
        repository = SQLiteUserRepository.from_conn(":memory:")
        app = create_app(repository, Settings(_env_file=None, driver="sqlite3"))

        async with lifespan(app):
            assert await repository.all() == []


class TestServer:
    """Tests for the Server wrapper."""

    @pytest.mark.anyio
    async def test_builds_repository_from_settings(self):
        server = Server(Settings(_env_file=None, driver="sqlite", conn=":memory:"))
        try:
            assert isinstance(server.repository, SQLiteUserRepository)
            assert server.app.state.repository is server.repository
        finally:
            await server.repository.close()

    def test_unsupported_driver(self):
        with pytest.raises(ConfigurationError):
            Server(Settings(_env_file=None, driver="mongodb"))

    def test_run_starts_uvicorn(self, monkeypatch):
        # Arrange
        calls = {}

        def fake_run(app, **kwargs):
            calls["app"] = app
            calls.update(kwargs)

        monkeypatch.setattr("crud.main.uvicorn.run", fake_run)
        server = Server(Settings(_env_file=None, port=4000, host="127.0.0.1"))

        # Act
        server.run()

        # Assert
        assert calls["app"] is server.app
        assert calls["host"] == "127.0.0.1"
        assert calls["port"] == 4000
