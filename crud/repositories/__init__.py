"""
Repository layer for data access.

Provides the UserRepository contract, its three drivers and the factory
that picks one from configuration.
"""

from sqlalchemy.exc import ArgumentError

from crud.core.exceptions import ConfigurationError
from crud.core.logging_config import get_logger
from crud.repositories.base import UserRepository
from crud.repositories.memory import MemoryUserRepository
from crud.repositories.postgres import PostgresUserRepository
from crud.repositories.sqlite import SQLiteUserRepository


logger = get_logger(__name__)

# Accepted driver names (lower case) -> canonical driver name
DRIVER_ALIASES = {
    "memory": "memory",
    "sqlite3": "sqlite3",
    "sqlite": "sqlite3",
    "postgres": "postgres",
    "postgresql": "postgres",
}

SUPPORTED_DRIVERS = ("memory", "sqlite3", "postgres")


def create_repository(driver: str, conn: str = "") -> UserRepository:
    """
    Build the repository for a driver name.

    The repository is not migrated here; the server runs migrate() once at
    startup.

    Args:
        driver: One of memory, sqlite3 (sqlite) or postgres (postgresql)
        conn: Connection string, ignored by the memory driver

    Returns:
        A repository ready to be migrated

    Raises:
        ConfigurationError: If the driver is unsupported or the connection
            string cannot be used
    """
    name = DRIVER_ALIASES.get(driver.strip().lower())
    if name is None:
        raise ConfigurationError(
            f"driver '{driver}' not supported (choose from: {', '.join(SUPPORTED_DRIVERS)})"
        )

    if name == "memory":
        if conn:
            logger.warning("Connection string ignored by the memory driver")
        repository: UserRepository = MemoryUserRepository()
    else:
        repository_class = SQLiteUserRepository if name == "sqlite3" else PostgresUserRepository
        try:
            repository = repository_class.from_conn(conn)
        except ArgumentError as exc:
            raise ConfigurationError(f"cannot open {name} connection: {exc}") from exc

    logger.info("Repository created", extra={"driver": name})
    return repository


__all__ = [
    "DRIVER_ALIASES",
    "SUPPORTED_DRIVERS",
    "MemoryUserRepository",
    "PostgresUserRepository",
    "SQLiteUserRepository",
    "UserRepository",
    "create_repository",
]
