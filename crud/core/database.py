"""
Database engine construction.

Builds SQLAlchemy async engines for the two SQL drivers and normalizes the
connection strings users pass on the command line into SQLAlchemy URLs.
"""

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from crud.core.exceptions import ConfigurationError
from crud.core.logging_config import get_logger


logger = get_logger(__name__)

SQLITE_MEMORY_CONNS = ("", ":memory:")

# libpq DSN keys understood when a key=value connection string is given
_LIBPQ_URL_KEYS = {
    "user": "username",
    "password": "password",
    "host": "host",
    "port": "port",
    "dbname": "database",
}


def sqlite_url(conn: str) -> URL:
    """
    Turn a SQLite connection string into an aiosqlite URL.

    Accepts:
        - "" or ":memory:" for a private in-memory database
        - a plain file path ("data/users.db")
        - a "file:" URI ("file:users.db?mode=rwc")
        - a full SQLAlchemy URL ("sqlite:///users.db")

    Raises:
        ConfigurationError: If the string is a URL for another database
    """
    conn = conn.strip()

    if conn in SQLITE_MEMORY_CONNS:
        return make_url("sqlite+aiosqlite:///:memory:")

    if conn.startswith("file:"):
        separator = "&" if "?" in conn else "?"
        return make_url(f"sqlite+aiosqlite:///{conn}{separator}uri=true")

    if "://" in conn:
        try:
            url = make_url(conn)
        except ArgumentError as exc:
            raise ConfigurationError(f"invalid sqlite connection string: {exc}") from exc
        if url.get_backend_name() != "sqlite":
            raise ConfigurationError(
                f"sqlite3 driver cannot use a '{url.get_backend_name()}' connection string"
            )
        return url.set(drivername="sqlite+aiosqlite")

    return URL.create("sqlite+aiosqlite", database=conn)


def postgres_url(conn: str) -> URL:
    """
    Turn a PostgreSQL connection string into an asyncpg URL.

    Accepts "postgres://", "postgresql://" and "postgresql+<driver>://" URLs
    as well as libpq key=value strings ("host=db user=app dbname=users").
    A libpq "sslmode" option is translated to asyncpg's "ssl".

    Raises:
        ConfigurationError: If the string is empty or cannot be parsed
    """
    conn = conn.strip()
    if not conn:
        raise ConfigurationError("postgres driver requires a connection string")

    if "://" in conn:
        if conn.startswith("postgres://"):
            conn = "postgresql://" + conn[len("postgres://"):]
        try:
            url = make_url(conn)
        except ArgumentError as exc:
            raise ConfigurationError(f"invalid postgres connection string: {exc}") from exc
        if url.get_backend_name() != "postgresql":
            raise ConfigurationError(
                f"postgres driver cannot use a '{url.get_backend_name()}' connection string"
            )
        url = url.set(drivername="postgresql+asyncpg")
    else:
        url = _url_from_libpq_dsn(conn)

    if "sslmode" in url.query:
        query = dict(url.query)
        query["ssl"] = query.pop("sslmode")
        url = url.set(query=query)

    return url


def _url_from_libpq_dsn(dsn: str) -> URL:
    url_kwargs = {}
    query = {}
    for token in dsn.split():
        key, sep, value = token.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"invalid postgres connection option '{token}'")
        value = value.strip("'")
        if key in _LIBPQ_URL_KEYS:
            url_kwargs[_LIBPQ_URL_KEYS[key]] = value
        else:
            query[key] = value

    if "port" in url_kwargs:
        try:
            url_kwargs["port"] = int(url_kwargs["port"])
        except ValueError as exc:
            raise ConfigurationError(f"invalid postgres port '{url_kwargs['port']}'") from exc

    return URL.create("postgresql+asyncpg", query=query, **url_kwargs)


def is_memory_sqlite(url: URL) -> bool:
    database = url.database or ""
    return database in SQLITE_MEMORY_CONNS or url.query.get("mode") == "memory"


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def create_sqlite_engine(url: URL) -> AsyncEngine:
    """
    Create the async engine for the SQLite driver.

    In-memory databases live on a single shared connection (StaticPool),
    otherwise every pooled connection would see its own empty database.
    File databases get foreign key enforcement and WAL journaling. Every
    connection replaces SQLite's ASCII-only lower() with Python's
    str.lower so case-insensitive search handles non-ASCII names.
    """
    engine_kwargs = {
        "echo": False,
        "connect_args": {"check_same_thread": False},
    }

    in_memory = is_memory_sqlite(url)
    if in_memory:
        engine_kwargs["poolclass"] = StaticPool

    engine = create_async_engine(url, **engine_kwargs)

    @event.listens_for(engine.sync_engine, "connect")
    def _configure_connection(dbapi_connection, connection_record):  # noqa: ANN001
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)
        if in_memory:
            return
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    logger.info(
        "SQLite engine created",
        extra={"database": url.database or ":memory:", "in_memory": in_memory},
    )
    return engine


def create_postgres_engine(url: URL) -> AsyncEngine:
    """
    Create the async engine for the PostgreSQL driver.

    Uses the default connection pool with pre-ping so connections dropped
    by the server are replaced instead of failing the next request.
    """
    engine = create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,
    )
    logger.info(
        "PostgreSQL engine created",
        extra={"host": url.host, "database": url.database},
    )
    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
