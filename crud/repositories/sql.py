"""
Shared SQLAlchemy implementation of the user repository.

The SQLite and PostgreSQL repositories only differ in how they obtain the
ID of an inserted row and how they detect an update that matched nothing;
everything else lives here.
"""

from abc import abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from crud.core.database import create_session_maker
from crud.core.exceptions import RepositoryError, UserNotFoundError
from crud.core.logging_config import get_logger
from crud.models.base import Base
from crud.models.user import UserRecord
from crud.repositories.base import UserRepository
from crud.schemas.user import INT32_MAX, Averages, User, UserForm


logger = get_logger(__name__)


class SQLUserRepository(UserRepository):
    """
    User repository over an async SQLAlchemy engine.

    Each operation runs in its own session and transaction; the repository
    keeps no per-request state. SQLAlchemy errors are re-raised as
    RepositoryError so the controller can render them.

    Attributes:
        engine: Async engine shared for the life of the process
        session_maker: Factory for per-operation sessions
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_maker = create_session_maker(engine)

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """
        Open a session with a transaction that commits on success.

        Args:
            operation: Operation name used in error messages and logs
        """
        async with self.session_maker() as session:
            try:
                async with session.begin():
                    yield session
            except (SQLAlchemyError, OSError) as exc:
                logger.error(
                    f"User {operation} failed: {exc}",
                    extra={"driver": self.driver, "operation": operation},
                )
                raise RepositoryError(f"{operation} failed: {exc}") from exc

    async def migrate(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(
                    Base.metadata.create_all,
                    tables=[UserRecord.__table__],
                )
        except (SQLAlchemyError, OSError) as exc:
            raise RepositoryError(f"migrate failed: {exc}") from exc
        logger.info("User table ready", extra={"driver": self.driver})

    async def create(self, user: User | UserForm) -> User:
        async with self._transaction("create") as session:
            user_id = await self._insert(session, user)

        logger.debug("User created", extra={"user_id": user_id, "driver": self.driver})
        return User(id=user_id, name=user.name, age=user.age, height=user.height)

    async def all(self) -> List[User]:
        async with self._transaction("all") as session:
            result = await session.execute(select(UserRecord))
            return [User.model_validate(record) for record in result.scalars().all()]

    async def get_by_id(self, user_id: int) -> User:
        if not _storable(user_id):
            raise UserNotFoundError(user_id)
        async with self._transaction("get") as session:
            record = await session.get(UserRecord, user_id)
            if record is None:
                raise UserNotFoundError(user_id)
            return User.model_validate(record)

    async def update(self, user_id: int, patch: User | UserForm) -> User:
        if not _storable(user_id):
            raise UserNotFoundError(user_id)
        async with self._transaction("update") as session:
            updated = await self._update(session, user_id, patch)

        logger.debug("User updated", extra={"user_id": user_id, "driver": self.driver})
        return updated

    async def delete(self, user_id: int) -> None:
        if not _storable(user_id):
            return
        async with self._transaction("delete") as session:
            result = await session.execute(
                delete(UserRecord)
                .where(UserRecord.id == user_id)
                .execution_options(synchronize_session=False)
            )

        logger.debug(
            "User deleted",
            extra={"user_id": user_id, "existed": result.rowcount > 0, "driver": self.driver},
        )

    async def avg_age(self) -> Optional[float]:
        return await self._average(UserRecord.age, "avg_age")

    async def avg_height(self) -> Optional[float]:
        return await self._average(UserRecord.height, "avg_height")

    async def averages(self) -> Averages:
        stmt = select(func.avg(UserRecord.age), func.avg(UserRecord.height))
        async with self._transaction("averages") as session:
            age, height = (await session.execute(stmt)).one()

        return Averages(age=_as_float(age), height=_as_float(height))

    async def search(self, term: str) -> List[User]:
        stmt = select(UserRecord).where(
            UserRecord.name.icontains(term, autoescape=True)
        )
        async with self._transaction("search") as session:
            result = await session.execute(stmt)
            return [User.model_validate(record) for record in result.scalars().all()]

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed", extra={"driver": self.driver})

    async def _average(self, column, operation: str) -> Optional[float]:
        async with self._transaction(operation) as session:
            value = await session.scalar(select(func.avg(column)))

        return _as_float(value)

    @abstractmethod
    async def _insert(self, session: AsyncSession, user: User | UserForm) -> int:
        """Insert the row and return its assigned ID."""

    @abstractmethod
    async def _update(self, session: AsyncSession, user_id: int, patch: User | UserForm) -> User:
        """Update the row and return it, raising UserNotFoundError if missing."""


def _storable(user_id: int) -> bool:
    """True if the ID fits the id column; larger IDs cannot match a row."""
    return 0 <= user_id <= INT32_MAX


def _as_float(value) -> Optional[float]:
    # AVG over zero rows is NULL; PostgreSQL returns Decimal otherwise
    return None if value is None else float(value)
