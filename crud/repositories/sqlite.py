"""
SQLite user repository (file-based engine, aiosqlite driver).
"""

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from crud.core.database import create_sqlite_engine, sqlite_url
from crud.core.exceptions import UserNotFoundError
from crud.models.user import UserRecord
from crud.repositories.sql import SQLUserRepository
from crud.schemas.user import User, UserForm


class SQLiteUserRepository(SQLUserRepository):
    """
    Repository backed by a SQLite database file (or a private in-memory
    database when the connection string is empty or ":memory:").

    New IDs are read from the cursor's lastrowid; updates are checked by
    affected row count and the row is read back afterwards.
    """

    driver = "sqlite3"

    @classmethod
    def from_conn(cls, conn: str) -> "SQLiteUserRepository":
        return cls(create_sqlite_engine(sqlite_url(conn)))

    async def _insert(self, session: AsyncSession, user: User | UserForm) -> int:
        result = await session.execute(
            insert(UserRecord).values(name=user.name, age=user.age, height=user.height)
        )
        return result.inserted_primary_key[0]

    async def _update(self, session: AsyncSession, user_id: int, patch: User | UserForm) -> User:
        result = await session.execute(
            update(UserRecord)
            .where(UserRecord.id == user_id)
            .values(name=patch.name, age=patch.age, height=patch.height)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise UserNotFoundError(user_id)

        record = (
            await session.execute(select(UserRecord).where(UserRecord.id == user_id))
        ).scalar_one()
        return User.model_validate(record)
