"""
PostgreSQL user repository (client-server engine, asyncpg driver).
"""

from sqlalchemy import insert, update
from sqlalchemy.ext.asyncio import AsyncSession

from crud.core.database import create_postgres_engine, postgres_url
from crud.core.exceptions import UserNotFoundError
from crud.models.user import UserRecord
from crud.repositories.sql import SQLUserRepository
from crud.schemas.user import User, UserForm


class PostgresUserRepository(SQLUserRepository):
    """
    Repository backed by a PostgreSQL server.

    Inserts and updates use RETURNING, so an update that matched no row is
    detected by the absence of a returned row.
    """

    driver = "postgres"

    @classmethod
    def from_conn(cls, conn: str) -> "PostgresUserRepository":
        return cls(create_postgres_engine(postgres_url(conn)))

    async def _insert(self, session: AsyncSession, user: User | UserForm) -> int:
        result = await session.execute(
            insert(UserRecord)
            .values(name=user.name, age=user.age, height=user.height)
            .returning(UserRecord.id)
        )
        return result.scalar_one()

    async def _update(self, session: AsyncSession, user_id: int, patch: User | UserForm) -> User:
        result = await session.execute(
            update(UserRecord)
            .where(UserRecord.id == user_id)
            .values(name=patch.name, age=patch.age, height=patch.height)
            .returning(UserRecord.id, UserRecord.name, UserRecord.age, UserRecord.height)
            .execution_options(synchronize_session=False)
        )
        row = result.one_or_none()
        if row is None:
            raise UserNotFoundError(user_id)
        return User(**row._mapping)
