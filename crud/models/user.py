"""
User table model.

Both SQL drivers share this mapping; SQLAlchemy renders the dialect
specific DDL (INTEGER PRIMARY KEY AUTOINCREMENT on SQLite, SERIAL on
PostgreSQL) and quotes the table name where "user" is a reserved word.
"""

from sqlalchemy import Column, Float, Integer, String

from crud.models.base import Base, ModelMixin


class UserRecord(Base, ModelMixin):
    """
    Persisted user row.

    Attributes:
        id: Auto-assigned integer primary key
        name: Display name
        age: Age in years
        height: Height (unit is up to the client, usually meters)
    """

    __tablename__ = "user"
    # IDs are never reused after a delete, as with SERIAL on PostgreSQL
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Storage-assigned primary key"
    )

    name = Column(
        String,
        nullable=False,
        doc="User name, matched by search"
    )

    age = Column(
        Integer,
        nullable=False,
    )

    height = Column(
        Float,
        nullable=False,
    )
