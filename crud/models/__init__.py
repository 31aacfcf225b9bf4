"""
SQLAlchemy ORM models.

Import models from this module to ensure they're registered with the
declarative base before create_all() runs.
"""

from crud.models.base import Base
from crud.models.user import UserRecord

__all__ = [
    "Base",
    "UserRecord",
]
