"""
In-memory user repository.

Keeps users in a dict for the life of the process. Operations never await
between reading and writing, so each one is atomic on the event loop.
"""

import itertools
from typing import Dict, List, Optional

from crud.core.exceptions import UserNotFoundError
from crud.core.logging_config import get_logger
from crud.repositories.base import UserRepository
from crud.schemas.user import Averages, User, UserForm


logger = get_logger(__name__)


class MemoryUserRepository(UserRepository):
    """
    Dict-backed repository used by the "memory" driver and in tests.

    IDs come from a counter starting at 1 and are never reused, matching
    the auto-increment behaviour of the SQL drivers.
    """

    driver = "memory"

    def __init__(self) -> None:
        self._users: Dict[int, User] = {}
        self._ids = itertools.count(1)

    async def migrate(self) -> None:
        logger.debug("Memory repository needs no migration")

    async def create(self, user: User | UserForm) -> User:
        created = User(id=next(self._ids), name=user.name, age=user.age, height=user.height)
        self._users[created.id] = created
        logger.debug("User created", extra={"user_id": created.id, "driver": self.driver})
        return created.model_copy()

    async def all(self) -> List[User]:
        return [user.model_copy() for user in self._users.values()]

    async def get_by_id(self, user_id: int) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user.model_copy()

    async def update(self, user_id: int, patch: User | UserForm) -> User:
        if user_id not in self._users:
            raise UserNotFoundError(user_id)
        updated = User(id=user_id, name=patch.name, age=patch.age, height=patch.height)
        self._users[user_id] = updated
        logger.debug("User updated", extra={"user_id": user_id, "driver": self.driver})
        return updated.model_copy()

    async def delete(self, user_id: int) -> None:
        removed = self._users.pop(user_id, None)
        logger.debug(
            "User deleted",
            extra={"user_id": user_id, "existed": removed is not None, "driver": self.driver},
        )

    async def avg_age(self) -> Optional[float]:
        return self._mean([user.age for user in self._users.values()])

    async def avg_height(self) -> Optional[float]:
        return self._mean([user.height for user in self._users.values()])

    async def averages(self) -> Averages:
        users = list(self._users.values())
        return Averages(
            age=self._mean([user.age for user in users]),
            height=self._mean([user.height for user in users]),
        )

    async def search(self, term: str) -> List[User]:
        needle = term.lower()
        return [
            user.model_copy()
            for user in self._users.values()
            if needle in user.name.lower()
        ]

    @staticmethod
    def _mean(values: List[float]) -> Optional[float]:
        if not values:
            return None
        return sum(values) / len(values)
