"""
Storage-agnostic user repository contract.

Every driver implements the same operations with the same observable
results; dialect details (placeholder syntax, RETURNING support, key
generation) stay inside the concrete classes.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from crud.schemas.user import Averages, User, UserForm


class UserRepository(ABC):
    """
    Repository for user data access.

    All operations are coroutines. Cancelling the awaiting task (for
    example when the client disconnects) cancels the in-flight storage
    call. Storage failures raise RepositoryError; lookups of a missing ID
    raise UserNotFoundError.

    Attributes:
        driver: Name of the storage driver backing this repository
    """

    driver: str = ""

    @abstractmethod
    async def migrate(self) -> None:
        """Create the user table if it does not exist yet."""

    @abstractmethod
    async def create(self, user: User | UserForm) -> User:
        """
        Insert a new user.

        Any ID carried by the argument is ignored.

        Returns:
            The stored user with its assigned ID
        """

    @abstractmethod
    async def all(self) -> List[User]:
        """Return every user in storage order (empty list when none)."""

    @abstractmethod
    async def get_by_id(self, user_id: int) -> User:
        """
        Return the user with the given ID.

        Raises:
            UserNotFoundError: If no user has this ID
        """

    @abstractmethod
    async def update(self, user_id: int, patch: User | UserForm) -> User:
        """
        Overwrite name, age and height of an existing user.

        Returns:
            The updated user, keeping its ID

        Raises:
            UserNotFoundError: If no user has this ID; storage is unchanged
        """

    @abstractmethod
    async def delete(self, user_id: int) -> None:
        """Delete a user. Deleting a missing ID is not an error."""

    @abstractmethod
    async def avg_age(self) -> Optional[float]:
        """Mean age over all users, or None when there are none."""

    @abstractmethod
    async def avg_height(self) -> Optional[float]:
        """Mean height over all users, or None when there are none."""

    async def averages(self) -> Averages:
        """
        Mean age and height read together.

        Drivers that can read both in one statement override this so the
        pair always describes the same set of rows.
        """
        return Averages(age=await self.avg_age(), height=await self.avg_height())

    @abstractmethod
    async def search(self, term: str) -> List[User]:
        """
        Return users whose name contains term, ignoring case.

        Case is ignored by lowercasing both sides with Unicode lowercase
        mappings (str.lower); no full case folding, so "ß" only matches "ß".

        The term is matched literally: "%" and "_" are not wildcards. An
        empty term matches every user.
        """

    async def close(self) -> None:
        """Release connections held by the repository."""
