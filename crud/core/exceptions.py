"""
Exception hierarchy for the CRUD application.

Configuration errors are fatal at startup. Everything else is raised
per request and rendered by the error fragment handler.
"""

from typing import Optional


class CrudError(Exception):
    """Base exception for the application"""
    pass


class ConfigurationError(CrudError):
    """Raised when the storage driver or connection string is unusable"""
    pass


class InvalidRequestError(CrudError):
    """Raised when a request carries a missing or malformed parameter"""
    pass


class RepositoryError(CrudError):
    """Raised when a storage operation fails"""
    pass


class UserNotFoundError(RepositoryError):
    """
    Raised when no user matches the requested ID.

    Attributes:
        user_id: The ID that was looked up
    """

    def __init__(self, user_id: int, message: Optional[str] = None):
        self.user_id = user_id
        super().__init__(message or f"user {user_id} not found")
