"""Pydantic schemas shared by the repositories and the controller."""

from crud.schemas.user import Averages, User, UserForm

__all__ = ["Averages", "User", "UserForm"]
