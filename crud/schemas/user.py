from typing import Optional

from pydantic import BaseModel, Field


# Range of the SQL INTEGER columns (PostgreSQL int4/SERIAL); SQLite's wider
# range is narrowed to this so every driver accepts the same values.
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class User(BaseModel):
    """
    A user as seen by the controller and templates.

    Attributes:
        id: Storage-assigned ID; 0 means "not yet persisted"
        name: Display name
        age: Age in years
        height: Height
    """
    id: int = Field(default=0, ge=0, le=INT32_MAX)
    name: str
    age: int = Field(ge=INT32_MIN, le=INT32_MAX)
    height: float

    class Config:
        from_attributes = True

    @property
    def is_persisted(self) -> bool:
        return self.id != 0


class UserForm(BaseModel):
    """
    Create/update request body.

    Missing fields take their zero value and values are only coerced, not
    validated beyond what the age column can store. Unknown fields,
    including an "id", are ignored so a client cannot choose or change a
    user's ID through the body.
    """
    name: str = ""
    age: int = Field(default=0, ge=INT32_MIN, le=INT32_MAX)
    height: float = 0.0

    class Config:
        extra = "ignore"

    def to_user(self, user_id: int = 0) -> User:
        return User(id=user_id, name=self.name, age=self.age, height=self.height)


class Averages(BaseModel):
    """
    Mean age and height over all persisted users.

    A field is None when there is no data to average (empty table).
    """
    age: Optional[float] = None
    height: Optional[float] = None

    @property
    def has_data(self) -> bool:
        return self.age is not None and self.height is not None
