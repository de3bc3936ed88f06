from enum import Enum

from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from transdesk.core.base_models import (
    PaginatedResponse,
    TimestampedTable,
    TimestampResponseMixin,
)


class UserRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class UserStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


class UserBase(SQLModel):
    username: str = Field(min_length=1, max_length=50, unique=True, index=True)
    email: EmailStr = Field(max_length=100, unique=True, index=True)
    role: UserRole = Field(default=UserRole.MEMBER)
    status: UserStatus = Field(default=UserStatus.ACTIVE)


class User(UserBase, TimestampedTable, table=True):
    """A person who edits translations. Credentials live with the gateway."""

    __tablename__ = "users"


class UserCreate(SQLModel):
    username: str = Field(min_length=1, max_length=50)
    email: EmailStr = Field(max_length=100)
    role: UserRole = UserRole.MEMBER


class UserUpdate(SQLModel):
    email: EmailStr | None = Field(default=None, max_length=100)
    role: UserRole | None = None
    status: UserStatus | None = None


class UserPublic(UserBase, TimestampResponseMixin):
    id: int


UsersPublic = PaginatedResponse[UserPublic]
