from transdesk.users.crud import (
    create_user,
    get_user,
    get_user_by_username_or_email,
    get_users,
    update_user,
)
from transdesk.users.models import (
    User,
    UserBase,
    UserCreate,
    UserPublic,
    UserRole,
    UsersPublic,
    UserStatus,
    UserUpdate,
)
from transdesk.users.service import CachedUserService, UserOperations, UserService

__all__ = [
    # Models
    "User",
    "UserBase",
    "UserCreate",
    "UserPublic",
    "UserRole",
    "UserStatus",
    "UserUpdate",
    "UsersPublic",
    # CRUD
    "create_user",
    "get_user",
    "get_user_by_username_or_email",
    "get_users",
    "update_user",
    # Services
    "CachedUserService",
    "UserOperations",
    "UserService",
]
