from typing import Protocol

from sqlmodel import Session

from transdesk.core.cache import (
    USER_PREFIX,
    USERS_PREFIX,
    ReadThroughCache,
    dump_model,
    dump_page,
    listing_key,
    model_loader,
    page_is_empty,
    page_loader,
)
from transdesk.core.db import clamp_page
from transdesk.core.exceptions import ConflictError, ResourceNotFoundError
from transdesk.core.logging import get_logger
from transdesk.users.crud import (
    create_user,
    get_user,
    get_user_by_username_or_email,
    get_users,
    update_user,
)
from transdesk.users.models import User, UserCreate, UserUpdate

logger = get_logger(__name__)


class UserOperations(Protocol):
    def create(self, user_in: UserCreate) -> User: ...

    def get_by_id(self, user_id: int) -> User: ...

    def get_all(
        self, limit: int, offset: int, keyword: str = ""
    ) -> tuple[list[User], int]: ...

    def update(self, user_id: int, user_in: UserUpdate) -> User: ...


class UserService:
    def __init__(self, session: Session):
        self.session = session

    def create(self, user_in: UserCreate) -> User:
        if get_user_by_username_or_email(
            session=self.session,
            username=user_in.username.strip(),
            email=str(user_in.email),
        ):
            raise ConflictError("User", "Username or email already registered")
        user = create_user(session=self.session, user_in=user_in)
        logger.info("user_created", user_id=user.id, username=user.username)
        return user

    def get_by_id(self, user_id: int) -> User:
        user = get_user(session=self.session, user_id=user_id)
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user

    def get_all(
        self, limit: int, offset: int, keyword: str = ""
    ) -> tuple[list[User], int]:
        limit, offset = clamp_page(limit, offset)
        return get_users(
            session=self.session, skip=offset, limit=limit, keyword=keyword.strip()
        )

    def update(self, user_id: int, user_in: UserUpdate) -> User:
        user = self.get_by_id(user_id)
        if user_in.email and user_in.email != user.email:
            existing = get_user_by_username_or_email(
                session=self.session, email=str(user_in.email)
            )
            if existing and existing.id != user_id:
                raise ConflictError("User", "Email already registered")
        return update_user(session=self.session, db_user=user, user_in=user_in)


class CachedUserService:
    def __init__(self, inner: UserOperations, cache: ReadThroughCache):
        self._inner = inner
        self._cache = cache

    def create(self, user_in: UserCreate) -> User:
        user = self._inner.create(user_in)
        self._invalidate(user.id)
        return user

    def get_by_id(self, user_id: int) -> User:
        def load() -> User | None:
            try:
                return self._inner.get_by_id(user_id)
            except ResourceNotFoundError:
                return None

        user = self._cache.fetch(
            f"{USER_PREFIX}{user_id}",
            load,
            dump=dump_model,
            load=model_loader(User),
            empty=lambda: None,
            is_empty=lambda value: value is None,
        )
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user

    def get_all(
        self, limit: int, offset: int, keyword: str = ""
    ) -> tuple[list[User], int]:
        limit, offset = clamp_page(limit, offset)
        return self._cache.fetch(
            listing_key(USERS_PREFIX, limit, offset, keyword.strip()),
            lambda: self._inner.get_all(limit, offset, keyword),
            dump=dump_page,
            load=page_loader(User),
            empty=lambda: ([], 0),
            is_empty=page_is_empty,
        )

    def update(self, user_id: int, user_in: UserUpdate) -> User:
        user = self._inner.update(user_id, user_in)
        self._invalidate(user_id)
        return user

    def _invalidate(self, user_id: int | None) -> None:
        keys = [f"{USER_PREFIX}{user_id}"] if user_id is not None else []
        self._cache.invalidate(*keys, patterns=(f"{USERS_PREFIX}*",))
