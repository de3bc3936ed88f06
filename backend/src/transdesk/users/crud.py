from sqlmodel import Session, col, or_, select

from transdesk.core.base_models import utc_now
from transdesk.core.db import paginate
from transdesk.users.models import User, UserCreate, UserUpdate


def create_user(*, session: Session, user_in: UserCreate) -> User:
    db_user = User.model_validate(
        user_in, update={"username": user_in.username.strip()}
    )
    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return db_user


def get_user(*, session: Session, user_id: int) -> User | None:
    return session.get(User, user_id)


def get_user_by_username_or_email(
    *, session: Session, username: str | None = None, email: str | None = None
) -> User | None:
    conditions = []
    if username:
        conditions.append(User.username == username)
    if email:
        conditions.append(User.email == email)
    if not conditions:
        return None
    return session.exec(select(User).where(or_(*conditions))).first()


def get_users(
    *, session: Session, skip: int = 0, limit: int = 100, keyword: str = ""
) -> tuple[list[User], int]:
    statement = select(User)
    if keyword:
        statement = statement.where(
            or_(
                col(User.username).contains(keyword, autoescape=True),
                col(User.email).contains(keyword, autoescape=True),
            )
        )
    return paginate(
        session, statement, skip=skip, limit=limit, order_by=col(User.id).asc()
    )


def update_user(*, session: Session, db_user: User, user_in: UserUpdate) -> User:
    user_data = user_in.model_dump(exclude_unset=True, exclude_none=True)
    db_user.sqlmodel_update(user_data)
    db_user.updated_at = utc_now()
    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return db_user
