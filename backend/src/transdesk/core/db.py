from collections.abc import Generator
from typing import Any, TypeVar

from sqlalchemy import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, func, select
from sqlmodel.sql.expression import SelectOfScalar

from transdesk.core.config import settings


def _build_engine(url: str) -> Engine:
    echo = settings.DEBUG and settings.ENVIRONMENT == "local"
    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=echo,
        connect_args={
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
        },
    )


engine = _build_engine(settings.SQLALCHEMY_DATABASE_URI)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def init_db(bind: Engine | None = None) -> None:
    """Create all tables registered on SQLModel.metadata."""
    # Table modules must be imported so their metadata is registered
    from transdesk.history import models as _history  # noqa: F401
    from transdesk.languages import models as _languages  # noqa: F401
    from transdesk.projects import models as _projects  # noqa: F401
    from transdesk.translations import models as _translations  # noqa: F401
    from transdesk.users import models as _users  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


T = TypeVar("T", bound=SQLModel)


def paginate(
    session: Session,
    statement: SelectOfScalar[T],
    skip: int = 0,
    limit: int = 100,
    order_by: Any | None = None,
) -> tuple[list[T], int]:
    """Execute a paginated query and return results with total count.

    Args:
        session: Database session
        statement: Base select statement (without pagination)
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return
        order_by: Column expression or tuple of expressions to order by

    Returns:
        Tuple of (list of results, total count)
    """
    count_statement = select(func.count()).select_from(statement.subquery())
    count = session.exec(count_statement).one()

    if order_by is not None:
        if isinstance(order_by, tuple | list):
            statement = statement.order_by(*order_by)
        else:
            statement = statement.order_by(order_by)

    paginated_statement = statement.offset(skip).limit(limit)
    results = session.exec(paginated_statement).all()

    return list(results), count


def clamp_page(limit: int | None, offset: int | None) -> tuple[int, int]:
    """Normalize list pagination to 1..MAX_PAGE_SIZE and a non-negative offset."""
    if limit is None or limit <= 0:
        limit = settings.DEFAULT_PAGE_SIZE
    limit = min(limit, settings.MAX_PAGE_SIZE)
    offset = max(offset or 0, 0)
    return limit, offset
