"""Base models and mixins for SQLModel schemas.

Reusable mixins shared by the directory tables (projects, languages, users)
and the translation tables.

Example:
    class Project(ProjectBase, ActorAuditedTable, SoftDeleteMixin, table=True):
        ...
"""

from datetime import UTC, datetime
from typing import Generic, TypeVar

from sqlmodel import Field, SQLModel

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(UTC)


class IntPrimaryKeyMixin(SQLModel):
    """Auto-increment integer primary key."""

    id: int | None = Field(default=None, primary_key=True)


class TimestampMixin(SQLModel):
    """Created/updated timestamps."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ActorAuditMixin(SQLModel):
    """IDs of the actors that created and last touched the row.

    Actors are authenticated upstream, so these are plain integers rather
    than foreign keys.
    """

    created_by: int | None = Field(default=None, nullable=True)
    updated_by: int | None = Field(default=None, nullable=True)


class SoftDeleteMixin(SQLModel):
    """Soft delete support. Every query filters on deleted_at IS NULL."""

    deleted_at: datetime | None = Field(default=None, nullable=True, index=True)


class TimestampedTable(IntPrimaryKeyMixin, TimestampMixin):
    """Base for tables with timestamps.

    Use for: User
    """

    pass


class ActorAuditedTable(IntPrimaryKeyMixin, TimestampMixin, ActorAuditMixin):
    """Base for tables that track who created and updated them.

    Use for: Project, Language, Translation
    """

    pass


class TimestampResponseMixin(SQLModel):
    """For Public/Response schemas that include timestamps."""

    created_at: datetime
    updated_at: datetime


class PaginatedResponse(SQLModel, Generic[T]):
    """Standard paginated response wrapper.

    Example:
        @router.get("/projects", response_model=PaginatedResponse[ProjectPublic])
        def list_projects(...):
            return PaginatedResponse(data=projects, count=total)
    """

    data: list[T]
    count: int


class Message(SQLModel):
    message: str
