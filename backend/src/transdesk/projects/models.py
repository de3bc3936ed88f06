from enum import Enum

from sqlmodel import Field, SQLModel

from transdesk.core.base_models import (
    ActorAuditedTable,
    PaginatedResponse,
    SoftDeleteMixin,
    TimestampResponseMixin,
)


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class ProjectBase(SQLModel):
    name: str = Field(min_length=1, max_length=100, index=True)
    description: str = Field(default="", max_length=500)
    slug: str = Field(min_length=1, max_length=100, index=True)
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE, index=True)


class Project(ProjectBase, ActorAuditedTable, SoftDeleteMixin, table=True):
    """A set of translation keys shipped together (one app, one site)."""

    __tablename__ = "projects"


class ProjectCreate(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    slug: str | None = Field(default=None, min_length=1, max_length=100)


class ProjectUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    status: ProjectStatus | None = None


class ProjectPublic(ProjectBase, TimestampResponseMixin):
    id: int
    created_by: int | None
    updated_by: int | None


ProjectsPublic = PaginatedResponse[ProjectPublic]
