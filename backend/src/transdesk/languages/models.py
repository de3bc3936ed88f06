from enum import Enum

from sqlmodel import Field, SQLModel

from transdesk.core.base_models import (
    ActorAuditedTable,
    SoftDeleteMixin,
    TimestampResponseMixin,
)


class LanguageStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class LanguageBase(SQLModel):
    code: str = Field(min_length=1, max_length=10, index=True)
    name: str = Field(min_length=1, max_length=50)
    is_default: bool = Field(default=False)
    status: LanguageStatus = Field(default=LanguageStatus.ACTIVE, index=True)


class Language(LanguageBase, ActorAuditedTable, SoftDeleteMixin, table=True):
    """A locale translations can be written in. Only active ones show up in matrices."""

    __tablename__ = "languages"


class LanguageCreate(SQLModel):
    code: str = Field(min_length=1, max_length=10)
    name: str = Field(min_length=1, max_length=50)
    is_default: bool = False
    status: LanguageStatus = LanguageStatus.ACTIVE


class LanguageUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    is_default: bool | None = None
    status: LanguageStatus | None = None


class LanguagePublic(LanguageBase, TimestampResponseMixin):
    id: int
