"""Translation models.

- Translation: one value for a (project, key, language) triple. The triple
  is unique among non-deleted rows through a partial unique index, so a
  soft-deleted key can be created again.
- TranslationCell / MatrixPage: the pivoted key -> language view.
- Request/response schemas for the batch, by-key and CLI push endpoints.
"""

from datetime import datetime
from enum import Enum

from pydantic import field_validator
from sqlalchemy import Index, Text, text
from sqlmodel import Field, SQLModel

from transdesk.core.base_models import (
    ActorAuditedTable,
    PaginatedResponse,
    SoftDeleteMixin,
    TimestampResponseMixin,
)

UNIQUE_INDEX_NAME = "idx_translation_unique"


class TranslationStatus(str, Enum):
    ACTIVE = "active"
    DEPRECATED = "deprecated"


class TranslationBase(SQLModel):
    project_id: int = Field(foreign_key="projects.id", index=True)
    key_name: str = Field(min_length=1, max_length=255)
    context: str = Field(default="", max_length=500)
    language_id: int = Field(foreign_key="languages.id", index=True)
    value: str = Field(default="", sa_type=Text)
    status: TranslationStatus = Field(default=TranslationStatus.ACTIVE, index=True)


class Translation(TranslationBase, ActorAuditedTable, SoftDeleteMixin, table=True):
    __tablename__ = "translations"

    __table_args__ = (
        Index(
            UNIQUE_INDEX_NAME,
            "project_id",
            "key_name",
            "language_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
        Index("idx_translation_project_key", "project_id", "key_name"),
    )

    @property
    def triple(self) -> tuple[int, str, int]:
        return (self.project_id, self.key_name, self.language_id)


class TranslationCreate(SQLModel):
    """Input for create, strict batch create and upsert."""

    project_id: int
    key_name: str = Field(max_length=255)
    context: str = Field(default="", max_length=500)
    language_id: int
    value: str = ""
    status: TranslationStatus = TranslationStatus.ACTIVE

    @field_validator("key_name", mode="after")
    @classmethod
    def validate_key_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("key_name must not be empty")
        return v

    @field_validator("value", "context", mode="after")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @property
    def triple(self) -> tuple[int, str, int]:
        return (self.project_id, self.key_name, self.language_id)


class TranslationUpdate(SQLModel):
    project_id: int | None = None
    key_name: str | None = Field(default=None, max_length=255)
    context: str | None = Field(default=None, max_length=500)
    language_id: int | None = None
    value: str | None = None
    status: TranslationStatus | None = None

    @field_validator("key_name", mode="after")
    @classmethod
    def validate_key_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("key_name must not be empty")
        return v

    @field_validator("value", "context", mode="after")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v


class TranslationPublic(TranslationBase, TimestampResponseMixin):
    id: int
    created_by: int | None
    updated_by: int | None


TranslationsPublic = PaginatedResponse[TranslationPublic]


class TranslationBatchRequest(SQLModel):
    translations: list[TranslationCreate]


class DeleteBatchRequest(SQLModel):
    ids: list[int]


class BatchTranslationParams(SQLModel):
    """One key with its values keyed by language code."""

    project_id: int
    key_name: str = Field(max_length=255)
    context: str = Field(default="", max_length=500)
    translations: dict[str, str]

    @field_validator("key_name", mode="after")
    @classmethod
    def validate_key_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("key_name must not be empty")
        return v


class TranslationCell(SQLModel):
    id: int
    value: str
    updated_at: datetime


class MatrixPage(SQLModel):
    """One page of keys, each carrying every active language cell it has."""

    matrix: dict[str, dict[str, TranslationCell]]
    total: int

    def as_values(self) -> dict[str, dict[str, str]]:
        """Drop cell metadata, keeping key -> language code -> value."""
        return {
            key: {code: cell.value for code, cell in cells.items()}
            for key, cells in self.matrix.items()
        }


class PushKeysRequest(SQLModel):
    project_id: int
    keys: list[str] = Field(default_factory=list)
    # Deprecated: values for the default language only
    defaults: dict[str, str] = Field(default_factory=dict)
    # language code -> key -> value
    translations: dict[str, dict[str, str]] | None = None


class PushKeysResult(SQLModel):
    added: list[str] = Field(default_factory=list)
    existed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class BatchResult(SQLModel):
    """Number of rows a batch endpoint wrote."""

    count: int
