"""Append-only audit trail of translation mutations.

Rows are written after the mutation they describe has committed and are
never updated or deleted by the application. `translation_id` is nullable
so a record survives its translation being purged.
"""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import Column, Index, Text
from sqlmodel import Field, SQLModel

from transdesk.core.base_models import PaginatedResponse, utc_now


class HistoryOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"
    EXPORT = "export"
    MACHINE_TRANSLATE = "machine_translate"


class TranslationHistory(SQLModel, table=True):
    __tablename__ = "translation_history"

    id: int | None = Field(default=None, primary_key=True)
    translation_id: int | None = Field(default=None, nullable=True, index=True)
    project_id: int = Field(index=True)
    key_name: str = Field(max_length=255)
    language_id: int
    old_value: str | None = Field(default=None, sa_type=Text)
    new_value: str | None = Field(default=None, sa_type=Text)
    operation: HistoryOperation = Field(index=True)
    operated_by: int = Field(index=True)
    operated_at: datetime = Field(default_factory=utc_now, index=True)
    # Stored in the "metadata" column; the attribute name is taken by SQLModel
    details: str | None = Field(default=None, sa_column=Column("metadata", Text))

    __table_args__ = (
        Index("idx_history_project_operated", "project_id", "operated_at"),
    )


class TranslationHistoryPublic(SQLModel):
    id: int
    translation_id: int | None
    project_id: int
    key_name: str
    language_id: int
    old_value: str | None
    new_value: str | None
    operation: HistoryOperation
    operated_by: int
    operated_at: datetime
    details: str | None


TranslationHistoriesPublic = PaginatedResponse[TranslationHistoryPublic]


class HistoryQuery(SQLModel):
    """Filters shared by every history listing.

    `end_date` is a calendar day and is fully included.
    """

    limit: int = Field(default=20)
    offset: int = Field(default=0)
    operation: HistoryOperation | None = None
    start_date: date | None = None
    end_date: date | None = None
