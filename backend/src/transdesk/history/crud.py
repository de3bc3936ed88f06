from datetime import UTC, datetime, time, timedelta

from sqlmodel import Session, col, select

from transdesk.core.db import paginate
from transdesk.history.models import HistoryQuery, TranslationHistory

MAX_HISTORY_PAGE = 100
DEFAULT_HISTORY_PAGE = 20


def create_history(*, session: Session, record: TranslationHistory) -> TranslationHistory:
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def list_history(
    *,
    session: Session,
    query: HistoryQuery,
    translation_id: int | None = None,
    project_id: int | None = None,
    operated_by: int | None = None,
) -> tuple[list[TranslationHistory], int]:
    """List history rows newest first.

    The start date is inclusive; the end date's whole calendar day is
    included by filtering strictly before the following midnight (UTC).
    """
    statement = select(TranslationHistory)
    if translation_id is not None:
        statement = statement.where(TranslationHistory.translation_id == translation_id)
    if project_id is not None:
        statement = statement.where(TranslationHistory.project_id == project_id)
    if operated_by is not None:
        statement = statement.where(TranslationHistory.operated_by == operated_by)
    if query.operation is not None:
        statement = statement.where(TranslationHistory.operation == query.operation)
    if query.start_date is not None:
        start = datetime.combine(query.start_date, time.min, tzinfo=UTC)
        statement = statement.where(col(TranslationHistory.operated_at) >= start)
    if query.end_date is not None:
        end = datetime.combine(query.end_date + timedelta(days=1), time.min, tzinfo=UTC)
        statement = statement.where(col(TranslationHistory.operated_at) < end)

    limit = query.limit if query.limit > 0 else DEFAULT_HISTORY_PAGE
    return paginate(
        session,
        statement,
        skip=max(query.offset, 0),
        limit=min(limit, MAX_HISTORY_PAGE),
        order_by=(
            col(TranslationHistory.operated_at).desc(),
            col(TranslationHistory.id).desc(),
        ),
    )
