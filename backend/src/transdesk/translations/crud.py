from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session, col, func, select, update

from transdesk.core.base_models import utc_now
from transdesk.core.db import paginate
from transdesk.core.exceptions import InternalError
from transdesk.translations.models import (
    Translation,
    TranslationCreate,
    TranslationUpdate,
)

# Rows per INSERT ... ON CONFLICT statement, keeps bound parameters under driver limits
UPSERT_CHUNK_SIZE = 500

_CONFLICT_COLUMNS = ["project_id", "key_name", "language_id"]


def _active():
    return col(Translation.deleted_at).is_(None)


def get_translation(*, session: Session, translation_id: int) -> Translation | None:
    """Get a non-deleted translation by ID.

    Args:
        session: Database session
        translation_id: Translation's ID

    Returns:
        Translation object if found and not soft-deleted, None otherwise
    """
    statement = select(Translation).where(Translation.id == translation_id, _active())
    return session.exec(statement).first()


def get_translations_by_ids(
    *, session: Session, translation_ids: Iterable[int]
) -> list[Translation]:
    """Get the non-deleted translations among the given IDs, in no particular order."""
    ids = list(set(translation_ids))
    if not ids:
        return []
    statement = select(Translation).where(col(Translation.id).in_(ids), _active())
    return list(session.exec(statement).all())


def get_translations_by_project(
    *, session: Session, project_id: int, skip: int = 0, limit: int = 10
) -> tuple[list[Translation], int]:
    """Get the rows of one project with pagination, ordered by key name then ID.

    Args:
        session: Database session
        project_id: Project whose rows are listed
        skip: Number of rows to skip
        limit: Maximum number of rows to return

    Returns:
        Tuple of (list of translations, total count)
    """
    statement = select(Translation).where(
        Translation.project_id == project_id, _active()
    )
    return paginate(
        session,
        statement,
        skip=skip,
        limit=limit,
        order_by=(col(Translation.key_name).asc(), col(Translation.id).asc()),
    )


def find_translation_by_triple(
    *,
    session: Session,
    project_id: int,
    key_name: str,
    language_id: int,
    exclude_id: int | None = None,
) -> Translation | None:
    """Find the live row holding a (project, key, language) triple.

    Args:
        session: Database session
        project_id: Project ID of the triple
        key_name: Key name of the triple
        language_id: Language ID of the triple
        exclude_id: Row to ignore, e.g. the one being updated

    Returns:
        The matching translation, None if the triple is free
    """
    statement = select(Translation).where(
        Translation.project_id == project_id,
        Translation.key_name == key_name,
        Translation.language_id == language_id,
        _active(),
    )
    if exclude_id is not None:
        statement = statement.where(Translation.id != exclude_id)
    return session.exec(statement).first()


def find_existing_triples(
    *, session: Session, triples: Iterable[tuple[int, str, int]]
) -> set[tuple[int, str, int]]:
    """Return which of the given (project_id, key_name, language_id) triples are stored.

    Narrows with one IN per column, then matches exact triples in Python.
    """
    wanted = set(triples)
    if not wanted:
        return set()
    statement = select(
        Translation.project_id, Translation.key_name, Translation.language_id
    ).where(
        col(Translation.project_id).in_({t[0] for t in wanted}),
        col(Translation.key_name).in_({t[1] for t in wanted}),
        col(Translation.language_id).in_({t[2] for t in wanted}),
        _active(),
    )
    found = {(row[0], row[1], row[2]) for row in session.exec(statement).all()}
    return found & wanted


def add_translations(
    *,
    session: Session,
    inputs: Sequence[TranslationCreate],
    created_by: int | None,
) -> list[Translation]:
    """Stage new rows on the session. The caller owns the transaction."""
    rows = [
        Translation.model_validate(
            item, update={"created_by": created_by, "updated_by": created_by}
        )
        for item in inputs
    ]
    session.add_all(rows)
    return rows


def _dialect_insert(session: Session) -> Any:
    """Pick the INSERT construct that supports ON CONFLICT for the bound engine."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise InternalError(f"Upsert is not supported on {dialect}")


def upsert_translations(
    *,
    session: Session,
    inputs: Sequence[TranslationCreate],
    updated_by: int | None = None,
) -> int:
    """Insert rows, updating value/context in place when the triple already exists.

    Repeated triples inside `inputs` collapse to the last one. Runs as
    native INSERT ... ON CONFLICT statements against the partial unique
    index; the caller owns the transaction. Returns the number of
    distinct triples written.
    """
    now = utc_now()
    rows: dict[tuple[int, str, int], dict[str, Any]] = {}
    for item in inputs:
        rows[item.triple] = {
            "project_id": item.project_id,
            "key_name": item.key_name,
            "language_id": item.language_id,
            "value": item.value,
            "context": item.context,
            "status": item.status,
            "created_by": updated_by,
            "updated_by": updated_by,
            "created_at": now,
            "updated_at": now,
        }
    if not rows:
        return 0

    insert = _dialect_insert(session)
    values = list(rows.values())
    for start in range(0, len(values), UPSERT_CHUNK_SIZE):
        statement = insert(Translation).values(values[start : start + UPSERT_CHUNK_SIZE])
        statement = statement.on_conflict_do_update(
            index_elements=_CONFLICT_COLUMNS,
            index_where=_active(),
            set_={
                "value": statement.excluded.value,
                "context": statement.excluded.context,
                "updated_at": statement.excluded.updated_at,
                "updated_by": statement.excluded.updated_by,
            },
        )
        session.exec(statement)
    return len(rows)


def update_translation(
    *,
    session: Session,
    db_translation: Translation,
    translation_in: TranslationUpdate,
    updated_by: int | None,
) -> Translation:
    """Apply the set fields of an update to a row.

    Args:
        session: Database session
        db_translation: Row to modify
        translation_in: Update data; unset and None fields are left alone
        updated_by: ID of the acting user

    Returns:
        The modified row, staged but not committed
    """
    translation_data = translation_in.model_dump(exclude_unset=True, exclude_none=True)
    db_translation.sqlmodel_update(translation_data)
    db_translation.updated_by = updated_by
    db_translation.updated_at = utc_now()
    session.add(db_translation)
    return db_translation


def soft_delete_translation(*, session: Session, db_translation: Translation) -> None:
    now = utc_now()
    db_translation.deleted_at = now
    db_translation.updated_at = now
    session.add(db_translation)


def soft_delete_translations(*, session: Session, translation_ids: Iterable[int]) -> None:
    """Mark the given rows deleted in one UPDATE. Already deleted rows are skipped."""
    ids = list(set(translation_ids))
    if not ids:
        return
    now = utc_now()
    statement = (
        update(Translation)
        .where(col(Translation.id).in_(ids), _active())
        .values(deleted_at=now, updated_at=now)
    )
    session.exec(statement)


def count_translations(*, session: Session) -> int:
    statement = select(func.count()).select_from(Translation).where(_active())
    return session.exec(statement).one()


def count_distinct_keys(*, session: Session) -> int:
    """Distinct (project, key) pairs across all projects."""
    keys = (
        select(Translation.project_id, Translation.key_name)
        .where(_active())
        .distinct()
        .subquery()
    )
    return session.exec(select(func.count()).select_from(keys)).one()
