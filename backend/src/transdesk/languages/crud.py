from collections.abc import Iterable

from sqlmodel import Session, col, func, select, update

from transdesk.core.base_models import utc_now
from transdesk.languages.models import Language, LanguageCreate, LanguageUpdate


def _active():
    return col(Language.deleted_at).is_(None)


def _clear_default(session: Session, *, keep_id: int | None) -> None:
    statement = update(Language).where(_active(), col(Language.is_default).is_(True))
    if keep_id is not None:
        statement = statement.where(Language.id != keep_id)
    session.exec(statement.values(is_default=False))


def create_language(
    *, session: Session, language_in: LanguageCreate, created_by: int | None
) -> Language:
    """Create a language. Marking it default clears the flag everywhere else."""
    db_language = Language.model_validate(
        language_in,
        update={
            "code": language_in.code.strip(),
            "name": language_in.name.strip(),
            "created_by": created_by,
            "updated_by": created_by,
        },
    )
    session.add(db_language)
    session.flush()
    if db_language.is_default:
        _clear_default(session, keep_id=db_language.id)
    session.commit()
    session.refresh(db_language)
    return db_language


def get_language(*, session: Session, language_id: int) -> Language | None:
    statement = select(Language).where(Language.id == language_id, _active())
    return session.exec(statement).first()


def get_language_by_code(*, session: Session, code: str) -> Language | None:
    statement = select(Language).where(Language.code == code, _active())
    return session.exec(statement).first()


def get_languages_by_ids(
    *, session: Session, language_ids: Iterable[int]
) -> list[Language]:
    ids = list(set(language_ids))
    if not ids:
        return []
    statement = select(Language).where(col(Language.id).in_(ids), _active())
    return list(session.exec(statement).all())


def get_all_languages(*, session: Session) -> list[Language]:
    """All non-deleted languages ordered by code."""
    statement = select(Language).where(_active()).order_by(col(Language.code))
    return list(session.exec(statement).all())


def get_default_language(*, session: Session) -> Language | None:
    statement = select(Language).where(
        _active(), col(Language.is_default).is_(True)
    )
    return session.exec(statement).first()


def count_languages(*, session: Session) -> int:
    statement = select(func.count()).select_from(Language).where(_active())
    return session.exec(statement).one()


def update_language(
    *,
    session: Session,
    db_language: Language,
    language_in: LanguageUpdate,
    updated_by: int | None,
) -> Language:
    language_data = language_in.model_dump(exclude_unset=True, exclude_none=True)
    db_language.sqlmodel_update(language_data)
    db_language.updated_by = updated_by
    db_language.updated_at = utc_now()
    session.add(db_language)
    if db_language.is_default:
        _clear_default(session, keep_id=db_language.id)
    session.commit()
    session.refresh(db_language)
    return db_language


def delete_language(*, session: Session, db_language: Language) -> None:
    db_language.deleted_at = utc_now()
    db_language.is_default = False
    session.add(db_language)
    session.commit()
