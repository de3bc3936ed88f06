"""Pivot stored translations into a key -> language code -> cell matrix.

Pagination is over distinct key names, never over value rows, so a page
always carries every language a key has. That takes two queries:

1. resolve the ordered, distinct key names of the page (and their total)
2. fetch the cells for exactly those keys and fold them into the map

Both phases join active, non-deleted languages. A key whose remaining rows
all point at inactive or deleted languages is therefore left out of both
the page and the total, and no key ever comes back with an empty inner map.
"""

from sqlmodel import Session, col, func, or_, select

from transdesk.core.logging import get_logger
from transdesk.languages.models import Language, LanguageStatus
from transdesk.translations.models import (
    MatrixPage,
    Translation,
    TranslationCell,
    TranslationStatus,
)

logger = get_logger(__name__)


def _visible_conditions(project_id: int) -> list:
    return [
        Translation.project_id == project_id,
        Translation.status == TranslationStatus.ACTIVE,
        col(Translation.deleted_at).is_(None),
        Language.status == LanguageStatus.ACTIVE,
        col(Language.deleted_at).is_(None),
    ]


def build_matrix(
    *,
    session: Session,
    project_id: int,
    limit: int = -1,
    offset: int = 0,
    keyword: str = "",
) -> MatrixPage:
    """Build one page of the translation matrix of a project.

    Args:
        session: Database session
        project_id: Project to read; existence is not checked here
        limit: Keys per page; zero or negative returns every key
        offset: Keys to skip; negative values count as zero
        keyword: Optional substring matched against key names and values

    Returns:
        MatrixPage whose `total` is the number of matching keys regardless
        of the page bounds
    """
    offset = max(offset, 0)
    keyword = keyword.strip()

    keys_statement = (
        select(Translation.key_name)
        .join(Language, col(Language.id) == col(Translation.language_id))
        .where(*_visible_conditions(project_id))
        .distinct()
    )
    if keyword:
        keys_statement = keys_statement.where(
            or_(
                col(Translation.key_name).contains(keyword, autoescape=True),
                col(Translation.value).contains(keyword, autoescape=True),
            )
        )

    total = session.exec(
        select(func.count()).select_from(keys_statement.subquery())
    ).one()
    if total == 0 or offset >= total:
        return MatrixPage(matrix={}, total=total)

    page_statement = keys_statement.order_by(col(Translation.key_name)).offset(offset)
    if limit > 0:
        page_statement = page_statement.limit(limit)
    keys = list(session.exec(page_statement).all())

    cells_statement = (
        select(
            Translation.id,
            Translation.key_name,
            Language.code,
            Translation.value,
            Translation.updated_at,
        )
        .join(Language, col(Language.id) == col(Translation.language_id))
        .where(*_visible_conditions(project_id))
        .order_by(col(Translation.key_name), col(Language.code))
    )
    # A full, unfiltered read already covers every key of the project
    if limit > 0:
        cells_statement = cells_statement.where(col(Translation.key_name).in_(keys))
    elif offset > 0 or keyword:
        # Unbounded pages can outgrow the driver's bind parameter limit
        page_keys = page_statement.subquery()
        cells_statement = cells_statement.where(
            col(Translation.key_name).in_(select(page_keys.c.key_name))
        )

    matrix: dict[str, dict[str, TranslationCell]] = {key: {} for key in keys}
    for translation_id, key_name, code, value, updated_at in session.exec(cells_statement):
        cells = matrix.get(key_name)
        if cells is None:
            # Written between the two phases
            continue
        cells[code] = TranslationCell(id=translation_id, value=value, updated_at=updated_at)

    # Rows removed between the two phases
    pruned = {key: cells for key, cells in matrix.items() if cells}
    if len(pruned) != len(matrix):
        logger.debug(
            "matrix_keys_vanished",
            project_id=project_id,
            missing=len(matrix) - len(pruned),
        )
    return MatrixPage(matrix=pruned, total=total)
