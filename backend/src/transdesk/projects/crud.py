from collections.abc import Iterable
import re

from sqlmodel import Session, col, func, or_, select

from transdesk.core.base_models import utc_now
from transdesk.core.db import paginate
from transdesk.projects.models import Project, ProjectCreate, ProjectUpdate

_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _SLUG_INVALID.sub("-", name.strip().lower()).strip("-")
    return slug or "project"


def _active():
    return col(Project.deleted_at).is_(None)


def create_project(
    *, session: Session, project_in: ProjectCreate, created_by: int | None
) -> Project:
    """Create a new project.

    Args:
        session: Database session
        project_in: Project creation data
        created_by: ID of the acting user

    Returns:
        Created project object
    """
    db_project = Project.model_validate(
        project_in,
        update={
            "name": project_in.name.strip(),
            "slug": project_in.slug or slugify(project_in.name),
            "created_by": created_by,
            "updated_by": created_by,
        },
    )
    session.add(db_project)
    session.commit()
    session.refresh(db_project)
    return db_project


def get_project(*, session: Session, project_id: int) -> Project | None:
    """Get a non-deleted project by ID."""
    statement = select(Project).where(Project.id == project_id, _active())
    return session.exec(statement).first()


def get_projects_by_ids(*, session: Session, project_ids: Iterable[int]) -> list[Project]:
    """Fetch several projects in one query; missing IDs are simply absent."""
    ids = list(set(project_ids))
    if not ids:
        return []
    statement = select(Project).where(col(Project.id).in_(ids), _active())
    return list(session.exec(statement).all())


def find_project_by_name_or_slug(
    *, session: Session, name: str, slug: str, exclude_id: int | None = None
) -> Project | None:
    conditions = [_active(), or_(Project.name == name, Project.slug == slug)]
    if exclude_id is not None:
        conditions.append(Project.id != exclude_id)
    return session.exec(select(Project).where(*conditions)).first()


def get_projects(
    *, session: Session, skip: int = 0, limit: int = 100, keyword: str = ""
) -> tuple[list[Project], int]:
    """List projects, optionally filtered by name/description keyword."""
    statement = select(Project).where(_active())
    if keyword:
        statement = statement.where(
            or_(
                col(Project.name).contains(keyword, autoescape=True),
                col(Project.description).contains(keyword, autoescape=True),
            )
        )
    return paginate(
        session, statement, skip=skip, limit=limit, order_by=col(Project.id).asc()
    )


def count_projects(*, session: Session) -> int:
    statement = select(func.count()).select_from(Project).where(_active())
    return session.exec(statement).one()


def update_project(
    *,
    session: Session,
    db_project: Project,
    project_in: ProjectUpdate,
    updated_by: int | None,
) -> Project:
    project_data = project_in.model_dump(exclude_unset=True, exclude_none=True)
    db_project.sqlmodel_update(project_data)
    db_project.updated_by = updated_by
    db_project.updated_at = utc_now()
    session.add(db_project)
    session.commit()
    session.refresh(db_project)
    return db_project


def delete_project(*, session: Session, db_project: Project) -> None:
    """Soft-delete a project. Its translations stay but become unreachable."""
    db_project.deleted_at = utc_now()
    session.add(db_project)
    session.commit()
