from typing import Protocol

from sqlmodel import Session

from transdesk.core.cache import (
    DASHBOARD_STATS_KEY,
    PROJECT_PREFIX,
    PROJECTS_PREFIX,
    ReadThroughCache,
    dump_model,
    dump_page,
    listing_key,
    matrix_pattern,
    model_loader,
    page_is_empty,
    page_loader,
    translation_list_pattern,
)
from transdesk.core.db import clamp_page
from transdesk.core.exceptions import ConflictError, ResourceNotFoundError
from transdesk.core.logging import get_logger
from transdesk.projects.crud import (
    create_project,
    delete_project,
    find_project_by_name_or_slug,
    get_project,
    get_projects,
    slugify,
    update_project,
)
from transdesk.projects.models import Project, ProjectCreate, ProjectUpdate

logger = get_logger(__name__)


class ProjectOperations(Protocol):
    def create(self, project_in: ProjectCreate, actor_id: int) -> Project: ...

    def get_by_id(self, project_id: int) -> Project: ...

    def get_all(
        self, limit: int, offset: int, keyword: str = ""
    ) -> tuple[list[Project], int]: ...

    def update(
        self, project_id: int, project_in: ProjectUpdate, actor_id: int
    ) -> Project: ...

    def delete(self, project_id: int) -> None: ...


class ProjectService:
    def __init__(self, session: Session):
        self.session = session

    def create(self, project_in: ProjectCreate, actor_id: int) -> Project:
        slug = project_in.slug or slugify(project_in.name)
        if find_project_by_name_or_slug(
            session=self.session, name=project_in.name.strip(), slug=slug
        ):
            raise ConflictError("Project", "A project with this name or slug already exists")
        project = create_project(
            session=self.session,
            project_in=project_in.model_copy(update={"slug": slug}),
            created_by=actor_id,
        )
        logger.info("project_created", project_id=project.id, slug=project.slug)
        return project

    def get_by_id(self, project_id: int) -> Project:
        project = get_project(session=self.session, project_id=project_id)
        if project is None:
            raise ResourceNotFoundError("Project", str(project_id))
        return project

    def get_all(
        self, limit: int, offset: int, keyword: str = ""
    ) -> tuple[list[Project], int]:
        limit, offset = clamp_page(limit, offset)
        return get_projects(
            session=self.session, skip=offset, limit=limit, keyword=keyword.strip()
        )

    def update(self, project_id: int, project_in: ProjectUpdate, actor_id: int) -> Project:
        project = self.get_by_id(project_id)
        if project_in.name and find_project_by_name_or_slug(
            session=self.session,
            name=project_in.name.strip(),
            slug=project.slug,
            exclude_id=project_id,
        ):
            raise ConflictError("Project", "A project with this name already exists")
        return update_project(
            session=self.session,
            db_project=project,
            project_in=project_in,
            updated_by=actor_id,
        )

    def delete(self, project_id: int) -> None:
        project = self.get_by_id(project_id)
        delete_project(session=self.session, db_project=project)
        logger.info("project_deleted", project_id=project_id)


class CachedProjectService:
    """ProjectService with read-through caching of lookups and listings."""

    def __init__(self, inner: ProjectOperations, cache: ReadThroughCache):
        self._inner = inner
        self._cache = cache

    def create(self, project_in: ProjectCreate, actor_id: int) -> Project:
        project = self._inner.create(project_in, actor_id)
        self._invalidate(project.id)
        return project

    def get_by_id(self, project_id: int) -> Project:
        def load() -> Project | None:
            try:
                return self._inner.get_by_id(project_id)
            except ResourceNotFoundError:
                return None

        project = self._cache.fetch(
            f"{PROJECT_PREFIX}{project_id}",
            load,
            dump=dump_model,
            load=model_loader(Project),
            empty=lambda: None,
            is_empty=lambda value: value is None,
        )
        if project is None:
            raise ResourceNotFoundError("Project", str(project_id))
        return project

    def get_all(
        self, limit: int, offset: int, keyword: str = ""
    ) -> tuple[list[Project], int]:
        limit, offset = clamp_page(limit, offset)
        return self._cache.fetch(
            listing_key(PROJECTS_PREFIX, limit, offset, keyword.strip()),
            lambda: self._inner.get_all(limit, offset, keyword),
            dump=dump_page,
            load=page_loader(Project),
            empty=lambda: ([], 0),
            is_empty=page_is_empty,
        )

    def update(self, project_id: int, project_in: ProjectUpdate, actor_id: int) -> Project:
        project = self._inner.update(project_id, project_in, actor_id)
        self._invalidate(project_id)
        return project

    def delete(self, project_id: int) -> None:
        self._inner.delete(project_id)
        self._invalidate(
            project_id,
            matrix_pattern(project_id),
            translation_list_pattern(project_id),
        )

    def _invalidate(self, project_id: int | None, *patterns: str) -> None:
        keys = [DASHBOARD_STATS_KEY]
        if project_id is not None:
            keys.append(f"{PROJECT_PREFIX}{project_id}")
        self._cache.invalidate(*keys, patterns=(f"{PROJECTS_PREFIX}*", *patterns))
