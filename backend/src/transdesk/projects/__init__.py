from transdesk.projects.crud import (
    count_projects,
    create_project,
    delete_project,
    get_project,
    get_projects,
    get_projects_by_ids,
    update_project,
)
from transdesk.projects.models import (
    Project,
    ProjectBase,
    ProjectCreate,
    ProjectPublic,
    ProjectsPublic,
    ProjectStatus,
    ProjectUpdate,
)
from transdesk.projects.service import (
    CachedProjectService,
    ProjectOperations,
    ProjectService,
)

__all__ = [
    # Models
    "Project",
    "ProjectBase",
    "ProjectCreate",
    "ProjectPublic",
    "ProjectStatus",
    "ProjectUpdate",
    "ProjectsPublic",
    # CRUD
    "count_projects",
    "create_project",
    "delete_project",
    "get_project",
    "get_projects",
    "get_projects_by_ids",
    "update_project",
    # Services
    "CachedProjectService",
    "ProjectOperations",
    "ProjectService",
]
