from typing import Any

from fastapi import APIRouter, Depends

from transdesk.api.deps import ActorDep, ProjectServiceDep, get_actor
from transdesk.core.base_models import Message
from transdesk.projects import (
    ProjectCreate,
    ProjectPublic,
    ProjectsPublic,
    ProjectUpdate,
)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("/", response_model=ProjectsPublic)
def read_projects(
    service: ProjectServiceDep,
    limit: int = 10,
    offset: int = 0,
    keyword: str = "",
) -> Any:
    projects, count = service.get_all(limit, offset, keyword)
    return ProjectsPublic(data=projects, count=count)


@router.post("/", response_model=ProjectPublic)
def create_project(
    service: ProjectServiceDep, actor: ActorDep, project_in: ProjectCreate
) -> Any:
    """Create a project. The slug is derived from the name when omitted."""
    return service.create(project_in, actor.id)


@router.get("/{project_id}", response_model=ProjectPublic)
def read_project(service: ProjectServiceDep, project_id: int) -> Any:
    return service.get_by_id(project_id)


@router.put("/{project_id}", response_model=ProjectPublic)
def update_project(
    service: ProjectServiceDep,
    actor: ActorDep,
    project_id: int,
    project_in: ProjectUpdate,
) -> Any:
    return service.update(project_id, project_in, actor.id)


@router.delete("/{project_id}", response_model=Message, dependencies=[Depends(get_actor)])
def delete_project(service: ProjectServiceDep, project_id: int) -> Any:
    service.delete(project_id)
    return Message(message="Project deleted successfully")
