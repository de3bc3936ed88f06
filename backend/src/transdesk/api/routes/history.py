from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from transdesk.api.deps import HistoryDep, ProjectServiceDep, UserServiceDep
from transdesk.history import HistoryOperation, HistoryQuery, TranslationHistoriesPublic

router = APIRouter(tags=["history"])


def history_query(
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    operation: HistoryOperation | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> HistoryQuery:
    """Common filters; `end_date` includes that whole day."""
    return HistoryQuery(
        limit=limit,
        offset=offset,
        operation=operation,
        start_date=start_date,
        end_date=end_date,
    )


HistoryQueryDep = Annotated[HistoryQuery, Depends(history_query)]


@router.get("/translations/{translation_id}/history", response_model=TranslationHistoriesPublic)
def read_translation_history(
    history: HistoryDep, query: HistoryQueryDep, translation_id: int
) -> Any:
    """History of one translation, newest first. Still available after it is deleted."""
    records, count = history.list_by_translation_id(translation_id, query)
    return TranslationHistoriesPublic(data=records, count=count)


@router.get("/projects/{project_id}/history", response_model=TranslationHistoriesPublic)
def read_project_history(
    history: HistoryDep,
    projects: ProjectServiceDep,
    query: HistoryQueryDep,
    project_id: int,
) -> Any:
    projects.get_by_id(project_id)
    records, count = history.list_by_project_id(project_id, query)
    return TranslationHistoriesPublic(data=records, count=count)


@router.get("/users/{user_id}/history", response_model=TranslationHistoriesPublic)
def read_user_history(
    history: HistoryDep,
    users: UserServiceDep,
    query: HistoryQueryDep,
    user_id: int,
) -> Any:
    users.get_by_id(user_id)
    records, count = history.list_by_user_id(user_id, query)
    return TranslationHistoriesPublic(data=records, count=count)
