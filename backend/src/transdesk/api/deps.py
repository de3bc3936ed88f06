from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header
from sqlmodel import Session

from transdesk.core.cache import ReadThroughCache, get_cache
from transdesk.core.db import get_db
from transdesk.core.exceptions import AuthenticationError
from transdesk.core.logging import bind_actor
from transdesk.dashboard import CachedDashboardService, DashboardOperations, DashboardService
from transdesk.history import HistoryRecorder
from transdesk.languages import CachedLanguageService, LanguageOperations, LanguageService
from transdesk.projects import CachedProjectService, ProjectOperations, ProjectService
from transdesk.translations import (
    CachedTranslationService,
    TranslationOperations,
    TranslationService,
)
from transdesk.users import CachedUserService, UserOperations, UserService

SessionDep = Annotated[Session, Depends(get_db)]
CacheDep = Annotated[ReadThroughCache | None, Depends(get_cache)]


@dataclass(frozen=True)
class Actor:
    """The caller as authenticated by the upstream gateway."""

    id: int
    name: str | None = None


def get_actor(
    x_actor_id: Annotated[int | None, Header()] = None,
    x_actor_name: Annotated[str | None, Header()] = None,
) -> Actor:
    if x_actor_id is None:
        raise AuthenticationError("X-Actor-ID header is required")
    bind_actor(x_actor_id, x_actor_name)
    return Actor(id=x_actor_id, name=x_actor_name)


ActorDep = Annotated[Actor, Depends(get_actor)]


def get_translation_service(session: SessionDep, cache: CacheDep) -> TranslationOperations:
    service = TranslationService(session)
    if cache is None:
        return service
    return CachedTranslationService(service, cache)


def get_project_service(session: SessionDep, cache: CacheDep) -> ProjectOperations:
    service = ProjectService(session)
    if cache is None:
        return service
    return CachedProjectService(service, cache)


def get_language_service(session: SessionDep, cache: CacheDep) -> LanguageOperations:
    service = LanguageService(session)
    if cache is None:
        return service
    return CachedLanguageService(service, cache)


def get_user_service(session: SessionDep, cache: CacheDep) -> UserOperations:
    service = UserService(session)
    if cache is None:
        return service
    return CachedUserService(service, cache)


def get_dashboard_service(session: SessionDep, cache: CacheDep) -> DashboardOperations:
    service = DashboardService(session)
    if cache is None:
        return service
    return CachedDashboardService(service, cache)


def get_history_recorder(session: SessionDep) -> HistoryRecorder:
    return HistoryRecorder(session)


TranslationServiceDep = Annotated[TranslationOperations, Depends(get_translation_service)]
ProjectServiceDep = Annotated[ProjectOperations, Depends(get_project_service)]
LanguageServiceDep = Annotated[LanguageOperations, Depends(get_language_service)]
UserServiceDep = Annotated[UserOperations, Depends(get_user_service)]
DashboardServiceDep = Annotated[DashboardOperations, Depends(get_dashboard_service)]
HistoryDep = Annotated[HistoryRecorder, Depends(get_history_recorder)]
