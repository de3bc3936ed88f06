from typing import Any

from fastapi import APIRouter, Depends

from transdesk.api.deps import ActorDep, LanguageServiceDep, get_actor
from transdesk.core.base_models import Message
from transdesk.languages import LanguageCreate, LanguagePublic, LanguageUpdate

router = APIRouter(prefix="/languages", tags=["languages"])


@router.get("/", response_model=list[LanguagePublic])
def read_languages(service: LanguageServiceDep) -> Any:
    return service.get_all()


@router.post("/", response_model=LanguagePublic)
def create_language(
    service: LanguageServiceDep, actor: ActorDep, language_in: LanguageCreate
) -> Any:
    """Create a language. Making it default clears the flag on the others."""
    return service.create(language_in, actor.id)


@router.get("/{language_id}", response_model=LanguagePublic)
def read_language(service: LanguageServiceDep, language_id: int) -> Any:
    return service.get_by_id(language_id)


@router.put("/{language_id}", response_model=LanguagePublic)
def update_language(
    service: LanguageServiceDep,
    actor: ActorDep,
    language_id: int,
    language_in: LanguageUpdate,
) -> Any:
    return service.update(language_id, language_in, actor.id)


@router.delete(
    "/{language_id}", response_model=Message, dependencies=[Depends(get_actor)]
)
def delete_language(service: LanguageServiceDep, language_id: int) -> Any:
    service.delete(language_id)
    return Message(message="Language deleted successfully")
