from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.concurrency import run_in_threadpool

from transdesk.api.deps import ActorDep, TranslationServiceDep, get_actor
from transdesk.core.base_models import Message
from transdesk.translations import (
    BatchResult,
    BatchTranslationParams,
    DeleteBatchRequest,
    MatrixPage,
    TranslationBatchRequest,
    TranslationCreate,
    TranslationPublic,
    TranslationsPublic,
    TranslationUpdate,
)

router = APIRouter(prefix="/translations", tags=["translations"])
project_router = APIRouter(
    prefix="/projects/{project_id}/translations", tags=["translations"]
)


@router.post("/", response_model=TranslationPublic)
def create_translation(
    service: TranslationServiceDep,
    actor: ActorDep,
    translation_in: TranslationCreate,
) -> Any:
    """Create one translation. 409 if the key already has a value in that language."""
    return service.create(translation_in, actor.id)


@router.post("/batch", response_model=BatchResult)
def create_translations_batch(
    service: TranslationServiceDep,
    actor: ActorDep,
    batch_in: TranslationBatchRequest,
) -> Any:
    """Create every translation or none.

    Any triple that repeats in the batch or already exists fails the whole
    batch with 409; the colliding triples are listed in `details.conflicts`.
    """
    created = service.create_batch(batch_in.translations, actor.id)
    return BatchResult(count=len(created))


@router.post("/by-key", response_model=BatchResult, dependencies=[Depends(get_actor)])
def upsert_translations_by_key(
    service: TranslationServiceDep,
    params: BatchTranslationParams,
) -> Any:
    """Create or update one key's values given as language code -> value."""
    return BatchResult(count=service.create_batch_from_request(params))


@router.post("/upsert", response_model=BatchResult)
def upsert_translations(
    service: TranslationServiceDep,
    actor: ActorDep,
    batch_in: TranslationBatchRequest,
) -> Any:
    """Create or update in place; existing triples get the new value and context."""
    return BatchResult(count=service.upsert_batch(batch_in.translations, actor.id))


@router.post(
    "/delete-batch", response_model=Message, dependencies=[Depends(get_actor)]
)
def delete_translations_batch(
    service: TranslationServiceDep,
    delete_in: DeleteBatchRequest,
) -> Any:
    service.delete_batch(delete_in.ids)
    return Message(message="Translations deleted successfully")


@router.get("/{translation_id}", response_model=TranslationPublic)
def read_translation(service: TranslationServiceDep, translation_id: int) -> Any:
    return service.get_by_id(translation_id)


@router.put("/{translation_id}", response_model=TranslationPublic)
def update_translation(
    service: TranslationServiceDep,
    actor: ActorDep,
    translation_id: int,
    translation_in: TranslationUpdate,
) -> Any:
    return service.update(translation_id, translation_in, actor.id)


@router.delete("/{translation_id}", response_model=Message)
def delete_translation(
    service: TranslationServiceDep,
    actor: ActorDep,
    translation_id: int,
) -> Any:
    service.delete(translation_id, actor.id)
    return Message(message="Translation deleted successfully")


@project_router.get("", response_model=TranslationsPublic)
def read_project_translations(
    service: TranslationServiceDep,
    project_id: int,
    limit: int = 10,
    offset: int = 0,
) -> Any:
    """List a project's translation rows, 1..100 per page."""
    translations, count = service.get_by_project_id(project_id, limit, offset)
    return TranslationsPublic(data=translations, count=count)


@project_router.get("/matrix", response_model=MatrixPage)
def read_translation_matrix(
    service: TranslationServiceDep,
    project_id: int,
    limit: Annotated[int, Query(description="Keys per page; -1 for all")] = 10,
    offset: Annotated[int, Query()] = 0,
    keyword: Annotated[str, Query(max_length=200)] = "",
) -> Any:
    """Key -> language code -> cell, paginated over distinct keys."""
    return service.get_matrix(project_id, limit, offset, keyword)


@project_router.get("/export")
def export_translations(
    service: TranslationServiceDep,
    project_id: int,
    format: str = "json",
) -> Response:
    content = service.export(project_id, format)
    return Response(
        content=content,
        media_type="application/json",
        headers={
            "Content-Disposition": (
                f'attachment; filename="project_{project_id}_translations.json"'
            )
        },
    )


@project_router.post("/import", response_model=BatchResult)
async def import_translations(
    request: Request,
    service: TranslationServiceDep,
    actor: ActorDep,
    project_id: int,
    format: str = "json",
) -> Any:
    """Import a raw JSON document (key-first or language-first).

    Strict: an existing key/language pair fails the whole import with 409.
    """
    raw = await request.body()
    created = await run_in_threadpool(
        service.import_data, project_id, raw, format, actor.id
    )
    return BatchResult(count=created)
