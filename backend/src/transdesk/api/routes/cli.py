from typing import Any

from fastapi import APIRouter

from transdesk.api.deps import (
    ActorDep,
    LanguageServiceDep,
    ProjectServiceDep,
    TranslationServiceDep,
)
from transdesk.translations import PushKeysRequest, PushKeysResult, push_keys

router = APIRouter(prefix="/cli", tags=["cli"])


@router.get("/translations", response_model=dict[str, dict[str, str]])
def pull_translations(
    translations: TranslationServiceDep,
    projects: ProjectServiceDep,
    project_id: int,
    locale: str = "",
) -> Any:
    """Full matrix as key -> language code -> value, optionally one locale only."""
    projects.get_by_id(project_id)
    values = translations.get_matrix(project_id, -1, 0).as_values()
    if not locale:
        return values
    return {
        key: {locale: by_code[locale]}
        for key, by_code in values.items()
        if locale in by_code
    }


@router.post("/keys", response_model=PushKeysResult)
def push_translation_keys(
    translations: TranslationServiceDep,
    projects: ProjectServiceDep,
    languages: LanguageServiceDep,
    actor: ActorDep,
    push_in: PushKeysRequest,
) -> Any:
    """Push keys from a codebase scan, or bulk-import values when no keys are given.

    Always answers 200 with per-key outcomes so the CLI can retry `failed`.
    """
    projects.get_by_id(push_in.project_id)
    return push_keys(
        push_in,
        translations=translations,
        languages=languages.get_all(),
        actor_id=actor.id,
    )
