"""Classify CLI key pushes into added / existed / failed.

Two modes, picked from the request shape:

- push-keys (`keys` given): keys already in the project are `existed`;
  every other key gets one create per language, and is `added` when at
  least one create succeeded or `failed` when all of them errored.
- bulk import (no `keys`, `translations` given): every non-empty value for
  a known language is upserted in one batch. Keys already in the project
  are `existed`, the rest `added`; if the upsert fails the `added` keys
  move to `failed`.
"""

from collections.abc import Sequence

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from transdesk.core.exceptions import AppException
from transdesk.core.logging import get_logger
from transdesk.languages.models import Language
from transdesk.translations.models import (
    PushKeysRequest,
    PushKeysResult,
    TranslationCreate,
)
from transdesk.translations.service import TranslationOperations

logger = get_logger(__name__)


def push_keys(
    request: PushKeysRequest,
    *,
    translations: TranslationOperations,
    languages: Sequence[Language],
    actor_id: int,
) -> PushKeysResult:
    """Apply a CLI push. The project must already be known to exist."""
    existing = translations.get_matrix(request.project_id, -1, 0).matrix
    if not request.keys and request.translations:
        return _bulk_import(request, translations, languages, existing, actor_id)
    return _push_new_keys(request, translations, languages, existing, actor_id)


def _bulk_import(
    request: PushKeysRequest,
    translations: TranslationOperations,
    languages: Sequence[Language],
    existing: dict,
    actor_id: int,
) -> PushKeysResult:
    code_to_id = {lang.code: lang.id for lang in languages}
    result = PushKeysResult()
    inputs: list[TranslationCreate] = []

    for code, entries in (request.translations or {}).items():
        language_id = code_to_id.get(code)
        if language_id is None:
            continue
        for key, value in entries.items():
            if not value:
                continue
            try:
                item = TranslationCreate(
                    project_id=request.project_id,
                    key_name=key,
                    language_id=language_id,
                    value=value,
                )
            except PydanticValidationError:
                logger.info("cli_push_invalid_key", key=key[:100])
                if key not in result.failed:
                    result.failed.append(key)
                continue
            inputs.append(item)
            if key not in result.existed and key not in result.added:
                (result.existed if key in existing else result.added).append(key)

    if not inputs:
        return result

    try:
        translations.upsert_batch(inputs, actor_id)
    except (AppException, SQLAlchemyError) as e:
        logger.warning(
            "cli_bulk_import_failed",
            project_id=request.project_id,
            error_type=type(e).__name__,
            error=str(e),
        )
        result.failed = [*result.failed, *result.added]
        result.added = []
    return result


def _push_new_keys(
    request: PushKeysRequest,
    translations: TranslationOperations,
    languages: Sequence[Language],
    existing: dict,
    actor_id: int,
) -> PushKeysResult:
    default = next((lang for lang in languages if lang.is_default), None)
    if default is None and languages:
        default = languages[0]

    result = PushKeysResult()
    for key in request.keys:
        if key in existing:
            result.existed.append(key)
            continue

        added = False
        for language in languages:
            if request.translations is not None:
                value = request.translations.get(language.code, {}).get(key, "")
            elif default is not None and language.code == default.code:
                value = request.defaults.get(key, "")
            else:
                value = ""
            try:
                translations.create(
                    TranslationCreate(
                        project_id=request.project_id,
                        key_name=key,
                        language_id=language.id,
                        value=value,
                    ),
                    actor_id,
                )
                added = True
            except (AppException, PydanticValidationError, SQLAlchemyError) as e:
                logger.info(
                    "cli_push_create_failed",
                    key=key[:100],
                    language=language.code,
                    error=str(e),
                )

        if added:
            result.added.append(key)
        elif languages:
            result.failed.append(key)
    return result
