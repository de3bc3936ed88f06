"""Translation service: the write and read paths over the translation store.

Every mutation validates its references (project, language) before any
write, commits, and only then appends history. History failures never
reach the caller. Conflicts reported by the storage engine come back as
ConflictError through `atomic()`.
"""

from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session

from transdesk.core.db import clamp_page
from transdesk.core.exceptions import (
    ConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from transdesk.core.logging import get_logger
from transdesk.core.uow import atomic
from transdesk.history.models import HistoryOperation
from transdesk.history.service import HistoryRecorder
from transdesk.languages.crud import get_all_languages, get_languages_by_ids
from transdesk.projects.crud import get_project, get_projects_by_ids
from transdesk.translations.crud import (
    add_translations,
    find_existing_triples,
    find_translation_by_triple,
    get_translation,
    get_translations_by_ids,
    get_translations_by_project,
    soft_delete_translation,
    soft_delete_translations,
    update_translation,
    upsert_translations,
)
from transdesk.translations.matrix import build_matrix
from transdesk.translations.models import (
    BatchTranslationParams,
    MatrixPage,
    Translation,
    TranslationCreate,
    TranslationUpdate,
)
from transdesk.translations.transfer import (
    ensure_format,
    parse_import_payload,
    render_export,
)

logger = get_logger(__name__)


class TranslationOperations(Protocol):
    """Capability shared by the plain and the cached translation service."""

    def create(self, translation_in: TranslationCreate, actor_id: int) -> Translation: ...

    def create_batch(
        self, inputs: Sequence[TranslationCreate], actor_id: int | None = None
    ) -> list[Translation]: ...

    def create_batch_from_request(self, params: BatchTranslationParams) -> int: ...

    def upsert_batch(
        self, inputs: Sequence[TranslationCreate], actor_id: int | None = None
    ) -> int: ...

    def get_by_id(self, translation_id: int) -> Translation: ...

    def get_by_project_id(
        self, project_id: int, limit: int, offset: int
    ) -> tuple[list[Translation], int]: ...

    def get_matrix(
        self, project_id: int, limit: int, offset: int, keyword: str = ""
    ) -> MatrixPage: ...

    def update(
        self, translation_id: int, translation_in: TranslationUpdate, actor_id: int
    ) -> Translation: ...

    def delete(self, translation_id: int, actor_id: int) -> None: ...

    def delete_batch(self, ids: Sequence[int]) -> set[int]: ...

    def export(self, project_id: int, format: str = "json") -> bytes: ...

    def import_data(
        self,
        project_id: int,
        raw: bytes,
        format: str = "json",
        actor_id: int | None = None,
    ) -> int: ...


def _triple_dict(triple: tuple[int, str, int]) -> dict[str, Any]:
    project_id, key_name, language_id = triple
    return {"project_id": project_id, "key_name": key_name, "language_id": language_id}


class TranslationService:
    def __init__(self, session: Session, history: HistoryRecorder | None = None):
        self.session = session
        self.history = history or HistoryRecorder(session)

    # Reference checks

    def _ensure_project(self, project_id: int) -> None:
        if get_project(session=self.session, project_id=project_id) is None:
            raise ResourceNotFoundError("Project", str(project_id))

    def _ensure_references(self, inputs: Sequence[TranslationCreate]) -> None:
        """Fail before any write when a referenced project or language is absent."""
        project_ids = {item.project_id for item in inputs}
        found_projects = {
            p.id for p in get_projects_by_ids(session=self.session, project_ids=project_ids)
        }
        missing_projects = sorted(project_ids - found_projects)
        if missing_projects:
            raise ResourceNotFoundError("Project", ", ".join(map(str, missing_projects)))

        language_ids = {item.language_id for item in inputs}
        found_languages = {
            lang.id
            for lang in get_languages_by_ids(session=self.session, language_ids=language_ids)
        }
        missing_languages = sorted(language_ids - found_languages)
        if missing_languages:
            raise ResourceNotFoundError(
                "Language", ", ".join(map(str, missing_languages))
            )

    # Writes

    def create(self, translation_in: TranslationCreate, actor_id: int) -> Translation:
        self._ensure_references([translation_in])
        if find_translation_by_triple(
            session=self.session,
            project_id=translation_in.project_id,
            key_name=translation_in.key_name,
            language_id=translation_in.language_id,
        ):
            raise ConflictError(
                "Translation",
                "Translation already exists for this key and language",
                conflicts=[_triple_dict(translation_in.triple)],
            )

        with atomic(self.session) as uow:
            (translation,) = add_translations(
                session=uow.session, inputs=[translation_in], created_by=actor_id
            )
        self.session.refresh(translation)
        logger.info(
            "translation_created",
            translation_id=translation.id,
            project_id=translation.project_id,
            key_name=translation.key_name,
        )

        self.history.record(
            HistoryOperation.CREATE,
            translation_id=translation.id,
            project_id=translation.project_id,
            key_name=translation.key_name,
            language_id=translation.language_id,
            old_value=None,
            new_value=translation.value,
            actor_id=actor_id,
        )
        return translation

    def create_batch(
        self, inputs: Sequence[TranslationCreate], actor_id: int | None = None
    ) -> list[Translation]:
        """Create every row or none.

        Raises:
            ResourceNotFoundError: a referenced project or language is absent
            ConflictError: a triple repeats inside the batch or is already
                stored; `details["conflicts"]` lists each one
        """
        if not inputs:
            return []
        self._ensure_references(inputs)

        seen: set[tuple[int, str, int]] = set()
        repeated: list[tuple[int, str, int]] = []
        for item in inputs:
            if item.triple in seen:
                repeated.append(item.triple)
            seen.add(item.triple)
        stored = find_existing_triples(session=self.session, triples=seen)

        conflicts = sorted(set(repeated) | stored)
        if conflicts:
            logger.info("translation_batch_conflict", conflicts=len(conflicts))
            raise ConflictError(
                "Translation",
                f"{len(conflicts)} translation(s) already exist or repeat in the batch",
                conflicts=[_triple_dict(t) for t in conflicts],
            )

        with atomic(self.session) as uow:
            created = add_translations(
                session=uow.session, inputs=inputs, created_by=actor_id
            )
            uow.flush()
        logger.info("translation_batch_created", count=len(created))
        return created

    def create_batch_from_request(self, params: BatchTranslationParams) -> int:
        """Upsert one key's values given per language code.

        Empty values and unknown codes are skipped.
        """
        code_to_id = {
            lang.code: lang.id for lang in get_all_languages(session=self.session)
        }
        inputs = [
            TranslationCreate(
                project_id=params.project_id,
                key_name=params.key_name,
                context=params.context,
                language_id=code_to_id[code],
                value=value,
            )
            for code, value in params.translations.items()
            if value and code in code_to_id
        ]
        if not inputs:
            raise ValidationError("No valid translations provided", field="translations")
        return self.upsert_batch(inputs)

    def upsert_batch(
        self, inputs: Sequence[TranslationCreate], actor_id: int | None = None
    ) -> int:
        if not inputs:
            return 0
        self._ensure_references(inputs)
        with atomic(self.session) as uow:
            written = upsert_translations(
                session=uow.session, inputs=inputs, updated_by=actor_id
            )
        # Rows loaded before the upsert may hold stale values
        self.session.expire_all()
        logger.info("translation_batch_upserted", count=written)
        return written

    def update(
        self, translation_id: int, translation_in: TranslationUpdate, actor_id: int
    ) -> Translation:
        translation = self.get_by_id(translation_id)
        old_value = translation.value

        project_id = translation_in.project_id or translation.project_id
        language_id = translation_in.language_id or translation.language_id
        key_name = translation_in.key_name or translation.key_name
        if project_id != translation.project_id:
            self._ensure_project(project_id)
        if language_id != translation.language_id and not get_languages_by_ids(
            session=self.session, language_ids=[language_id]
        ):
            raise ResourceNotFoundError("Language", str(language_id))
        if (project_id, key_name, language_id) != translation.triple and (
            find_translation_by_triple(
                session=self.session,
                project_id=project_id,
                key_name=key_name,
                language_id=language_id,
                exclude_id=translation_id,
            )
        ):
            raise ConflictError(
                "Translation",
                "Translation already exists for this key and language",
                conflicts=[_triple_dict((project_id, key_name, language_id))],
            )

        with atomic(self.session) as uow:
            update_translation(
                session=uow.session,
                db_translation=translation,
                translation_in=translation_in,
                updated_by=actor_id,
            )
        self.session.refresh(translation)
        logger.info("translation_updated", translation_id=translation_id)

        self.history.record(
            HistoryOperation.UPDATE,
            translation_id=translation.id,
            project_id=translation.project_id,
            key_name=translation.key_name,
            language_id=translation.language_id,
            old_value=old_value,
            new_value=translation.value,
            actor_id=actor_id,
        )
        return translation

    def delete(self, translation_id: int, actor_id: int) -> None:
        translation = self.get_by_id(translation_id)
        snapshot = (
            translation.project_id,
            translation.key_name,
            translation.language_id,
            translation.value,
        )
        with atomic(self.session) as uow:
            soft_delete_translation(session=uow.session, db_translation=translation)
        logger.info("translation_deleted", translation_id=translation_id)

        project_id, key_name, language_id, old_value = snapshot
        self.history.record(
            HistoryOperation.DELETE,
            translation_id=translation_id,
            project_id=project_id,
            key_name=key_name,
            language_id=language_id,
            old_value=old_value,
            new_value=None,
            actor_id=actor_id,
        )

    def delete_batch(self, ids: Sequence[int]) -> set[int]:
        """Soft-delete the given translations. Unknown IDs are ignored.

        Returns the IDs of the projects that lost rows.
        """
        if not ids:
            return set()
        targets = get_translations_by_ids(session=self.session, translation_ids=ids)
        project_ids = {t.project_id for t in targets}
        with atomic(self.session) as uow:
            soft_delete_translations(
                session=uow.session, translation_ids=[t.id for t in targets]
            )
        logger.info("translation_batch_deleted", count=len(targets))
        return project_ids

    # Reads

    def get_by_id(self, translation_id: int) -> Translation:
        translation = get_translation(session=self.session, translation_id=translation_id)
        if translation is None:
            raise ResourceNotFoundError("Translation", str(translation_id))
        return translation

    def get_by_project_id(
        self, project_id: int, limit: int, offset: int
    ) -> tuple[list[Translation], int]:
        limit, offset = clamp_page(limit, offset)
        self._ensure_project(project_id)
        return get_translations_by_project(
            session=self.session, project_id=project_id, skip=offset, limit=limit
        )

    def get_matrix(
        self, project_id: int, limit: int, offset: int, keyword: str = ""
    ) -> MatrixPage:
        self._ensure_project(project_id)
        return build_matrix(
            session=self.session,
            project_id=project_id,
            limit=limit,
            offset=offset,
            keyword=keyword,
        )

    # Transfer

    def export(self, project_id: int, format: str = "json") -> bytes:
        ensure_format(format)
        page = self.get_matrix(project_id, -1, 0)
        return render_export(page.as_values(), format)

    def import_data(
        self,
        project_id: int,
        raw: bytes,
        format: str = "json",
        actor_id: int | None = None,
    ) -> int:
        """Strictly create every translation in an import document.

        Existing keys are never overwritten: any collision fails the whole
        import with ConflictError. Values for unknown language codes are
        skipped. Returns the number of created rows.
        """
        ensure_format(format)
        self._ensure_project(project_id)
        code_to_id = {
            lang.code: lang.id for lang in get_all_languages(session=self.session)
        }
        document = parse_import_payload(raw, set(code_to_id))

        inputs: list[TranslationCreate] = []
        skipped_codes: set[str] = set()
        for key_name, values in document.values.items():
            for code, value in values.items():
                language_id = code_to_id.get(code)
                if language_id is None:
                    skipped_codes.add(code)
                    continue
                try:
                    item = TranslationCreate.model_validate(
                        {
                            "project_id": project_id,
                            "key_name": key_name,
                            "language_id": language_id,
                            "value": value,
                        }
                    )
                except PydanticValidationError as e:
                    raise ValidationError(
                        f"Invalid translation key '{key_name[:50]}'", field="key_name"
                    ) from e
                inputs.append(item)
        if skipped_codes:
            logger.info(
                "translation_import_unknown_languages",
                project_id=project_id,
                codes=sorted(skipped_codes),
            )
        if not inputs:
            raise ValidationError("No valid translations found in import data", field="body")

        created = self.create_batch(inputs, actor_id=actor_id)
        logger.info(
            "translation_imported",
            project_id=project_id,
            layout=document.layout.value,
            count=len(created),
        )

        if actor_id is not None:
            for translation in created:
                self.history.record(
                    HistoryOperation.IMPORT,
                    translation_id=translation.id,
                    project_id=translation.project_id,
                    key_name=translation.key_name,
                    language_id=translation.language_id,
                    old_value=None,
                    new_value=translation.value,
                    actor_id=actor_id,
                    details={"layout": document.layout.value},
                )
        return len(created)
