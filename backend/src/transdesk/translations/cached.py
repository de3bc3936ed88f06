"""Read-through cache in front of TranslationService.

Reads go through ReadThroughCache (per-key lock, empty sentinel, jittered
TTL). Writes call the wrapped service first and invalidate only once it
returned: the touched entity keys, the affected projects' matrix and list
pages, and the dashboard stats. Nothing is invalidated when a write raises.
"""

from collections.abc import Iterable, Sequence

from transdesk.core.cache import (
    DASHBOARD_STATS_KEY,
    TRANSLATION_ITEM_PREFIX,
    ReadThroughCache,
    dump_model,
    dump_page,
    matrix_key,
    matrix_pattern,
    model_loader,
    page_is_empty,
    page_loader,
    translation_item_key,
    translation_list_key,
    translation_list_pattern,
)
from transdesk.core.config import settings
from transdesk.core.db import clamp_page
from transdesk.core.exceptions import ResourceNotFoundError
from transdesk.translations.models import (
    BatchTranslationParams,
    MatrixPage,
    Translation,
    TranslationCreate,
    TranslationUpdate,
)
from transdesk.translations.service import TranslationOperations
from transdesk.translations.transfer import ensure_format, render_export


def _empty_page() -> MatrixPage:
    return MatrixPage(matrix={}, total=0)


class CachedTranslationService:
    def __init__(self, inner: TranslationOperations, cache: ReadThroughCache):
        self._inner = inner
        self._cache = cache

    # Writes

    def create(self, translation_in: TranslationCreate, actor_id: int) -> Translation:
        translation = self._inner.create(translation_in, actor_id)
        self._invalidate([translation.project_id], item_ids=[translation.id])
        return translation

    def create_batch(
        self, inputs: Sequence[TranslationCreate], actor_id: int | None = None
    ) -> list[Translation]:
        created = self._inner.create_batch(inputs, actor_id)
        if created:
            self._invalidate(
                {item.project_id for item in inputs},
                item_ids=[translation.id for translation in created],
            )
        return created

    def create_batch_from_request(self, params: BatchTranslationParams) -> int:
        written = self._inner.create_batch_from_request(params)
        # Upserted rows may have cached entities, their IDs are unknown here
        self._invalidate([params.project_id], all_items=True)
        return written

    def upsert_batch(
        self, inputs: Sequence[TranslationCreate], actor_id: int | None = None
    ) -> int:
        written = self._inner.upsert_batch(inputs, actor_id)
        if written:
            self._invalidate({item.project_id for item in inputs}, all_items=True)
        return written

    def update(
        self, translation_id: int, translation_in: TranslationUpdate, actor_id: int
    ) -> Translation:
        previous_project = self._inner.get_by_id(translation_id).project_id
        translation = self._inner.update(translation_id, translation_in, actor_id)
        self._invalidate(
            {previous_project, translation.project_id}, item_ids=[translation_id]
        )
        return translation

    def delete(self, translation_id: int, actor_id: int) -> None:
        project_id = self._inner.get_by_id(translation_id).project_id
        self._inner.delete(translation_id, actor_id)
        self._invalidate([project_id], item_ids=[translation_id])

    def delete_batch(self, ids: Sequence[int]) -> set[int]:
        project_ids = self._inner.delete_batch(ids)
        if project_ids:
            self._invalidate(project_ids, item_ids=ids)
        return project_ids

    def import_data(
        self,
        project_id: int,
        raw: bytes,
        format: str = "json",
        actor_id: int | None = None,
    ) -> int:
        created = self._inner.import_data(project_id, raw, format, actor_id)
        # New rows may hold IDs that were cached as missing
        self._invalidate([project_id], all_items=True)
        return created

    # Reads

    def get_by_id(self, translation_id: int) -> Translation:
        def load() -> Translation | None:
            try:
                return self._inner.get_by_id(translation_id)
            except ResourceNotFoundError:
                return None

        translation = self._cache.fetch(
            translation_item_key(translation_id),
            load,
            dump=dump_model,
            load=model_loader(Translation),
            empty=lambda: None,
            is_empty=lambda value: value is None,
        )
        if translation is None:
            raise ResourceNotFoundError("Translation", str(translation_id))
        return translation

    def get_by_project_id(
        self, project_id: int, limit: int, offset: int
    ) -> tuple[list[Translation], int]:
        limit, offset = clamp_page(limit, offset)
        return self._cache.fetch(
            translation_list_key(project_id, limit, offset),
            lambda: self._inner.get_by_project_id(project_id, limit, offset),
            dump=dump_page,
            load=page_loader(Translation),
            empty=lambda: ([], 0),
            is_empty=page_is_empty,
        )

    def get_matrix(
        self, project_id: int, limit: int, offset: int, keyword: str = ""
    ) -> MatrixPage:
        # Every "no pagination" spelling shares one key
        limit = limit if limit > 0 else -1
        offset = max(offset, 0)
        keyword = keyword.strip()
        return self._cache.fetch(
            matrix_key(project_id, limit, offset, keyword),
            lambda: self._inner.get_matrix(project_id, limit, offset, keyword),
            dump=lambda page: page.model_dump_json(),
            load=MatrixPage.model_validate_json,
            empty=_empty_page,
            is_empty=lambda page: page.total == 0,
            base_ttl=settings.CACHE_SEARCH_TTL_SECONDS if keyword else None,
        )

    def export(self, project_id: int, format: str = "json") -> bytes:
        ensure_format(format)
        page = self.get_matrix(project_id, -1, 0)
        return render_export(page.as_values(), format)

    def _invalidate(
        self,
        project_ids: Iterable[int],
        *,
        item_ids: Iterable[int] = (),
        all_items: bool = False,
    ) -> None:
        keys = [DASHBOARD_STATS_KEY, *(translation_item_key(i) for i in item_ids)]
        patterns: list[str] = []
        for project_id in sorted(set(project_ids)):
            patterns.append(matrix_pattern(project_id))
            patterns.append(translation_list_pattern(project_id))
        if all_items:
            patterns.append(f"{TRANSLATION_ITEM_PREFIX}*")
        self._cache.invalidate(*keys, patterns=tuple(patterns))
