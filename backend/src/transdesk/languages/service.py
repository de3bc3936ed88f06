from typing import Protocol

from sqlmodel import Session

from transdesk.core.cache import (
    DASHBOARD_STATS_KEY,
    LANGUAGE_PREFIX,
    LANGUAGES_KEY,
    ReadThroughCache,
    dump_list,
    dump_model,
    list_loader,
    matrix_pattern,
    model_loader,
)
from transdesk.core.exceptions import ConflictError, ResourceNotFoundError
from transdesk.core.logging import get_logger
from transdesk.languages.crud import (
    create_language,
    delete_language,
    get_all_languages,
    get_default_language,
    get_language,
    get_language_by_code,
    update_language,
)
from transdesk.languages.models import Language, LanguageCreate, LanguageUpdate

logger = get_logger(__name__)


class LanguageOperations(Protocol):
    def create(self, language_in: LanguageCreate, actor_id: int) -> Language: ...

    def get_by_id(self, language_id: int) -> Language: ...

    def get_all(self) -> list[Language]: ...

    def get_default(self) -> Language | None: ...

    def update(
        self, language_id: int, language_in: LanguageUpdate, actor_id: int
    ) -> Language: ...

    def delete(self, language_id: int) -> None: ...


class LanguageService:
    """Language directory consumed by the translation core."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, language_in: LanguageCreate, actor_id: int) -> Language:
        code = language_in.code.strip()
        if get_language_by_code(session=self.session, code=code):
            raise ConflictError("Language", f"Language code '{code}' already exists")
        language = create_language(
            session=self.session, language_in=language_in, created_by=actor_id
        )
        logger.info("language_created", language_id=language.id, code=language.code)
        return language

    def get_by_id(self, language_id: int) -> Language:
        language = get_language(session=self.session, language_id=language_id)
        if language is None:
            raise ResourceNotFoundError("Language", str(language_id))
        return language

    def get_all(self) -> list[Language]:
        return get_all_languages(session=self.session)

    def get_default(self) -> Language | None:
        return get_default_language(session=self.session)

    def update(
        self, language_id: int, language_in: LanguageUpdate, actor_id: int
    ) -> Language:
        language = self.get_by_id(language_id)
        return update_language(
            session=self.session,
            db_language=language,
            language_in=language_in,
            updated_by=actor_id,
        )

    def delete(self, language_id: int) -> None:
        language = self.get_by_id(language_id)
        delete_language(session=self.session, db_language=language)
        logger.info("language_deleted", language_id=language_id)


class CachedLanguageService:
    """Caches the language list and lookups.

    Languages are cross-cutting: any change reshapes every project's
    matrix, so writes drop all matrix pages along with the dashboard stats.
    """

    def __init__(self, inner: LanguageOperations, cache: ReadThroughCache):
        self._inner = inner
        self._cache = cache

    def create(self, language_in: LanguageCreate, actor_id: int) -> Language:
        language = self._inner.create(language_in, actor_id)
        self._invalidate(language.id, all_languages=language_in.is_default)
        return language

    def get_by_id(self, language_id: int) -> Language:
        def load() -> Language | None:
            try:
                return self._inner.get_by_id(language_id)
            except ResourceNotFoundError:
                return None

        language = self._cache.fetch(
            f"{LANGUAGE_PREFIX}{language_id}",
            load,
            dump=dump_model,
            load=model_loader(Language),
            empty=lambda: None,
            is_empty=lambda value: value is None,
        )
        if language is None:
            raise ResourceNotFoundError("Language", str(language_id))
        return language

    def get_all(self) -> list[Language]:
        return self._cache.fetch(
            LANGUAGES_KEY,
            self._inner.get_all,
            dump=dump_list,
            load=list_loader(Language),
            empty=list,
            is_empty=lambda value: not value,
        )

    def get_default(self) -> Language | None:
        # Derived from the cached list rather than cached on its own key
        for language in self.get_all():
            if language.is_default:
                return language
        return None

    def update(
        self, language_id: int, language_in: LanguageUpdate, actor_id: int
    ) -> Language:
        language = self._inner.update(language_id, language_in, actor_id)
        self._invalidate(language_id, all_languages=bool(language_in.is_default))
        return language

    def delete(self, language_id: int) -> None:
        self._inner.delete(language_id)
        self._invalidate(language_id)

    def _invalidate(self, language_id: int | None, *, all_languages: bool = False) -> None:
        keys = [LANGUAGES_KEY, DASHBOARD_STATS_KEY]
        if language_id is not None:
            keys.append(f"{LANGUAGE_PREFIX}{language_id}")
        patterns = [matrix_pattern()]
        if all_languages:
            # Default flag moved, every cached language entity is stale
            patterns.append(f"{LANGUAGE_PREFIX}*")
        self._cache.invalidate(*keys, patterns=tuple(patterns))
