from transdesk.languages.crud import (
    count_languages,
    create_language,
    delete_language,
    get_all_languages,
    get_default_language,
    get_language,
    get_language_by_code,
    get_languages_by_ids,
    update_language,
)
from transdesk.languages.models import (
    Language,
    LanguageBase,
    LanguageCreate,
    LanguagePublic,
    LanguageStatus,
    LanguageUpdate,
)
from transdesk.languages.service import (
    CachedLanguageService,
    LanguageOperations,
    LanguageService,
)

__all__ = [
    # Models
    "Language",
    "LanguageBase",
    "LanguageCreate",
    "LanguagePublic",
    "LanguageStatus",
    "LanguageUpdate",
    # CRUD
    "count_languages",
    "create_language",
    "delete_language",
    "get_all_languages",
    "get_default_language",
    "get_language",
    "get_language_by_code",
    "get_languages_by_ids",
    "update_language",
    # Services
    "CachedLanguageService",
    "LanguageOperations",
    "LanguageService",
]
