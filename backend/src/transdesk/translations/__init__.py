from transdesk.translations.cached import CachedTranslationService
from transdesk.translations.matrix import build_matrix
from transdesk.translations.models import (
    BatchResult,
    BatchTranslationParams,
    DeleteBatchRequest,
    MatrixPage,
    PushKeysRequest,
    PushKeysResult,
    Translation,
    TranslationBatchRequest,
    TranslationCell,
    TranslationCreate,
    TranslationPublic,
    TranslationsPublic,
    TranslationStatus,
    TranslationUpdate,
)
from transdesk.translations.push import push_keys
from transdesk.translations.service import TranslationOperations, TranslationService
from transdesk.translations.transfer import (
    ImportDocument,
    ImportLayout,
    detect_layout,
    parse_import_payload,
    render_export,
)

__all__ = [
    # Models
    "BatchResult",
    "BatchTranslationParams",
    "DeleteBatchRequest",
    "MatrixPage",
    "PushKeysRequest",
    "PushKeysResult",
    "Translation",
    "TranslationBatchRequest",
    "TranslationCell",
    "TranslationCreate",
    "TranslationPublic",
    "TranslationStatus",
    "TranslationUpdate",
    "TranslationsPublic",
    # Matrix / transfer
    "ImportDocument",
    "ImportLayout",
    "build_matrix",
    "detect_layout",
    "parse_import_payload",
    "render_export",
    # Services
    "CachedTranslationService",
    "TranslationOperations",
    "TranslationService",
    "push_keys",
]
