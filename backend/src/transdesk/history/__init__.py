from transdesk.history.crud import create_history, list_history
from transdesk.history.models import (
    HistoryOperation,
    HistoryQuery,
    TranslationHistoriesPublic,
    TranslationHistory,
    TranslationHistoryPublic,
)
from transdesk.history.service import HistoryRecorder

__all__ = [
    "HistoryOperation",
    "HistoryQuery",
    "HistoryRecorder",
    "TranslationHistoriesPublic",
    "TranslationHistory",
    "TranslationHistoryPublic",
    "create_history",
    "list_history",
]
