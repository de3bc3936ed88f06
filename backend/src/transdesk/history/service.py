import json
from typing import Any

from sqlmodel import Session

from transdesk.core.logging import get_logger
from transdesk.history.crud import create_history, list_history
from transdesk.history.models import HistoryOperation, HistoryQuery, TranslationHistory

logger = get_logger(__name__)


class HistoryRecorder:
    """Writes and reads the translation audit trail.

    Recording is best-effort: it runs after the primary mutation has
    committed, and a failure is logged and swallowed so the caller's
    operation still succeeds.
    """

    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        operation: HistoryOperation,
        *,
        translation_id: int | None,
        project_id: int,
        key_name: str,
        language_id: int,
        old_value: str | None,
        new_value: str | None,
        actor_id: int,
        details: dict[str, Any] | None = None,
    ) -> TranslationHistory | None:
        record = TranslationHistory(
            translation_id=translation_id,
            project_id=project_id,
            key_name=key_name,
            language_id=language_id,
            old_value=old_value,
            new_value=new_value,
            operation=operation,
            operated_by=actor_id,
            details=json.dumps(details, ensure_ascii=False) if details else None,
        )
        try:
            return create_history(session=self.session, record=record)
        except Exception as e:
            self.session.rollback()
            logger.exception(
                "translation_history_record_failed",
                operation=operation.value,
                translation_id=translation_id,
                project_id=project_id,
                error=str(e),
            )
            return None

    def list_by_translation_id(
        self, translation_id: int, query: HistoryQuery
    ) -> tuple[list[TranslationHistory], int]:
        return list_history(
            session=self.session, query=query, translation_id=translation_id
        )

    def list_by_project_id(
        self, project_id: int, query: HistoryQuery
    ) -> tuple[list[TranslationHistory], int]:
        return list_history(session=self.session, query=query, project_id=project_id)

    def list_by_user_id(
        self, user_id: int, query: HistoryQuery
    ) -> tuple[list[TranslationHistory], int]:
        return list_history(session=self.session, query=query, operated_by=user_id)
