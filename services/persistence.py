"""
Persistence Gateway

Contract through which recognition results become durable history and
vault rows, plus a SQLAlchemy-backed implementation. Every call is made on
behalf of an authenticated caller; calls without one fail with
NotAuthenticatedError instead of silently doing nothing.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import EntryNotFoundError, NotAuthenticatedError, PersistenceError, ValidationError
from core.models import Caller, NormalizedRegion, OverlayEntry, PageRef, RecognitionResult, VaultEntry
from data.db_models import TranslationHistory, WordVaultEntry
from data.repositories import TranslationHistoryRepository, WordVaultRepository

logger = logging.getLogger(__name__)


class PersistenceGateway(ABC):
    """Abstract CRUD surface for history and vault rows."""

    @abstractmethod
    def create_history_entry(
        self,
        region: NormalizedRegion,
        page_ref: PageRef,
        result: RecognitionResult
    ) -> str:
        """Store a history row and return its id. Duplicates are allowed."""
        pass

    @abstractmethod
    def set_history_visibility(self, history_id: str, visible: bool) -> None:
        pass

    @abstractmethod
    def delete_history_entry(self, history_id: str) -> None:
        pass

    @abstractmethod
    def create_vault_entry(self, result: RecognitionResult, source_page_id: Optional[str] = None) -> str:
        pass

    @abstractmethod
    def delete_vault_entry(self, entry_id: str) -> None:
        pass

    @abstractmethod
    def list_history_for_page(self, page_ref: PageRef) -> List[OverlayEntry]:
        """History entries of one page, newest first."""
        pass

    @abstractmethod
    def list_history_for_chapter(self, chapter_id: str) -> List[OverlayEntry]:
        pass

    @abstractmethod
    def list_vault(self) -> List[VaultEntry]:
        """Vault entries, newest first."""
        pass


def validate_history_input(region: NormalizedRegion, page_ref: PageRef, result: RecognitionResult) -> None:
    """
    Check a history row before writing it.

    Raises:
        ValidationError: On empty ids, negative page index, empty region or text
    """
    if not page_ref.manga_id or not isinstance(page_ref.manga_id, str):
        raise ValidationError("manga_id must be a non-empty string")
    if not page_ref.chapter_id or not isinstance(page_ref.chapter_id, str):
        raise ValidationError("chapter_id must be a non-empty string")
    if not isinstance(page_ref.page_index, int) or page_ref.page_index < 0:
        raise ValidationError("page_index must be a non-negative integer")
    if region.w <= 0 or region.h <= 0:
        raise ValidationError("region must have a positive width and height")
    if not result.text or not result.text.strip():
        raise ValidationError("ocr_text must be a non-empty string")


def history_row_to_entry(row: TranslationHistory) -> OverlayEntry:
    return OverlayEntry(
        result=RecognitionResult(
            text=row.ocr_text,
            translated=row.translated or None,
            phonetic=row.romaji
        ),
        region=NormalizedRegion.clamped(row.region_x, row.region_y, row.region_w, row.region_h),
        history_id=row.id,
        page_ref=PageRef(
            manga_id=row.manga_id,
            chapter_id=row.chapter_id,
            page_index=row.page_index
        ),
        visible=bool(row.visible),
        created_at=row.created_at
    )


def vault_row_to_entry(row: WordVaultEntry) -> VaultEntry:
    return VaultEntry(
        id=row.id,
        original=row.original,
        translated=row.translated,
        phonetic=row.romaji,
        source_page_id=row.source_page_id,
        created_at=row.created_at
    )


class SQLPersistenceGateway(PersistenceGateway):
    """Gateway storing rows through the SQLAlchemy repositories."""

    def __init__(self, session: Session, caller: Optional[Caller]):
        """
        Initialize gateway.

        Args:
            session: SQLAlchemy database session
            caller: Authenticated caller, or None when signed out
        """
        self.session = session
        self.caller = caller
        self.history = TranslationHistoryRepository(session)
        self.vault = WordVaultRepository(session)

    def _user_id(self) -> str:
        if self.caller is None or not self.caller.user_id:
            raise NotAuthenticatedError()
        return self.caller.user_id

    def _write(self, operation, *args, **kwargs):
        """Run a repository write, turning driver errors into PersistenceError."""
        try:
            return operation(*args, **kwargs)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Persistence write failed: %s", e)
            raise PersistenceError(f"Could not save: {e}") from e

    def create_history_entry(
        self,
        region: NormalizedRegion,
        page_ref: PageRef,
        result: RecognitionResult
    ) -> str:
        user_id = self._user_id()
        validate_history_input(region, page_ref, result)
        row = self._write(
            self.history.create,
            user_id=user_id,
            manga_id=page_ref.manga_id,
            chapter_id=page_ref.chapter_id,
            page_index=page_ref.page_index,
            region=region.to_dict(),
            ocr_text=result.text.strip(),
            translated=result.translated or "",
            romaji=result.phonetic
        )
        return row.id

    def set_history_visibility(self, history_id: str, visible: bool) -> None:
        user_id = self._user_id()
        if not self._write(self.history.set_visibility, user_id, history_id, visible):
            raise EntryNotFoundError('history', history_id)

    def delete_history_entry(self, history_id: str) -> None:
        user_id = self._user_id()
        if not history_id:
            raise ValidationError("id must be a non-empty string")
        if not self._write(self.history.delete, user_id, history_id):
            raise EntryNotFoundError('history', history_id)

    def create_vault_entry(self, result: RecognitionResult, source_page_id: Optional[str] = None) -> str:
        user_id = self._user_id()
        if not result.text or not result.text.strip():
            raise ValidationError("original must be a non-empty string")
        entry = self._write(
            self.vault.create,
            user_id=user_id,
            original=result.text,
            translated=result.translated,
            romaji=result.phonetic,
            source_page_id=source_page_id
        )
        return entry.id

    def delete_vault_entry(self, entry_id: str) -> None:
        user_id = self._user_id()
        if not entry_id:
            raise ValidationError("id must be a non-empty string")
        if not self._write(self.vault.delete, user_id, entry_id):
            raise EntryNotFoundError('vault', entry_id)

    def list_history_for_page(self, page_ref: PageRef) -> List[OverlayEntry]:
        user_id = self._user_id()
        rows = self.history.list_for_page(user_id, page_ref.chapter_id, page_ref.page_index)
        return [history_row_to_entry(row) for row in rows]

    def list_history_for_chapter(self, chapter_id: str) -> List[OverlayEntry]:
        user_id = self._user_id()
        if not chapter_id:
            raise ValidationError("chapter_id must be a non-empty string")
        rows = self.history.list_for_chapter(user_id, chapter_id)
        return [history_row_to_entry(row) for row in rows]

    def list_vault(self) -> List[VaultEntry]:
        user_id = self._user_id()
        return [vault_row_to_entry(row) for row in self.vault.list_all(user_id)]
