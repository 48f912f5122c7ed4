"""
Repository pattern for data access.

Provides clean separation between data access and business logic. Every
query is scoped to the owning user.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from data.db_models import TranslationHistory, WordVaultEntry


class TranslationHistoryRepository:
    """Repository for TranslationHistory operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        user_id: str,
        manga_id: str,
        chapter_id: str,
        page_index: int,
        region: dict,
        ocr_text: str,
        translated: str = "",
        romaji: Optional[str] = None
    ) -> TranslationHistory:
        """Create a new history row."""
        row = TranslationHistory(
            user_id=user_id,
            manga_id=manga_id,
            chapter_id=chapter_id,
            page_index=page_index,
            region_x=region['x'],
            region_y=region['y'],
            region_w=region['w'],
            region_h=region['h'],
            ocr_text=ocr_text,
            translated=translated,
            romaji=romaji,
            visible=True
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def get_by_id(self, user_id: str, history_id: str) -> Optional[TranslationHistory]:
        """Get a history row owned by the user."""
        return self.session.query(TranslationHistory).filter(
            TranslationHistory.id == history_id,
            TranslationHistory.user_id == user_id
        ).first()

    def list_for_page(
        self,
        user_id: str,
        chapter_id: str,
        page_index: int
    ) -> List[TranslationHistory]:
        """List history rows for one page, newest first."""
        return self.session.query(TranslationHistory)\
            .filter(
                TranslationHistory.user_id == user_id,
                TranslationHistory.chapter_id == chapter_id,
                TranslationHistory.page_index == page_index
            )\
            .order_by(TranslationHistory.created_at.desc())\
            .all()

    def list_for_chapter(self, user_id: str, chapter_id: str) -> List[TranslationHistory]:
        """List history rows for a chapter, newest first."""
        return self.session.query(TranslationHistory)\
            .filter(
                TranslationHistory.user_id == user_id,
                TranslationHistory.chapter_id == chapter_id
            )\
            .order_by(TranslationHistory.created_at.desc())\
            .all()

    def set_visibility(self, user_id: str, history_id: str, visible: bool) -> bool:
        """Persist the show/hide flag. Returns False if the row is missing."""
        row = self.get_by_id(user_id, history_id)
        if not row:
            return False
        row.visible = visible
        self.session.commit()
        return True

    def delete(self, user_id: str, history_id: str) -> bool:
        """Delete a history row."""
        row = self.get_by_id(user_id, history_id)
        if row:
            self.session.delete(row)
            self.session.commit()
            return True
        return False


class WordVaultRepository:
    """Repository for WordVaultEntry operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        user_id: str,
        original: str,
        translated: Optional[str] = None,
        romaji: Optional[str] = None,
        source_page_id: Optional[str] = None
    ) -> WordVaultEntry:
        """Create a vault entry."""
        entry = WordVaultEntry(
            user_id=user_id,
            original=original,
            translated=translated,
            romaji=romaji,
            source_page_id=source_page_id
        )
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        return entry

    def list_all(
        self,
        user_id: str,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[WordVaultEntry]:
        """List the user's vault, newest first. Unbounded unless `limit` is given."""
        query = self.session.query(WordVaultEntry)\
            .filter(WordVaultEntry.user_id == user_id)\
            .order_by(WordVaultEntry.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        return query.all()

    def delete(self, user_id: str, entry_id: str) -> bool:
        """Delete a vault entry."""
        entry = self.session.query(WordVaultEntry).filter(
            WordVaultEntry.id == entry_id,
            WordVaultEntry.user_id == user_id
        ).first()
        if entry:
            self.session.delete(entry)
            self.session.commit()
            return True
        return False
