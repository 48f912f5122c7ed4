"""
Database models for translation history and the word vault.

History rows are tied to a page region; vault rows are free-standing
saved words/phrases.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Float, Index, Integer, String, Text
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def generate_uuid():
    """Generate UUID string for primary keys."""
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TranslationHistory(Base):
    """A recognized and translated region on a chapter page."""

    __tablename__ = 'translation_history'
    __table_args__ = (
        CheckConstraint('page_index >= 0', name='ck_history_page_index'),
        CheckConstraint('region_x >= 0 AND region_x <= 1', name='ck_history_region_x'),
        CheckConstraint('region_y >= 0 AND region_y <= 1', name='ck_history_region_y'),
        CheckConstraint('region_w > 0 AND region_w <= 1', name='ck_history_region_w'),
        CheckConstraint('region_h > 0 AND region_h <= 1', name='ck_history_region_h'),
        Index('translation_history_user_created_idx', 'user_id', 'created_at'),
        Index('translation_history_chapter_idx', 'chapter_id', 'page_index'),
    )

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False)
    manga_id = Column(String, nullable=False)
    chapter_id = Column(String, nullable=False)

    # 0-based page index within the chapter
    page_index = Column(Integer, nullable=False)

    # Normalized region (fractions of natural image size)
    region_x = Column(Float, nullable=False)
    region_y = Column(Float, nullable=False)
    region_w = Column(Float, nullable=False)
    region_h = Column(Float, nullable=False)

    ocr_text = Column(Text, nullable=False)
    translated = Column(Text, nullable=False, default='')
    romaji = Column(Text)

    # User-controlled show/hide flag, persisted so it survives reloads
    visible = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return (
            f"<TranslationHistory(id={self.id}, chapter_id={self.chapter_id}, "
            f"page={self.page_index}, visible={self.visible})>"
        )

    def to_dict(self):
        """Convert to dictionary for API responses."""
        return {
            'id': self.id,
            'manga_id': self.manga_id,
            'chapter_id': self.chapter_id,
            'page_index': self.page_index,
            'region': {
                'x': self.region_x,
                'y': self.region_y,
                'w': self.region_w,
                'h': self.region_h
            },
            'ocr_text': self.ocr_text,
            'translated': self.translated,
            'romaji': self.romaji,
            'visible': self.visible,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class WordVaultEntry(Base):
    """A saved word or phrase, independent of any region."""

    __tablename__ = 'word_vault'
    __table_args__ = (
        Index('word_vault_user_created_idx', 'user_id', 'created_at'),
    )

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False)
    original = Column(Text, nullable=False)
    translated = Column(Text)
    romaji = Column(Text)
    source_page_id = Column(String)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<WordVaultEntry(id={self.id}, original={self.original[:20]!r})>"
