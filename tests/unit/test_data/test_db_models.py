"""
Unit tests for data.db_models module.
"""
import pytest
from datetime import datetime
from sqlalchemy.exc import IntegrityError

from data.db_models import TranslationHistory, WordVaultEntry


def make_history(**overrides):
    values = dict(
        user_id="user-1",
        manga_id="manga-1",
        chapter_id="chapter-1",
        page_index=0,
        region_x=0.1,
        region_y=0.2,
        region_w=0.3,
        region_h=0.4,
        ocr_text="ねこ"
    )
    values.update(overrides)
    return TranslationHistory(**values)


class TestTranslationHistory:
    """Tests for TranslationHistory model."""

    def test_create_history(self, test_db_session):
        """Test creating a history row with defaults."""
        row = make_history()

        test_db_session.add(row)
        test_db_session.commit()

        assert row.id is not None
        assert row.translated == ''
        assert row.visible is True
        assert isinstance(row.created_at, datetime)

    def test_to_dict(self, test_db_session):
        row = make_history(translated="cat", romaji="neko")
        test_db_session.add(row)
        test_db_session.commit()

        data = row.to_dict()

        assert data['region'] == {'x': 0.1, 'y': 0.2, 'w': 0.3, 'h': 0.4}
        assert data['translated'] == "cat"
        assert data['visible'] is True
        assert data['created_at'] is not None

    def test_negative_page_index_rejected(self, test_db_session):
        test_db_session.add(make_history(page_index=-1))

        with pytest.raises(IntegrityError):
            test_db_session.commit()

    def test_zero_width_rejected(self, test_db_session):
        test_db_session.add(make_history(region_w=0.0))

        with pytest.raises(IntegrityError):
            test_db_session.commit()


class TestWordVaultEntry:
    """Tests for WordVaultEntry model."""

    def test_create_entry(self, test_db_session):
        entry = WordVaultEntry(user_id="user-1", original="猫")

        test_db_session.add(entry)
        test_db_session.commit()

        assert entry.id is not None
        assert entry.translated is None
        assert isinstance(entry.created_at, datetime)
