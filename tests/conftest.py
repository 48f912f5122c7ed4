"""
Pytest configuration and global fixtures.
"""
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.models import Caller
from data.db_models import Base
from services.ocr_engine import BaseRecognitionEngine


@pytest.fixture
def test_db_engine():
    """Create in-memory SQLite engine for tests."""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def test_session_factory(test_db_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(bind=test_db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def test_db_session(test_session_factory):
    """Create fresh database session for each test."""
    session = test_session_factory()

    yield session

    # Rollback any uncommitted changes and close
    session.rollback()
    session.close()


@pytest.fixture
def caller():
    return Caller(user_id="user-1", access_token="token-1")


@pytest.fixture
def temp_dir(tmp_path):
    """Provide temporary directory for test files."""
    return tmp_path


@pytest.fixture
def sample_image_path(temp_dir):
    """Create a sample test image."""
    from PIL import Image

    img_path = temp_dir / "test_image.png"
    img = Image.new('RGB', (800, 600), color='white')
    img.save(img_path)

    return str(img_path)


@pytest.fixture
def sample_page_image():
    """Decoded 1000x1000 page image."""
    from PIL import Image

    img = Image.new('RGB', (1000, 1000), color='white')
    img.load()
    return img


@pytest.fixture
def sample_data_url():
    """Small PNG encoded as a data URL."""
    import base64
    from io import BytesIO
    from PIL import Image

    img = Image.new('RGB', (100, 40), color='blue')
    buf = BytesIO()
    img.save(buf, format='PNG')
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode()


class FakeEngine(BaseRecognitionEngine):
    """Recognition engine returning scripted outputs, one per call."""

    def __init__(self, outputs, lang='jpn', error=None):
        super().__init__(lang)
        self.outputs = list(outputs)
        self.error = error
        self.calls = []

    def recognize(self, image):
        self._check_alive()
        self.calls.append((image.size, dict(self.parameters)))
        if self.error is not None:
            raise self.error
        return self.outputs.pop(0) if self.outputs else ""


class FakeEngineFactory:
    """Engine factory recording every engine it creates."""

    def __init__(self, outputs=(), error=None):
        self.outputs = outputs
        self.error = error
        self.engines = []

    def __call__(self, lang):
        engine = FakeEngine(self.outputs, lang=lang, error=self.error)
        self.engines.append(engine)
        return engine


class FakeTranslator:
    """Translator stand-in with a canned answer or error."""

    def __init__(self, answer="translated text", error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    async def translate(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.answer

    async def close(self):
        pass


@pytest.fixture
def engine_factory():
    return FakeEngineFactory


@pytest.fixture
def fake_translator():
    return FakeTranslator
