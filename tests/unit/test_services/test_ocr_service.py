"""
Unit tests for services.ocr_service module.
"""
import asyncio
import json

import httpx
import pytest
from PIL import Image

from core.errors import (
    ConfigurationError,
    ImageNotLoadedError,
    NoTextRecognizedError,
    RecognitionEngineError,
    RemoteTransportError,
    TranslationError
)
from core.models import NormalizedRegion
from services.ocr_service import OCRService, RecognitionStage, after_local, after_remote
from services.remote_client import RemoteRecognitionClient
from utils.image_utils import decode_data_url

HALF = NormalizedRegion(x=0.25, y=0.25, w=0.5, h=0.5)


def remote_returning(status=200, payload=None, calls=None):
    def handler(request):
        if calls is not None:
            calls.append(request)
        if status != 200:
            return httpx.Response(status, text="remote failure")
        return httpx.Response(200, json=payload or {})

    return RemoteRecognitionClient(
        url="http://remote.test/ocr-translate",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


def build_service(factory, translator, remote_client=None, **kwargs):
    return OCRService(
        engine_factory=factory,
        translator=translator,
        remote_client=remote_client,
        remote_enabled=remote_client is not None,
        **kwargs
    )


class TestTransitions:
    """Tests for the pure stage transition functions."""

    def test_after_remote(self):
        assert after_remote("猫") == RecognitionStage.DONE
        assert after_remote(None) == RecognitionStage.LOCAL_ATTEMPT
        assert after_remote("") == RecognitionStage.LOCAL_ATTEMPT
        assert after_remote(None, remote_only=True) == RecognitionStage.FAILED

    def test_after_local_retry_only_once(self):
        """Test short text retries from the first attempt only."""
        assert after_local("a", RecognitionStage.LOCAL_ATTEMPT) == RecognitionStage.LOCAL_RETRY
        assert after_local("", RecognitionStage.LOCAL_ATTEMPT) == RecognitionStage.LOCAL_RETRY
        assert after_local("a", RecognitionStage.LOCAL_RETRY) == RecognitionStage.DONE
        assert after_local("", RecognitionStage.LOCAL_RETRY) == RecognitionStage.FAILED
        assert after_local("ねこ", RecognitionStage.LOCAL_ATTEMPT) == RecognitionStage.DONE


class TestRemotePath:
    """Tests for the remote-first path."""

    def test_remote_success_skips_local(self, sample_page_image, engine_factory, fake_translator):
        """Test a remote answer with text never touches the local engine."""
        factory = engine_factory(["should not be used"])
        translator = fake_translator()
        remote = remote_returning(payload={"ocrText": "こんにちは", "translated": "Hello", "romaji": "konnichiha"})
        service = build_service(factory, translator, remote)

        outcome = asyncio.run(service.recognize_region(sample_page_image, HALF, access_token="tok"))

        assert outcome.source == 'remote'
        assert outcome.result.text == "こんにちは"
        assert outcome.result.translated == "Hello"
        assert outcome.result.phonetic == "konnichiha"
        assert factory.engines == []
        assert translator.calls == []

    def test_remote_crop_sent_unrotated(self, engine_factory, fake_translator):
        """Test the remote call receives the upscaled crop in its original orientation."""
        calls = []
        remote = remote_returning(payload={"ocrText": "縦書き"}, calls=calls)
        service = build_service(engine_factory(), fake_translator(), remote)
        image = Image.new('RGB', (100, 300), color='white')

        asyncio.run(service.recognize_region(image, NormalizedRegion(0.0, 0.0, 1.0, 1.0), access_token="tok"))

        sent = decode_data_url(json.loads(calls[0].content)['imageDataUrl'])
        assert sent.size == (200, 600)

    def test_remote_without_romaji_transliterated(self, sample_page_image, engine_factory, fake_translator):
        remote = remote_returning(payload={"ocrText": "ねこ", "translated": "cat"})
        service = build_service(engine_factory(), fake_translator(), remote)

        outcome = asyncio.run(service.recognize_region(sample_page_image, HALF, access_token="tok"))

        assert outcome.result.phonetic == "neko"

    def test_remote_empty_falls_back_to_local(self, sample_page_image, engine_factory, fake_translator):
        """Test empty remote text runs one local engine, terminated afterwards."""
        factory = engine_factory(["ねこです"])
        translator = fake_translator("It is a cat")
        remote = remote_returning(payload={"ocrText": "   ", "translated": ""})
        service = build_service(factory, translator, remote)

        outcome = asyncio.run(service.recognize_region(sample_page_image, HALF, access_token="tok"))

        assert outcome.source == 'local'
        assert outcome.result.text == "ねこです"
        assert outcome.result.translated == "It is a cat"
        assert len(factory.engines) == 1
        assert factory.engines[0].terminated
        assert translator.calls == ["ねこです"]
        assert outcome.stages[0] == RecognitionStage.REMOTE_ATTEMPT

    def test_remote_error_falls_back_with_details(self, sample_page_image, engine_factory, fake_translator):
        factory = engine_factory(["ねこです"])
        remote = remote_returning(status=500)
        service = build_service(factory, fake_translator(), remote)

        outcome = asyncio.run(service.recognize_region(sample_page_image, HALF, access_token="tok"))

        assert outcome.source == 'local'
        assert outcome.remote_error == "status=500 body=remote failure"

    def test_missing_token_falls_back(self, sample_page_image, engine_factory, fake_translator):
        """Test a signed-out caller still gets local recognition."""
        calls = []
        factory = engine_factory(["ねこです"])
        remote = remote_returning(payload={"ocrText": "x"}, calls=calls)
        service = build_service(factory, fake_translator(), remote)

        outcome = asyncio.run(service.recognize_region(sample_page_image, HALF, access_token=None))

        assert outcome.source == 'local'
        assert calls == []

    def test_remote_only_propagates_error(self, sample_page_image, engine_factory, fake_translator):
        factory = engine_factory(["ねこです"])
        service = build_service(factory, fake_translator(), remote_returning(status=502))

        with pytest.raises(RemoteTransportError):
            asyncio.run(service.recognize_region(
                sample_page_image, HALF, access_token="tok", remote_only=True
            ))

        assert factory.engines == []

    def test_remote_only_empty_text(self, sample_page_image, engine_factory, fake_translator):
        factory = engine_factory(["ねこです"])
        service = build_service(factory, fake_translator(), remote_returning(payload={"ocrText": ""}))

        with pytest.raises(NoTextRecognizedError):
            asyncio.run(service.recognize_region(
                sample_page_image, HALF, access_token="tok", remote_only=True
            ))

        assert factory.engines == []

    def test_remote_only_without_client(self, sample_page_image, engine_factory, fake_translator):
        service = build_service(engine_factory(), fake_translator())

        with pytest.raises(ConfigurationError):
            asyncio.run(service.recognize_region(sample_page_image, HALF, remote_only=True))

    def test_prefer_remote_false_skips_remote(self, sample_page_image, engine_factory, fake_translator):
        calls = []
        factory = engine_factory(["ねこです"])
        remote = remote_returning(payload={"ocrText": "遠隔"}, calls=calls)
        service = build_service(factory, fake_translator(), remote)

        outcome = asyncio.run(service.recognize_region(
            sample_page_image, HALF, access_token="tok", prefer_remote=False
        ))

        assert outcome.source == 'local'
        assert calls == []


class TestLocalPath:
    """Tests for local recognition and its retry policy."""

    def test_short_text_retries_sparse_mode(self, sample_page_image, engine_factory, fake_translator):
        """Test text under two characters triggers one retry with PSM 11."""
        factory = engine_factory(["a", "ねこです"])
        service = build_service(factory, fake_translator())

        outcome = asyncio.run(service.recognize_region(sample_page_image, HALF))

        engine = factory.engines[0]
        assert [params['psm'] for _, params in engine.calls] == [6, 11]
        assert engine.calls[0][1]['preserve_interword_spaces'] == 1
        assert outcome.retried is True
        assert outcome.result.text == "ねこです"
        assert engine.terminated

    def test_short_retry_result_accepted(self, sample_page_image, engine_factory, fake_translator):
        factory = engine_factory(["a", "b"])
        service = build_service(factory, fake_translator())

        outcome = asyncio.run(service.recognize_region(sample_page_image, HALF))

        assert outcome.result.text == "b"
        assert len(factory.engines[0].calls) == 2

    def test_no_retry_for_long_text(self, sample_page_image, engine_factory, fake_translator):
        factory = engine_factory([" ねこ\n です "])
        service = build_service(factory, fake_translator())

        outcome = asyncio.run(service.recognize_region(sample_page_image, HALF))

        assert outcome.result.text == "ねこ です"
        assert outcome.retried is False
        assert len(factory.engines[0].calls) == 1

    def test_total_failure(self, sample_page_image, engine_factory, fake_translator):
        """Test nothing recognized raises without calling translation."""
        factory = engine_factory(["", "  \n "])
        translator = fake_translator()
        service = build_service(factory, translator)

        with pytest.raises(NoTextRecognizedError) as exc_info:
            asyncio.run(service.recognize_region(sample_page_image, HALF))

        assert str(exc_info.value) == "No text recognized in this region."
        assert translator.calls == []
        assert factory.engines[0].terminated

    def test_engine_error(self, sample_page_image, engine_factory, fake_translator):
        factory = engine_factory(error=RuntimeError("tesseract crashed"))
        translator = fake_translator()
        service = build_service(factory, translator)

        with pytest.raises(RecognitionEngineError) as exc_info:
            asyncio.run(service.recognize_region(sample_page_image, HALF))

        assert str(exc_info.value) == "OCR failed: tesseract crashed"
        assert translator.calls == []
        assert factory.engines[0].terminated

    def test_translation_failure_keeps_text(self, sample_page_image, engine_factory, fake_translator):
        """Test a failed translation still returns the recognized text."""
        factory = engine_factory(["ねこです"])
        service = build_service(factory, fake_translator(error=TranslationError()))

        outcome = asyncio.run(service.recognize_region(sample_page_image, HALF))

        assert outcome.result.text == "ねこです"
        assert outcome.result.translated is None
        assert outcome.result.phonetic
        assert outcome.translation_error == "Translation failed"

    def test_vertical_crop_rotated_for_engine(self, engine_factory, fake_translator):
        factory = engine_factory(["縦書き"])
        service = build_service(factory, fake_translator())
        image = Image.new('RGB', (100, 300), color='white')

        asyncio.run(service.recognize_region(image, NormalizedRegion(0.0, 0.0, 1.0, 1.0)))

        size, _ = factory.engines[0].calls[0]
        assert size == (600, 200)

    def test_engine_gets_language(self, sample_page_image, engine_factory, fake_translator):
        factory = engine_factory(["text"])
        service = build_service(factory, fake_translator(), lang='jpn_vert')

        asyncio.run(service.recognize_region(sample_page_image, HALF))

        assert factory.engines[0].lang == 'jpn_vert'

    def test_image_not_loaded(self, engine_factory, fake_translator):
        factory = engine_factory(["text"])
        service = build_service(factory, fake_translator())

        with pytest.raises(ImageNotLoadedError):
            asyncio.run(service.recognize_region(Image.new('RGB', (0, 0)), HALF))

        assert factory.engines == []
