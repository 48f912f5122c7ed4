"""
OCR Service - Orchestrates recognition and translation of a page region.

Each selection runs through a small state machine:

    REMOTE_ATTEMPT -> LOCAL_ATTEMPT -> LOCAL_RETRY -> DONE | FAILED

The remote function is tried first (unless disabled); failures or empty text
fall back to the local Tesseract engine followed by a separate translation
call. Transitions are pure functions so the retry policy can be tested
without any engine.
"""
import asyncio
import logging
from enum import Enum
from typing import List, Optional, Tuple

from PIL import Image

from core.constants import DEFAULT_LANG, MIN_TEXT_LENGTH, SEGMENTATION_MODES, UPSCALE_FACTOR, VERTICAL_RATIO
from core.errors import (
    ConfigurationError,
    MangaOCRError,
    NoTextRecognizedError,
    RecognitionEngineError,
    RemoteTransportError,
    TranslationError
)
from core.models import NormalizedRegion, RecognitionOutcome, RecognitionResult
from utils.cropper import crop_region, crop_to_data_url, ensure_image_loaded
from utils.text_utils import clean_text
from .ocr_engine import BaseRecognitionEngine, EngineFactory, open_engine
from .remote_client import RemoteRecognitionClient
from .translation_service import TranslationService
from .transliteration import to_romaji

logger = logging.getLogger(__name__)


class RecognitionStage(str, Enum):
    REMOTE_ATTEMPT = "remote_attempt"
    LOCAL_ATTEMPT = "local_attempt"
    LOCAL_RETRY = "local_retry"
    DONE = "done"
    FAILED = "failed"


def after_remote(text: Optional[str], remote_only: bool = False) -> RecognitionStage:
    """
    Next stage after the remote attempt.

    Args:
        text: Cleaned remote text, or None if the call failed
        remote_only: Caller refuses the local fallback
    """
    if text:
        return RecognitionStage.DONE
    if remote_only:
        return RecognitionStage.FAILED
    return RecognitionStage.LOCAL_ATTEMPT


def after_local(
    text: str,
    stage: RecognitionStage,
    min_length: int = MIN_TEXT_LENGTH
) -> RecognitionStage:
    """
    Next stage after a local recognition call.

    Only the first local attempt may trigger a retry; the retry result is
    accepted as-is, however short.
    """
    if stage == RecognitionStage.LOCAL_ATTEMPT and len(text) < min_length:
        return RecognitionStage.LOCAL_RETRY
    return RecognitionStage.DONE if text else RecognitionStage.FAILED


class OCRService:
    """Service orchestrating remote and local recognition for a region."""

    def __init__(
        self,
        engine_factory: EngineFactory,
        translator: TranslationService,
        remote_client: Optional[RemoteRecognitionClient] = None,
        remote_enabled: bool = True,
        lang: str = DEFAULT_LANG,
        upscale_factor: int = UPSCALE_FACTOR,
        vertical_ratio: float = VERTICAL_RATIO,
        min_text_length: int = MIN_TEXT_LENGTH
    ):
        """
        Initialize OCR service.

        Args:
            engine_factory: Callable creating a local engine for a language
            translator: Translation service for the local path
            remote_client: Remote ocr-translate client (optional)
            remote_enabled: Try the remote function first by default
            lang: Local engine language hint (default: 'jpn')
            upscale_factor: Crop upscale factor (default: 2)
            vertical_ratio: Height/width ratio marking vertical text
            min_text_length: Local text shorter than this triggers the retry
        """
        self.engine_factory = engine_factory
        self.translator = translator
        self.remote_client = remote_client
        self.remote_enabled = remote_enabled
        self.lang = lang
        self.upscale_factor = upscale_factor
        self.vertical_ratio = vertical_ratio
        self.min_text_length = min_text_length

    async def recognize_region(
        self,
        image: Image.Image,
        region: NormalizedRegion,
        access_token: Optional[str] = None,
        prefer_remote: Optional[bool] = None,
        remote_only: bool = False
    ) -> RecognitionOutcome:
        """
        Recognize and translate the text inside a region.

        Args:
            image: Fully decoded source page
            region: Normalized region to read
            access_token: Bearer token for the remote call
            prefer_remote: Override the configured remote-first default
            remote_only: Fail instead of falling back to local recognition

        Returns:
            RecognitionOutcome with the result and how it was produced

        Raises:
            ImageNotLoadedError: If the image is not decoded
            RemoteTransportError: Remote failure in remote-only mode
            RecognitionEngineError: Local engine failure
            NoTextRecognizedError: Nothing recognized on any path
        """
        ensure_image_loaded(image)

        use_remote = self.remote_enabled if prefer_remote is None else prefer_remote
        if remote_only:
            use_remote = True
        if use_remote and self.remote_client is None:
            if remote_only:
                raise ConfigurationError("Remote-only recognition requested but no remote client is configured.")
            use_remote = False

        stages: List[RecognitionStage] = []
        remote_error = None

        if use_remote:
            stages.append(RecognitionStage.REMOTE_ATTEMPT)
            result, remote_error = await self._remote_attempt(image, region, access_token, remote_only)
            stage = after_remote(result.text if result else None, remote_only)
            if stage == RecognitionStage.DONE:
                stages.append(stage)
                return RecognitionOutcome(result=result, source='remote', stages=stages)
            if stage == RecognitionStage.FAILED:
                # Only reachable for empty remote text; transport errors re-raise above
                raise NoTextRecognizedError()

        crop = crop_region(
            image,
            region,
            upscale_factor=self.upscale_factor,
            rotate_vertical=True,
            vertical_ratio=self.vertical_ratio
        )
        text, local_stages = await self.recognize_local(crop.image)
        stages.extend(local_stages)

        if not text:
            stages.append(RecognitionStage.FAILED)
            logger.info("No text recognized in region %s", region.to_dict())
            raise NoTextRecognizedError()

        result, translation_error = await self.finish_local(text)
        stages.append(RecognitionStage.DONE)
        return RecognitionOutcome(
            result=result,
            source='local',
            retried=RecognitionStage.LOCAL_RETRY in local_stages,
            translation_error=translation_error,
            remote_error=remote_error,
            stages=stages
        )

    async def _remote_attempt(
        self,
        image: Image.Image,
        region: NormalizedRegion,
        access_token: Optional[str],
        remote_only: bool
    ) -> Tuple[Optional[RecognitionResult], Optional[str]]:
        """Run the remote call; returns (result or None, error description)."""
        image_data_url = crop_to_data_url(image, region, upscale_factor=self.upscale_factor)
        try:
            payload = await self.remote_client.recognize(image_data_url, access_token)
        except MangaOCRError as e:
            if remote_only:
                raise
            details = e.details if isinstance(e, RemoteTransportError) else str(e)
            logger.warning("Remote recognition failed, falling back to local: %s", details)
            return None, details

        text = clean_text(payload.ocr_text)
        if not text:
            if not remote_only:
                logger.info("Remote returned empty OCR text, falling back to local")
            return None, "Remote returned empty OCR text."

        return RecognitionResult(
            text=text,
            translated=payload.translated or None,
            phonetic=payload.romaji or to_romaji(text)
        ), None

    async def recognize_local(self, crop_image: Image.Image) -> Tuple[str, List[RecognitionStage]]:
        """
        Run the local engine on a prepared crop, retrying once in sparse mode.

        The engine is acquired for this call only and terminated on exit.

        Returns:
            Tuple of (cleaned text, stages visited)
        """
        stages = [RecognitionStage.LOCAL_ATTEMPT]
        with open_engine(self.engine_factory, self.lang) as engine:
            engine.set_parameters(
                psm=SEGMENTATION_MODES['uniform_block'],
                preserve_interword_spaces=1
            )
            text = await self._run_engine(engine, crop_image)

            if after_local(text, RecognitionStage.LOCAL_ATTEMPT, self.min_text_length) == RecognitionStage.LOCAL_RETRY:
                logger.info("Local OCR returned %d chars, retrying with sparse text mode", len(text))
                stages.append(RecognitionStage.LOCAL_RETRY)
                engine.set_parameters(psm=SEGMENTATION_MODES['sparse_text'])
                text = await self._run_engine(engine, crop_image)

        return text, stages

    async def _run_engine(self, engine: BaseRecognitionEngine, image: Image.Image) -> str:
        try:
            raw = await asyncio.to_thread(engine.recognize, image)
        except RecognitionEngineError:
            raise
        except Exception as e:
            raise RecognitionEngineError(str(e)) from e
        return clean_text(raw)

    async def finish_local(self, text: str) -> Tuple[RecognitionResult, Optional[str]]:
        """
        Translate and transliterate locally recognized text.

        A translation failure keeps the recognized text; the error message is
        returned alongside so the caller can report it separately.
        """
        translation_error = None
        try:
            translated = await self.translator.translate(text) or None
        except TranslationError as e:
            logger.warning("Translation failed for recognized text: %s", e)
            translated = None
            translation_error = str(e)

        return RecognitionResult(
            text=text,
            translated=translated,
            phonetic=to_romaji(text)
        ), translation_error
