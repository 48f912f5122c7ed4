"""
Local recognition engine backed by Tesseract.

The engine is treated as an expensive stateful worker: it is created per
selection, reconfigured between attempts and terminated when the selection
is done. ``open_engine`` guarantees the terminate call on every exit path.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

import pytesseract
from PIL import Image

from core.constants import DEFAULT_LANG, DEFAULT_TESSERACT_PARAMS
from core.errors import ConfigurationError, RecognitionEngineError

logger = logging.getLogger(__name__)


class BaseRecognitionEngine(ABC):
    """
    Interface for local recognition engines.

    Implementations hold whatever state the underlying recognizer needs and
    must release it in ``terminate``.
    """

    def __init__(self, lang: str = DEFAULT_LANG):
        self.lang = lang
        self.parameters: Dict[str, int] = dict(DEFAULT_TESSERACT_PARAMS)
        self.terminated = False

    def set_parameters(self, **parameters) -> None:
        """Update engine parameters (e.g. ``psm=11``) for the next call."""
        self._check_alive()
        self.parameters.update(parameters)

    @abstractmethod
    def recognize(self, image: Image.Image) -> str:
        """
        Run recognition on an image.

        Returns:
            Raw recognized text

        Raises:
            RecognitionEngineError: If the engine fails
        """
        pass

    def terminate(self) -> None:
        """Release the engine. Safe to call more than once."""
        if not self.terminated:
            logger.debug("Terminating %s (lang=%s)", type(self).__name__, self.lang)
        self.terminated = True

    def _check_alive(self) -> None:
        if self.terminated:
            raise ConfigurationError("Recognition engine has already been terminated.")


class TesseractEngine(BaseRecognitionEngine):
    """Recognition engine calling the tesseract binary through pytesseract."""

    def __init__(
        self,
        lang: str = DEFAULT_LANG,
        oem: int = 3
    ):
        """
        Initialize Tesseract engine.

        Args:
            lang: Tesseract language code (default: 'jpn')
            oem: OCR engine mode (default: 3, LSTM + legacy as available)
        """
        super().__init__(lang)
        self.oem = oem

    def build_config(self) -> str:
        """Command line config string for the current parameters."""
        parts = [f"--oem {self.oem}", f"--psm {self.parameters['psm']}"]
        for key, value in self.parameters.items():
            if key == 'psm':
                continue
            parts.append(f"-c {key}={value}")
        return " ".join(parts)

    def recognize(self, image: Image.Image) -> str:
        self._check_alive()
        try:
            return pytesseract.image_to_string(
                image,
                lang=self.lang,
                config=self.build_config()
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            message = getattr(e, 'message', None) or str(e)
            raise RecognitionEngineError(message) from e


EngineFactory = Callable[[str], BaseRecognitionEngine]


def tesseract_factory(tesseract_cmd: Optional[str] = None) -> EngineFactory:
    """
    Factory producing TesseractEngine instances for a language.

    The binary path is process-wide in pytesseract and is set once here.
    """
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def create(lang: str) -> BaseRecognitionEngine:
        return TesseractEngine(lang=lang)
    return create


@contextmanager
def open_engine(
    factory: EngineFactory,
    lang: str = DEFAULT_LANG
) -> Iterator[BaseRecognitionEngine]:
    """
    Acquire an engine for one selection and always terminate it.

    Usage:
        with open_engine(factory, 'jpn') as engine:
            text = engine.recognize(image)
    """
    engine = factory(lang)
    logger.debug("Acquired %s (lang=%s)", type(engine).__name__, lang)
    try:
        yield engine
    finally:
        engine.terminate()
