"""Core package - Domain models, constants and errors."""

from .models import (
    Point,
    AbsoluteBox,
    NormalizedRegion,
    SelectionRect,
    PageRef,
    RecognitionResult,
    RasterCrop,
    OverlayEntry,
    VaultEntry,
    Caller,
    RecognitionOutcome
)
from .constants import (
    MIN_SELECTION_PX,
    UPSCALE_FACTOR,
    VERTICAL_RATIO,
    MIN_TEXT_LENGTH,
    DEFAULT_LANG,
    SEGMENTATION_MODES,
    MESSAGES
)
from .errors import (
    MangaOCRError,
    ConfigurationError,
    ImageNotLoadedError,
    RemoteTransportError,
    RecognitionEngineError,
    NoTextRecognizedError,
    TranslationError,
    ValidationError,
    PersistenceError,
    NotAuthenticatedError,
    EntryNotFoundError
)

__all__ = [
    'Point',
    'AbsoluteBox',
    'NormalizedRegion',
    'SelectionRect',
    'PageRef',
    'RecognitionResult',
    'RasterCrop',
    'OverlayEntry',
    'VaultEntry',
    'Caller',
    'RecognitionOutcome',
    'MIN_SELECTION_PX',
    'UPSCALE_FACTOR',
    'VERTICAL_RATIO',
    'MIN_TEXT_LENGTH',
    'DEFAULT_LANG',
    'SEGMENTATION_MODES',
    'MESSAGES',
    'MangaOCRError',
    'ConfigurationError',
    'ImageNotLoadedError',
    'RemoteTransportError',
    'RecognitionEngineError',
    'NoTextRecognizedError',
    'TranslationError',
    'ValidationError',
    'PersistenceError',
    'NotAuthenticatedError',
    'EntryNotFoundError'
]
