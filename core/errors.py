"""
Error types for the region translation pipeline.

Each failure family gets its own class so callers can tell transport
problems (with status and body) from local engine failures (message only)
and from validation or persistence problems.
"""
from typing import Optional

from .constants import MESSAGES


class MangaOCRError(Exception):
    """Base error for the pipeline."""


class ConfigurationError(MangaOCRError):
    """Precondition violated (image not decoded, engine unavailable). Not retried."""


class ImageNotLoadedError(ConfigurationError):
    def __init__(self, message: str = MESSAGES['image_not_loaded']):
        super().__init__(message)


class RemoteTransportError(MangaOCRError):
    """Remote recognition call failed (network, non-2xx, empty payload)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message)

    @property
    def details(self) -> str:
        """Diagnostic string in the form ``status=<code> body=<text>``."""
        if self.status_code is None:
            return str(self)
        details = f"status={self.status_code}"
        if self.body:
            details += f" body={self.body}"
        return details


class RecognitionEngineError(MangaOCRError):
    """The local recognition engine raised."""

    def __init__(self, engine_message: str):
        self.engine_message = engine_message
        super().__init__(f"OCR failed: {engine_message}")


class NoTextRecognizedError(MangaOCRError):
    def __init__(self, message: str = MESSAGES['no_text']):
        super().__init__(message)


class TranslationError(MangaOCRError):
    def __init__(self, message: str = MESSAGES['translation_failed']):
        super().__init__(message)


class ValidationError(MangaOCRError, ValueError):
    """Invalid input to a persistence or pipeline call."""


class PersistenceError(MangaOCRError):
    """A durable write or read failed."""


class NotAuthenticatedError(PersistenceError):
    def __init__(self, message: str = MESSAGES['not_authenticated']):
        super().__init__(message)


class EntryNotFoundError(PersistenceError):
    def __init__(self, kind: str, entry_id: str):
        self.kind = kind
        self.entry_id = entry_id
        super().__init__(f"{kind} entry not found: {entry_id}")
