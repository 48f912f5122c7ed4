"""
Core domain models for the region translation pipeline.

These are pure data structures without business logic.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from PIL import Image


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class Point:
    """Pointer position relative to the scrollable container."""
    x: float
    y: float


@dataclass(frozen=True)
class AbsoluteBox:
    """Pixel box relative to a container element. Never persisted."""
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'left': self.left,
            'top': self.top,
            'width': self.width,
            'height': self.height
        }


@dataclass(frozen=True)
class NormalizedRegion:
    """
    Region expressed as fractions (0..1) of the image's natural dimensions.

    Always build through ``clamped`` when the inputs come from user
    interaction; the constructor itself only validates.
    """
    x: float
    y: float
    w: float
    h: float

    def __post_init__(self):
        for name in ('x', 'y', 'w', 'h'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"region.{name} must be in 0..1 (got {value})")
        # Small float error from clamping is tolerated
        if self.x + self.w > 1.0 + 1e-9 or self.y + self.h > 1.0 + 1e-9:
            raise ValueError("region must lie inside the image (x+w <= 1, y+h <= 1)")

    @classmethod
    def clamped(cls, x: float, y: float, w: float, h: float) -> "NormalizedRegion":
        """Clamp raw fractions into a valid region."""
        cx = _clamp(x)
        cy = _clamp(y)
        cw = _clamp(w, 0.0, 1.0 - cx)
        ch = _clamp(h, 0.0, 1.0 - cy)
        return cls(x=cx, y=cy, w=cw, h=ch)

    @classmethod
    def from_dict(cls, data: dict) -> "NormalizedRegion":
        return cls(x=data['x'], y=data['y'], w=data['w'], h=data['h'])

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {'x': self.x, 'y': self.y, 'w': self.w, 'h': self.h}


@dataclass(frozen=True)
class SelectionRect:
    """A finished drag: normalized region plus the dragged pixel box."""
    region: NormalizedRegion
    abs_box: AbsoluteBox


@dataclass(frozen=True)
class PageRef:
    """Identifies one displayed page of a chapter."""
    manga_id: str
    chapter_id: str
    page_index: int


@dataclass
class RecognitionResult:
    """Recognized text with optional translation and romaji."""
    text: str
    translated: Optional[str] = None
    phonetic: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass
class RasterCrop:
    """Recognition-ready crop of a source image."""
    image: Image.Image
    source_box: tuple  # (left, top, width, height) in natural pixels
    rotated: bool = False

    @property
    def size(self) -> tuple:
        return self.image.size


@dataclass
class OverlayEntry:
    """
    A recognition result placed on a page.

    Ephemeral entries have no ``history_id``; persisted ones carry the row id,
    the page they belong to and the user-controlled ``visible`` flag.
    """
    result: RecognitionResult
    region: NormalizedRegion
    history_id: Optional[str] = None
    page_ref: Optional[PageRef] = None
    visible: bool = True
    created_at: Optional[datetime] = None

    @property
    def is_persisted(self) -> bool:
        return self.history_id is not None

    def with_visibility(self, visible: bool) -> "OverlayEntry":
        return replace(self, visible=visible)


@dataclass
class VaultEntry:
    """Saved word/phrase, independent of any page or region."""
    id: str
    original: str
    translated: Optional[str] = None
    phonetic: Optional[str] = None
    source_page_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'original': self.original,
            'translated': self.translated,
            'phonetic': self.phonetic,
            'source_page_id': self.source_page_id,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


@dataclass
class Caller:
    """Authenticated user on whose behalf persistence calls are made."""
    user_id: str
    access_token: Optional[str] = None


@dataclass
class RecognitionOutcome:
    """Final result of one orchestrator run plus how it was obtained."""
    result: RecognitionResult
    source: str  # 'remote' or 'local'
    retried: bool = False
    translation_error: Optional[str] = None
    remote_error: Optional[str] = None
    stages: list = field(default_factory=list)
