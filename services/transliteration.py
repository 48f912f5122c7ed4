"""Japanese to romaji transliteration."""
import logging
from functools import lru_cache

import pykakasi

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _converter() -> pykakasi.kakasi:
    return pykakasi.kakasi()


def to_romaji(text: str) -> str:
    """
    Convert Japanese text (kana / kanji) to Hepburn romaji.

    Never raises: on any converter error the input is returned unchanged.
    """
    if not text:
        return ""
    try:
        parts = _converter().convert(text)
        romaji = " ".join(part['hepburn'] for part in parts if part.get('hepburn'))
    except Exception as e:
        logger.debug("Transliteration failed, returning input: %s", e)
        return text
    return romaji.strip() or text
