"""
Japanese to English translation through the free MyMemory API.

- Empty / whitespace-only input returns "" without a request.
- Input longer than the configured maximum is truncated before sending.
- Network, status and parse errors all raise TranslationError("Translation failed").
"""
import logging
from typing import Optional

import httpx

from core.constants import DEFAULT_LANGPAIR, MYMEMORY_URL, TRANSLATION_MAX_CHARS
from core.errors import TranslationError
from utils.text_utils import clean_text, truncate_text

logger = logging.getLogger(__name__)


class TranslationService:
    """Plain-text translator backed by a MyMemory-compatible endpoint."""

    def __init__(
        self,
        url: str = MYMEMORY_URL,
        langpair: str = DEFAULT_LANGPAIR,
        max_chars: int = TRANSLATION_MAX_CHARS,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.url = url
        self.langpair = langpair
        self.max_chars = max_chars
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def translate(self, text: str) -> str:
        """
        Translate a piece of text.

        Args:
            text: Text to translate

        Returns:
            Translated text with whitespace collapsed

        Raises:
            TranslationError: On any failure
        """
        trimmed = (text or "").strip()
        if not trimmed:
            return ""

        query = truncate_text(trimmed, self.max_chars)

        try:
            response = await self.client.get(
                self.url,
                params={"q": query, "langpair": self.langpair}
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Translation request failed: %s", e)
            raise TranslationError() from e

        translated = ""
        if isinstance(data, dict):
            response_data = data.get('responseData') or {}
            translated = str(response_data.get('translatedText') or '').strip()

        if not translated:
            logger.warning("Translation response had no translatedText")
            raise TranslationError()

        return clean_text(translated)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
