"""
Text utilities for the recognition pipeline.

Handles cleanup of recognized and translated text.
"""
import re

WHITESPACE_PATTERN = re.compile(r'\s+')


def clean_text(raw: str) -> str:
    """
    Collapse runs of whitespace into single spaces and trim.

    Applied after every recognition path so empty checks agree. Idempotent.

    Args:
        raw: Text as returned by a recognizer

    Returns:
        Cleaned text ("" for None or whitespace-only input)
    """
    if not raw:
        return ""
    return WHITESPACE_PATTERN.sub(' ', raw).strip()


def truncate_text(text: str, max_chars: int) -> str:
    """
    Cut text to at most `max_chars` characters.

    Args:
        text: Input text
        max_chars: Maximum length

    Returns:
        Text unchanged when short enough, otherwise its prefix
    """
    if len(text) <= max_chars:
        return text
    return text[:max_chars]
