"""
Image utilities for the recognition pipeline.

Handles image loading and base64 / data URL conversion.
"""
import base64
import binascii
import re
from io import BytesIO
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from core.constants import PNG_DATA_URL_PREFIX

DATA_URL_PATTERN = re.compile(r'^data:([^;]+);base64,(.+)$', re.DOTALL)


def load_image(image_path: str) -> Image.Image:
    """
    Load an image from disk and fully decode it.

    Args:
        image_path: Path to the image file

    Returns:
        Decoded PIL Image with EXIF orientation applied
    """
    img = Image.open(image_path)

    # Fix EXIF orientation
    img = ImageOps.exif_transpose(img)

    # Convert to RGB
    if img.mode in ('RGBA', 'LA', 'P'):
        img = img.convert('RGB')

    img.load()
    return img


def image_to_base64(img: Image.Image) -> str:
    """
    Encode a PIL image as base64 PNG.

    Args:
        img: PIL Image

    Returns:
        Base64-encoded PNG string
    """
    buf = BytesIO()
    img.save(buf, format='PNG')
    return base64.b64encode(buf.getvalue()).decode()


def image_to_data_url(img: Image.Image) -> str:
    """Encode a PIL image as a ``data:image/png;base64,...`` URL."""
    return PNG_DATA_URL_PREFIX + image_to_base64(img)


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URL into mime type and raw bytes.

    Args:
        data_url: String of the form ``data:<mime>;base64,<payload>``

    Returns:
        Tuple of (mime, bytes)

    Raises:
        ValueError: If the string is not a base64 data URL
    """
    if not data_url or not data_url.startswith('data:'):
        raise ValueError("imageDataUrl must be a valid data URL (data:image/...;base64,...)")

    match = DATA_URL_PATTERN.match(data_url)
    if not match:
        raise ValueError("Invalid data URL format (expected base64 data URL).")

    try:
        payload = base64.b64decode(match.group(2), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e

    return match.group(1), payload


def decode_data_url(data_url: str) -> Image.Image:
    """
    Decode a data URL into a loaded PIL image.

    Raises:
        ValueError: If the URL is malformed or does not hold an image
    """
    _, payload = parse_data_url(data_url)
    try:
        img = Image.open(BytesIO(payload))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Data URL does not contain a readable image: {e}") from e
    return img
