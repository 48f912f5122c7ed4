"""Utilities package - Helper functions for geometry, images and text."""

from .image_utils import (
    load_image,
    image_to_base64,
    image_to_data_url,
    parse_data_url,
    decode_data_url
)

from .geometry import (
    drag_to_box,
    compute_selection,
    compute_region,
    region_to_box,
    region_hash,
    overlay_key
)

from .cropper import (
    ensure_image_loaded,
    region_to_pixels,
    is_vertical,
    crop_region,
    crop_to_data_url
)

from .text_utils import (
    clean_text,
    truncate_text
)

__all__ = [
    # Image utils
    'load_image',
    'image_to_base64',
    'image_to_data_url',
    'parse_data_url',
    'decode_data_url',

    # Geometry
    'drag_to_box',
    'compute_selection',
    'compute_region',
    'region_to_box',
    'region_hash',
    'overlay_key',

    # Cropping
    'ensure_image_loaded',
    'region_to_pixels',
    'is_vertical',
    'crop_region',
    'crop_to_data_url',

    # Text utils
    'clean_text',
    'truncate_text'
]
