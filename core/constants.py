"""
Constants and configuration values for the region translation pipeline.
"""

# Selections smaller than this (in pixels, either axis) are treated as clicks
MIN_SELECTION_PX = 10

# Crops are scaled up before recognition; small speech bubbles OCR poorly
UPSCALE_FACTOR = 2

# If crop height > width * VERTICAL_RATIO the crop holds vertical text
VERTICAL_RATIO = 1.2

# Cleaned local OCR text shorter than this triggers the sparse-text retry
MIN_TEXT_LENGTH = 2

# Default Tesseract language
DEFAULT_LANG = 'jpn'

# Tesseract page segmentation modes
SEGMENTATION_MODES = {
    'uniform_block': 6,
    'sparse_text': 11,
}

# Default Tesseract parameters for the first local attempt
DEFAULT_TESSERACT_PARAMS = {
    'psm': SEGMENTATION_MODES['uniform_block'],
    'preserve_interword_spaces': 1,
}

# Translation (MyMemory free API)
MYMEMORY_URL = 'https://api.mymemory.translated.net/get'
TRANSLATION_MAX_CHARS = 500
DEFAULT_LANGPAIR = 'ja|en'

# Data URL prefix used for remote payloads
PNG_DATA_URL_PREFIX = 'data:image/png;base64,'

# Decimal places kept when hashing a region into an overlay key
REGION_HASH_PRECISION = 4

# User-facing messages
MESSAGES = {
    'no_text': 'No text recognized in this region.',
    'translation_failed': 'Translation failed',
    'not_authenticated': 'Not authenticated.',
    'image_not_loaded': (
        'Image is not fully loaded. Decode the image before running recognition.'
    ),
}
