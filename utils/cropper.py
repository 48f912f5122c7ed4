"""
Region cropping for recognition.

Crops a normalized region from the source image at its natural resolution,
upscales it and turns tall (vertical text) crops on their side so the
recognizer always sees nominally horizontal text.
"""
import logging

from PIL import Image

from core.constants import UPSCALE_FACTOR, VERTICAL_RATIO
from core.errors import ImageNotLoadedError
from core.models import NormalizedRegion, RasterCrop
from .image_utils import image_to_data_url

logger = logging.getLogger(__name__)


def ensure_image_loaded(image: Image.Image) -> None:
    """
    Raise ImageNotLoadedError unless the image has decoded pixel data.

    Args:
        image: PIL image to check
    """
    if image is None:
        raise ImageNotLoadedError()
    width, height = image.size
    if width == 0 or height == 0:
        raise ImageNotLoadedError()
    try:
        image.load()
    except OSError as e:
        raise ImageNotLoadedError(f"Image could not be decoded: {e}") from e


def region_to_pixels(region: NormalizedRegion, natural_size: tuple) -> tuple:
    """
    Pixel crop rectangle for a region against natural image dimensions.

    Args:
        region: Normalized region
        natural_size: (width, height) of the unscaled source image

    Returns:
        Tuple (left, top, width, height); width and height are at least 1
    """
    nw, nh = natural_size
    left = round(region.x * nw)
    top = round(region.y * nh)
    width = max(round(region.w * nw), 1)
    height = max(round(region.h * nh), 1)
    return left, top, width, height


def is_vertical(width: int, height: int, ratio: float = VERTICAL_RATIO) -> bool:
    """Tall-and-narrow crops are assumed to hold vertical text."""
    return height > width * ratio


def crop_region(
    source_image: Image.Image,
    region: NormalizedRegion,
    upscale_factor: int = UPSCALE_FACTOR,
    rotate_vertical: bool = True,
    vertical_ratio: float = VERTICAL_RATIO
) -> RasterCrop:
    """
    Produce a recognition-ready crop.

    Args:
        source_image: Fully decoded PIL image
        region: Normalized region to crop
        upscale_factor: Scale applied in both dimensions
        rotate_vertical: Rotate tall crops 90 degrees clockwise
        vertical_ratio: Height/width ratio above which a crop is vertical

    Returns:
        RasterCrop with the scaled (and possibly rotated) image

    Raises:
        ImageNotLoadedError: If the image has no decoded pixels
    """
    ensure_image_loaded(source_image)

    left, top, width, height = region_to_pixels(region, source_image.size)
    crop = source_image.crop((left, top, left + width, top + height))

    if crop.mode not in ('RGB', 'L'):
        crop = crop.convert('RGB')

    scaled = crop.resize(
        (width * upscale_factor, height * upscale_factor),
        Image.Resampling.LANCZOS
    )

    rotated = rotate_vertical and is_vertical(width, height, vertical_ratio)
    if rotated:
        # ROTATE_270 is a 90 degree clockwise turn
        scaled = scaled.transpose(Image.Transpose.ROTATE_270)

    logger.debug(
        "Cropped %dx%d at (%d,%d) -> %dx%d%s",
        width, height, left, top, scaled.width, scaled.height,
        " (rotated)" if rotated else ""
    )

    return RasterCrop(
        image=scaled,
        source_box=(left, top, width, height),
        rotated=rotated
    )


def crop_to_data_url(
    source_image: Image.Image,
    region: NormalizedRegion,
    upscale_factor: int = UPSCALE_FACTOR
) -> str:
    """Upscaled, unrotated crop encoded as a PNG data URL for the remote call."""
    crop = crop_region(
        source_image,
        region,
        upscale_factor=upscale_factor,
        rotate_vertical=False
    )
    return image_to_data_url(crop.image)
