"""
Unit tests for utils.cropper module.
"""
import pytest
from PIL import Image

from core.errors import ImageNotLoadedError
from core.models import NormalizedRegion
from utils.cropper import (
    crop_region,
    crop_to_data_url,
    ensure_image_loaded,
    is_vertical,
    region_to_pixels
)
from utils.image_utils import decode_data_url


class TestRegionToPixels:
    """Tests for region_to_pixels function."""

    def test_half_region(self):
        region = NormalizedRegion(x=0.25, y=0.25, w=0.5, h=0.5)

        assert region_to_pixels(region, (1000, 1000)) == (250, 250, 500, 500)

    def test_minimum_one_pixel(self):
        """Test tiny regions still produce a 1x1 crop."""
        region = NormalizedRegion(x=0.0, y=0.0, w=0.0001, h=0.0001)

        _, _, width, height = region_to_pixels(region, (100, 100))

        assert width == 1
        assert height == 1


class TestIsVertical:
    """Tests for is_vertical function."""

    def test_tall_crop(self):
        assert is_vertical(100, 300)

    def test_square_and_wide_crops(self):
        assert not is_vertical(100, 100)
        assert not is_vertical(100, 120)
        assert not is_vertical(300, 100)


class TestCropRegion:
    """Tests for crop_region function."""

    def test_upscaled_half_crop(self, sample_page_image):
        """Test a 0.5 x 0.5 region of 1000x1000 is 500x500 then 1000x1000."""
        region = NormalizedRegion(x=0.25, y=0.25, w=0.5, h=0.5)

        crop = crop_region(sample_page_image, region, upscale_factor=2)

        assert crop.source_box == (250, 250, 500, 500)
        assert crop.size == (1000, 1000)
        assert crop.rotated is False

    def test_vertical_crop_rotated(self):
        """Test a 100x300 crop is turned into a wide 600x200 image."""
        image = Image.new('RGB', (100, 300), color='white')
        # Mark the top-left corner so the rotation direction is observable
        image.paste((255, 0, 0), (0, 0, 20, 20))
        region = NormalizedRegion(x=0.0, y=0.0, w=1.0, h=1.0)

        crop = crop_region(image, region, upscale_factor=2)

        assert crop.rotated is True
        assert crop.size == (600, 200)
        # Clockwise turn moves the top-left corner to the top-right
        r, g, b = crop.image.getpixel((599, 0))
        assert r > 200 and g < 100

    def test_wide_crop_not_rotated(self):
        image = Image.new('RGB', (300, 100), color='white')
        region = NormalizedRegion(x=0.0, y=0.0, w=1.0, h=1.0)

        crop = crop_region(image, region, upscale_factor=2)

        assert crop.rotated is False
        assert crop.size == (600, 200)

    def test_rotation_disabled(self):
        image = Image.new('RGB', (100, 300), color='white')
        region = NormalizedRegion(x=0.0, y=0.0, w=1.0, h=1.0)

        crop = crop_region(image, region, upscale_factor=2, rotate_vertical=False)

        assert crop.rotated is False
        assert crop.size == (200, 600)

    def test_rgba_converted(self):
        image = Image.new('RGBA', (50, 50), color=(0, 0, 0, 0))
        region = NormalizedRegion(x=0.0, y=0.0, w=1.0, h=1.0)

        crop = crop_region(image, region, upscale_factor=1)

        assert crop.image.mode == 'RGB'

    def test_empty_image_rejected(self):
        image = Image.new('RGB', (0, 0))

        with pytest.raises(ImageNotLoadedError):
            crop_region(image, NormalizedRegion(0.0, 0.0, 0.5, 0.5))

    def test_missing_image_rejected(self):
        with pytest.raises(ImageNotLoadedError):
            ensure_image_loaded(None)


class TestCropToDataUrl:
    """Tests for crop_to_data_url function."""

    def test_remote_crop_is_unrotated(self):
        """Test the remote payload keeps the original orientation."""
        image = Image.new('RGB', (100, 300), color='white')
        region = NormalizedRegion(x=0.0, y=0.0, w=1.0, h=1.0)

        data_url = crop_to_data_url(image, region, upscale_factor=2)

        assert data_url.startswith("data:image/png;base64,")
        assert decode_data_url(data_url).size == (200, 600)
