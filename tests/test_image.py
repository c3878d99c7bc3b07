"""
Tests for screenshot normalization before OCR.
"""

import pytest

from tripscan.config import ImageQuality
from tripscan.services.ocr import DecodeError, ImageNormalizer
from tripscan.services.ocr.image import CONTRAST_LUT, target_size


@pytest.mark.parametrize(
    "value, expected",
    [(0, 0), (100, 107), (128, 143), (200, 237), (250, 255)],
)
def test_contrast_curve(value, expected):
    assert CONTRAST_LUT[value] == expected


def test_normalize_applies_contrast_to_every_channel(make_png):
    payload = ImageNormalizer().normalize(make_png(color=(100, 200, 0)))

    image = payload.to_pil()
    assert payload.format == "PNG"
    assert image.format == "PNG"
    assert image.getpixel((0, 0)) == (107, 237, 0)


def test_alpha_channel_is_untouched(make_png):
    content = make_png(color=(100, 100, 100, 128), mode="RGBA")

    image = ImageNormalizer().normalize(content).to_pil()

    assert image.mode == "RGBA"
    assert image.getpixel((0, 0)) == (107, 107, 107, 128)


@pytest.mark.parametrize("content", [b"", b"not an image"])
def test_undecodable_bytes_raise_decode_error(content):
    with pytest.raises(DecodeError):
        ImageNormalizer().normalize(content)


def test_decode_error_is_a_value_error():
    assert issubclass(DecodeError, ValueError)


def test_target_size_scales_down_preserving_aspect():
    assert target_size(3840, 2160, 1920, 1080) == (1920, 1080)
    assert target_size(1080, 2400, 1920, 1080) == (486, 1080)


def test_target_size_never_scales_up():
    assert target_size(400, 300, 1920, 1080) == (400, 300)


def test_large_image_is_downscaled(make_png):
    normalizer = ImageNormalizer(ImageQuality(max_width=100, max_height=100))

    payload = normalizer.normalize(make_png(width=400, height=200))

    assert (payload.width, payload.height) == (100, 50)
    assert payload.to_pil().size == (100, 50)


def test_small_image_keeps_native_size(make_png):
    payload = ImageNormalizer().normalize(make_png(width=40, height=20))

    assert (payload.width, payload.height) == (40, 20)


def test_jpeg_output_drops_alpha(make_png):
    normalizer = ImageNormalizer(ImageQuality(format="JPEG", quality=0.8))
    content = make_png(color=(100, 100, 100, 255), mode="RGBA")

    payload = normalizer.normalize(content)

    image = payload.to_pil()
    assert payload.format == "JPEG"
    assert image.format == "JPEG"
    assert image.mode == "RGB"
