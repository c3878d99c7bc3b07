"""
Screenshot normalization before OCR.

Downscales a screenshot to fit the configured bounds and applies a fixed
contrast/brightness boost that makes thin app fonts easier to recognize.
"""

import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from tripscan.config import ImageQuality

logger = logging.getLogger(__name__)


CONTRAST = 1.3
BRIGHTNESS = 15


class DecodeError(ValueError):
    """Raised when an image blob cannot be decoded."""


@dataclass(frozen=True)
class NormalizedImage:
    """Encoded image payload ready for an OCR engine."""
    content: bytes
    width: int
    height: int
    format: str

    def to_pil(self) -> Image.Image:
        """Decode the payload back into a PIL image."""
        return Image.open(io.BytesIO(self.content))


def target_size(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """
    Fit (width, height) inside the bounds, preserving aspect ratio.

    Images are only ever scaled down; if both sides already fit the native
    size is kept.
    """
    ratio = min(max_width / width, max_height / height)
    if ratio >= 1:
        return width, height
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def _channel_lut() -> list[int]:
    return [
        max(0, min(255, round(CONTRAST * (value - 128) + 128 + BRIGHTNESS)))
        for value in range(256)
    ]


# Same curve for R, G and B
CONTRAST_LUT = _channel_lut()
IDENTITY_LUT = list(range(256))


def enhance(image: Image.Image) -> Image.Image:
    """Apply the contrast/brightness curve to RGB, leaving alpha untouched."""
    if image.mode == "RGBA":
        return image.point(CONTRAST_LUT * 3 + IDENTITY_LUT)
    return image.point(CONTRAST_LUT * 3)


class ImageNormalizer:
    """
    Rescales and enhances screenshots for OCR.

    Example:
        normalizer = ImageNormalizer(ImageQuality(max_width=1280, max_height=720))
        payload = normalizer.normalize(blob)
    """

    def __init__(self, quality: ImageQuality | None = None) -> None:
        self.quality = quality or ImageQuality()

    def normalize(self, content: bytes) -> NormalizedImage:
        """
        Decode, downscale, enhance and re-encode one image.

        Args:
            content: Raw image bytes (PNG, JPEG, WEBP, ...)

        Returns:
            NormalizedImage in the configured format

        Raises:
            DecodeError: If the bytes are not a decodable image
        """
        try:
            with Image.open(io.BytesIO(content)) as source:
                source.load()
                image = source.convert("RGBA" if _has_alpha(source) else "RGB")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise DecodeError(f"Cannot decode image ({len(content)} bytes): {e}") from e

        width, height = target_size(
            image.width, image.height,
            self.quality.max_width, self.quality.max_height,
        )
        if (width, height) != image.size:
            logger.debug(f"Resizing {image.width}x{image.height} -> {width}x{height}")
            image = image.resize((width, height), Image.Resampling.LANCZOS)

        image = enhance(image)

        return NormalizedImage(
            content=self._encode(image),
            width=width,
            height=height,
            format=self.quality.format,
        )

    def _encode(self, image: Image.Image) -> bytes:
        fmt = self.quality.format
        if fmt == "JPEG" and image.mode == "RGBA":
            image = image.convert("RGB")

        buffer = io.BytesIO()
        if fmt == "PNG":
            image.save(buffer, format=fmt, optimize=True)
        else:
            image.save(buffer, format=fmt, quality=round(self.quality.quality * 100))
        return buffer.getvalue()


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
