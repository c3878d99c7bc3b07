"""
OCR subpackage - Screenshot normalization, recognition and field extraction.
"""

from .engine import (
    DoctrEngine,
    EngineError,
    OCREngine,
    RecognitionResult,
    TesseractEngine,
    create_engine,
)
from .extractor import ScreenshotFieldExtractor, extract_fields
from .image import DecodeError, ImageNormalizer, NormalizedImage

__all__ = [
    "DecodeError",
    "DoctrEngine",
    "EngineError",
    "ImageNormalizer",
    "NormalizedImage",
    "OCREngine",
    "RecognitionResult",
    "ScreenshotFieldExtractor",
    "TesseractEngine",
    "create_engine",
    "extract_fields",
]
