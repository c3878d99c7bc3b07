"""
Services package - OCR integration and the batch extraction pipeline.
"""

from .ocr import ImageNormalizer, ScreenshotFieldExtractor, create_engine
from .pipeline import (
    BatchOutcome,
    BatchTooLargeError,
    ExtractionService,
    ProgressReporter,
    process_batch,
)

__all__ = [
    "BatchOutcome",
    "BatchTooLargeError",
    "ExtractionService",
    "ImageNormalizer",
    "ProgressReporter",
    "ScreenshotFieldExtractor",
    "create_engine",
    "process_batch",
]
