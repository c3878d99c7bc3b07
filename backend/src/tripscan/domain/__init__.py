"""
Domain package - Core extraction logic with no external dependencies.

This package contains the pure Python models, confidence scoring, sample
merging and plausibility rules for earnings screenshot extraction.
"""

from .merging import merge_samples
from .models import (
    ConfidenceDescription,
    ExtractedFields,
    FieldName,
    ProcessingState,
    SampleSource,
    ValidationReport,
)
from .scoring import describe_confidence, score_confidence
from .validation import validate_extraction

__all__ = [
    "ConfidenceDescription",
    "ExtractedFields",
    "FieldName",
    "ProcessingState",
    "SampleSource",
    "ValidationReport",
    "describe_confidence",
    "merge_samples",
    "score_confidence",
    "validate_extraction",
]
