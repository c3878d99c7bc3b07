"""
Confidence scoring for extracted samples.

The score combines evidentiary coverage (which fields were found) with a
per-trip consistency check and a text quality signal. It is monotonic in
the number of fields found, which keeps it predictable and testable.

Pure functions only - no I/O.
"""

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation

from .models import CRITICAL_FIELDS, ConfidenceDescription, FieldName


BASE_SCORE_BOTH_CRITICAL = 0.8
BASE_SCORE_ONE_CRITICAL = 0.5
BASE_SCORE_NO_CRITICAL = 0.2

NON_CRITICAL_FIELD_BONUS = 0.05
PER_TRIP_CONSISTENCY_BONUS = 0.1
TEXT_QUALITY_BONUS = 0.05

# Plausible per-trip earnings window (exclusive)
MIN_EARNINGS_PER_TRIP = Decimal("50")
MAX_EARNINGS_PER_TRIP = Decimal("1000")

MIN_TEXT_LENGTH = 100
MIN_WORD_COUNT = 20


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _to_decimal(value: str | None) -> Decimal | None:
    if not value:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        return None


def score_confidence(
    fields_found: Iterable[FieldName],
    total_trips: str | None,
    total_earnings: str | None,
    raw_text: str,
) -> float:
    """
    Estimate extraction reliability for one text sample.

    Steps, each clamped to [0, 1]:
    1. Base score from critical fields: both 0.8, one 0.5, none 0.2
    2. +0.05 per non-critical field found
    3. +0.1 if earnings per trip falls in (50, 1000)
    4. +0.05 if the text has at least 100 characters and 20 words

    Args:
        fields_found: Fields bound for this sample
        total_trips: Bound trip count, if any
        total_earnings: Bound earnings, if any
        raw_text: The OCR text the fields came from

    Returns:
        Confidence in [0, 1]
    """
    found = set(fields_found)
    critical_found = len(found & CRITICAL_FIELDS)

    if critical_found == 2:
        confidence = BASE_SCORE_BOTH_CRITICAL
    elif critical_found == 1:
        confidence = BASE_SCORE_ONE_CRITICAL
    else:
        confidence = BASE_SCORE_NO_CRITICAL

    confidence = _clamp(
        confidence + NON_CRITICAL_FIELD_BONUS * len(found - CRITICAL_FIELDS)
    )

    trips = _to_decimal(total_trips)
    earnings = _to_decimal(total_earnings)
    if trips is not None and earnings is not None and trips > 0:
        if trips * MIN_EARNINGS_PER_TRIP < earnings < trips * MAX_EARNINGS_PER_TRIP:
            confidence = _clamp(confidence + PER_TRIP_CONSISTENCY_BONUS)

    if len(raw_text) >= MIN_TEXT_LENGTH and len(raw_text.split()) >= MIN_WORD_COUNT:
        confidence = _clamp(confidence + TEXT_QUALITY_BONUS)

    return _clamp(confidence)


CONFIDENCE_TIERS: list[tuple[float, ConfidenceDescription]] = [
    (0.8, ConfidenceDescription(
        level="Excellent",
        color="green",
        description="Data extraction is highly reliable and accurate",
    )),
    (0.6, ConfidenceDescription(
        level="Good",
        color="blue",
        description="Data extraction is reliable with good accuracy",
    )),
    (0.4, ConfidenceDescription(
        level="Fair",
        color="orange",
        description="Data extracted but please verify carefully",
    )),
    (0.2, ConfidenceDescription(
        level="Poor",
        color="red",
        description="Low accuracy - manual verification strongly recommended",
    )),
]

FAILED_TIER = ConfidenceDescription(
    level="Failed",
    color="red",
    description="OCR failed - please enter data manually",
)


def describe_confidence(confidence: float) -> ConfidenceDescription:
    """Classify a confidence score into one of five display tiers."""
    for floor, tier in CONFIDENCE_TIERS:
        if confidence >= floor:
            return tier
    return FAILED_TIER
