"""
Plausibility validation for extracted earnings data.

This module contains pure functions that flag implausible extraction
results before they reach a reviewer. No side effects, no I/O.

Design Decisions:
- Every rule runs; nothing short-circuits
- Issues block acceptance, warnings never do
- Secondary fields (toll, cash, time, distance) only ever warn
- The toll warning ceiling (1000) is stricter than the extraction
  accept bound (2000): extraction accepts more than review treats as
  unremarkable
"""

from decimal import Decimal, InvalidOperation

from .models import ExtractedFields, FieldName, ValidationReport


TRIPS_RANGE = (Decimal("0"), Decimal("100"))
EARNINGS_RANGE = (Decimal("0"), Decimal("25000"))
EARNINGS_PER_TRIP_RANGE = (Decimal("50"), Decimal("1500"))

# Warning tier for secondary fields: (low, high, message)
SECONDARY_FIELD_RANGES: dict[FieldName, tuple[Decimal, Decimal, str]] = {
    FieldName.TOLL: (
        Decimal("0"), Decimal("1000"),
        "toll amount seems high (₹0-₹1,000 expected)",
    ),
    FieldName.CASH_COLLECTED: (
        Decimal("0"), Decimal("50000"),
        "cash collected amount seems unrealistic (₹0-₹50,000 expected)",
    ),
    FieldName.ONLINE_TIME: (
        Decimal("0"), Decimal("24"),
        "online time seems unrealistic (0-24 hours expected)",
    ),
    FieldName.DISTANCE: (
        Decimal("0"), Decimal("1000"),
        "distance seems unrealistic (0-1000 km expected)",
    ),
}

BLOCKING_CONFIDENCE = 0.3
LOW_CONFIDENCE = 0.5


def _parse(value: str) -> Decimal | None:
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def _in_range(value: Decimal | None, bounds: tuple[Decimal, Decimal]) -> bool:
    low, high = bounds
    return value is not None and low <= value <= high


def check_trip_count(data: ExtractedFields, report: ValidationReport) -> Decimal | None:
    """Trip count must be present and within 0-100. Returns the parsed count."""
    if not data.total_trips:
        report.issues.append("no trip count detected")
        return None

    trips = _parse(data.total_trips)
    if not _in_range(trips, TRIPS_RANGE) or trips != trips.to_integral_value():
        report.issues.append("unrealistic trip count (0-100 expected)")
        return None
    return trips


def check_earnings(
    data: ExtractedFields,
    report: ValidationReport,
    trips: Decimal | None,
) -> None:
    """
    Earnings must be present and within range.

    When a usable trip count exists the per-trip average is checked too;
    an unusual ratio only warns since screenshots legitimately vary.
    """
    if not data.total_earnings:
        report.issues.append("no earnings detected")
        return

    earnings = _parse(data.total_earnings)
    if not _in_range(earnings, EARNINGS_RANGE):
        report.issues.append("unrealistic earnings amount (₹0-₹25,000 expected)")
        return

    if trips is None:
        return

    if trips == 0 or not _in_range(earnings / trips, EARNINGS_PER_TRIP_RANGE):
        report.warnings.append(
            "earnings per trip ratio seems unusual (₹50-₹1,500 per trip expected)"
        )


def check_secondary_fields(data: ExtractedFields, report: ValidationReport) -> None:
    """Out-of-band secondary fields produce warnings, never issues."""
    for name, (low, high, message) in SECONDARY_FIELD_RANGES.items():
        raw = data.value_of(name)
        if raw and not _in_range(_parse(raw), (low, high)):
            report.warnings.append(message)


def check_confidence(data: ExtractedFields, report: ValidationReport) -> None:
    """Very low confidence blocks; low confidence warns."""
    if data.confidence < BLOCKING_CONFIDENCE:
        report.issues.append(
            "very low extraction confidence - manual verification required"
        )
    elif data.confidence < LOW_CONFIDENCE:
        report.warnings.append(
            "low extraction confidence - please verify data carefully"
        )


def validate_extraction(data: ExtractedFields) -> ValidationReport:
    """
    Run all plausibility rules against one (possibly merged) result.

    Args:
        data: Extraction result to check

    Returns:
        ValidationReport; is_valid is True iff no issues were raised
    """
    report = ValidationReport()

    trips = check_trip_count(data, report)
    check_earnings(data, report, trips)
    check_secondary_fields(data, report)
    check_confidence(data, report)

    return report
