"""
Tests for field extraction from earnings screenshot text.
"""

from datetime import datetime, timezone

import pytest

from tripscan.domain.models import FieldName, SampleSource
from tripscan.services.ocr import ScreenshotFieldExtractor, extract_fields
from tripscan.services.ocr.extractor import FIELD_CASCADES, TRIPS_RULE, resolve_earnings


@pytest.fixture
def extractor() -> ScreenshotFieldExtractor:
    return ScreenshotFieldExtractor()


def test_headline_trips_and_earnings(extractor):
    """Trip count on its own line and labeled earnings with a rupee glyph"""
    sample = extractor.extract("Total Trips\n23\nTotal Earnings ₹4,500")

    assert sample.total_trips == "23"
    assert sample.total_earnings == "4500"
    assert {FieldName.TOTAL_TRIPS, FieldName.TOTAL_EARNINGS} <= sample.fields_found
    # 0.8 base + 0.1 for a plausible per-trip average
    assert sample.confidence >= 0.8
    assert sample.confidence == pytest.approx(0.9)


def test_full_summary(extractor, summary_text):
    """Every field is recovered from a complete summary screen"""
    sample = extractor.extract(summary_text)

    assert sample.total_trips == "23"
    assert sample.total_earnings == "4500"
    assert sample.toll == "45"
    assert sample.cash_collected == "1200"
    assert sample.online_time == "8.5"
    assert sample.distance == "142.3"
    assert sample.surge == "320"
    assert sample.tips == "50"
    assert sample.fields_found == frozenset(FieldName)
    assert sample.confidence == pytest.approx(1.0)


def test_cash_collected_label_on_previous_line():
    values = extract_fields("Cash collected\n-₹1,200")

    assert values[FieldName.CASH_COLLECTED] == "1200"
    # The deduction is booked once, as cash only
    assert FieldName.TOLL not in values
    assert FieldName.TOTAL_EARNINGS not in values


def test_taxes_label_on_previous_line():
    values = extract_fields("Taxes\n-₹45")

    assert values[FieldName.TOLL] == "45"


def test_label_pair_binding_is_not_reevaluated():
    """A value bound from a label pair wins over later cascade matches"""
    values = extract_fields("Taxes\n-₹45\nToll ₹120")

    assert values[FieldName.TOLL] == "45"


def test_net_fare_label_binds_nothing():
    values = extract_fields("Net fare\n₹80")

    assert FieldName.CASH_COLLECTED not in values
    assert FieldName.TOLL not in values


def test_cash_collected_on_same_line():
    values = extract_fields("Cash collected -₹3,400")

    assert values[FieldName.CASH_COLLECTED] == "3400"


def test_standalone_negative_amount_is_cash_when_large():
    values = extract_fields("Weekly summary\n-₹2,500")

    assert values[FieldName.CASH_COLLECTED] == "2500"
    # Above the toll accept range
    assert FieldName.TOLL not in values


def test_small_unlabeled_negative_amount_binds_nothing():
    """Toll needs a label; an unlabeled deduction below the cash floor is dropped"""
    values = extract_fields("Weekly summary\n-₹800")

    assert values == {}


def test_tax_line_with_negative_amount():
    values = extract_fields("Tax deducted at source -₹60")

    assert values[FieldName.TOLL] == "60"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Total earnings Rs. 3,250.50", "3250.5"),
        ("You earned INR 1,800", "1800"),
        ("Earnings: ₹12,000", "12000"),
    ],
)
def test_currency_prefixes_and_separators(text, expected):
    values = extract_fields(text)

    assert values[FieldName.TOTAL_EARNINGS] == expected


def test_earnings_prefers_labeled_lines_over_larger_amounts():
    text = "Weekly goal ₹5,000\nTotal earnings ₹2,400\nEarnings ₹2,150"

    assert extract_fields(text)[FieldName.TOTAL_EARNINGS] == "2400"


def test_earnings_takes_maximum_without_labels():
    """Earnings is collect-all-then-max, unlike the first-match fields"""
    assert resolve_earnings(["₹350", "₹1,250", "₹800"]) == "1250"


def test_deductions_are_never_earnings():
    values = extract_fields("Trips: 10\nCash collected\n-₹1,200\nNet fare\n₹900")

    assert values[FieldName.CASH_COLLECTED] == "1200"
    assert values[FieldName.TOTAL_EARNINGS] == "900"


def test_negative_amount_on_earnings_line_is_skipped():
    values = extract_fields("Total earnings ₹2,400\nTotal adjustments -₹3,000")

    assert values[FieldName.TOTAL_EARNINGS] == "2400"


def test_earnings_outside_range_is_ignored():
    values = extract_fields("Total earnings ₹40,000\nTotal ₹90")

    assert FieldName.TOTAL_EARNINGS not in values


def test_ordinary_fields_take_first_match():
    values = extract_fields("Tips ₹40\nTips ₹60")

    assert values[FieldName.TIPS] == "40"


def test_out_of_range_match_falls_through_cascade():
    values = extract_fields("Tips ₹5,000\nGratuity ₹80")

    assert values[FieldName.TIPS] == "80"


def test_contextual_trip_match_beats_standalone_number():
    """The bare-integer matcher is a last resort, even when it appears first"""
    values = extract_fields("7\nTrips: 12")

    assert values[FieldName.TOTAL_TRIPS] == "12"


def test_trip_count_out_of_range_is_absent():
    values = extract_fields("150 trips")

    assert FieldName.TOTAL_TRIPS not in values


@pytest.mark.parametrize(
    "text, field, expected",
    [
        ("6 hours online", FieldName.ONLINE_TIME, "6"),
        ("Online: 10.25 hrs", FieldName.ONLINE_TIME, "10.25"),
        ("Distance: 85 km", FieldName.DISTANCE, "85"),
        ("212 km driven", FieldName.DISTANCE, "212"),
        ("Surge pricing ₹275", FieldName.SURGE, "275"),
        ("Bonus ₹150", FieldName.SURGE, "150"),
        ("18 rides", FieldName.TOTAL_TRIPS, "18"),
        ("Trips completed 31", FieldName.TOTAL_TRIPS, "31"),
    ],
)
def test_field_patterns(text, field, expected):
    assert extract_fields(text)[field] == expected


def test_online_time_over_a_day_is_rejected():
    assert FieldName.ONLINE_TIME not in extract_fields("Online 30 hrs")


@pytest.mark.parametrize("text", ["", "   \n\n", "@@## ~~ %%"])
def test_empty_or_garbled_text(extractor, text):
    """No match is an incompleteness signal, never an error"""
    sample = extractor.extract(text)

    assert sample.fields_found == frozenset()
    assert sample.values == {}
    assert sample.confidence == pytest.approx(0.2)


def test_raw_text_and_source_are_kept(extractor):
    stamp = datetime(2024, 5, 1, tzinfo=timezone.utc)
    sample = extractor.extract("Tips ₹50", source=SampleSource.DOCTR, processed_at=stamp)

    assert sample.raw_text == "Tips ₹50"
    assert sample.source == SampleSource.DOCTR
    assert sample.processed_at == stamp


def test_extraction_is_deterministic(extractor, summary_text):
    stamp = datetime(2024, 5, 1, tzinfo=timezone.utc)

    first = extractor.extract(summary_text, processed_at=stamp)
    second = extractor.extract(summary_text, processed_at=stamp)

    assert first == second


@pytest.mark.parametrize(
    "text",
    [
        "Total Trips\n23\nTotal Earnings ₹4,500",
        "Cash collected\n-₹1,200",
        "Tips ₹5,000\nGratuity ₹80",
        "",
    ],
)
def test_fields_found_matches_populated_values(extractor, text):
    sample = extractor.extract(text)

    assert sample.fields_found == frozenset(
        name for name in FieldName if sample.value_of(name)
    )


def test_cascade_table_is_inspectable():
    fields = [rule.field for rule in FIELD_CASCADES]

    # Earnings is resolved separately, after every cascade
    assert set(fields) == set(FieldName) - {FieldName.TOTAL_EARNINGS}
    assert TRIPS_RULE.matchers[-1].pattern.pattern == r'^(\d+)$'
