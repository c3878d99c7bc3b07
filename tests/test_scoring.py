"""
Tests for confidence scoring and the display tiers.
"""

import pytest

from tripscan.domain.models import FieldName
from tripscan.domain.scoring import describe_confidence, score_confidence


CRITICAL = {FieldName.TOTAL_TRIPS, FieldName.TOTAL_EARNINGS}


def test_both_critical_fields_with_plausible_ratio():
    """4500 over 23 trips is about 195 per trip, inside the bonus window"""
    score = score_confidence(CRITICAL, "23", "4500", "short text")

    assert score == pytest.approx(0.9)


@pytest.mark.parametrize(
    "found, trips, earnings, expected",
    [
        ({FieldName.TOTAL_TRIPS}, "10", None, 0.5),
        ({FieldName.TOTAL_EARNINGS}, None, "2000", 0.5),
        (set(), None, None, 0.2),
    ],
)
def test_base_score_from_critical_coverage(found, trips, earnings, expected):
    assert score_confidence(found, trips, earnings, "") == pytest.approx(expected)


def test_non_critical_fields_add_small_bonus():
    found = {FieldName.TOLL, FieldName.TIPS, FieldName.SURGE}

    assert score_confidence(found, None, None, "") == pytest.approx(0.35)


@pytest.mark.parametrize("earnings", ["500", "10000"])
def test_ratio_bonus_window_is_exclusive(earnings):
    """Exactly 50 or 1000 per trip earns no consistency bonus"""
    assert score_confidence(CRITICAL, "10", earnings, "") == pytest.approx(0.8)


def test_zero_trips_skips_ratio_bonus():
    assert score_confidence(CRITICAL, "0", "500", "") == pytest.approx(0.8)


def test_long_text_adds_quality_bonus():
    text = " ".join(["earnings"] * 20)
    assert len(text) >= 100

    assert score_confidence(set(), None, None, text) == pytest.approx(0.25)


def test_long_text_with_few_words_gets_no_bonus():
    text = "x" * 150

    assert score_confidence(set(), None, None, text) == pytest.approx(0.2)


def test_score_is_clamped_to_one():
    text = " ".join(["earnings"] * 30)

    score = score_confidence(set(FieldName), "23", "4500", text)

    assert score == 1.0


def test_score_never_drops_when_fields_are_added():
    found: set[FieldName] = set()
    previous = score_confidence(found, None, None, "")

    for name in FieldName:
        found.add(name)
        current = score_confidence(found, "23", "4500", "")
        assert current >= previous
        previous = current


@pytest.mark.parametrize(
    "confidence, level, color",
    [
        (1.0, "Excellent", "green"),
        (0.8, "Excellent", "green"),
        (0.79, "Good", "blue"),
        (0.6, "Good", "blue"),
        (0.4, "Fair", "orange"),
        (0.2, "Poor", "red"),
        (0.19, "Failed", "red"),
        (0.0, "Failed", "red"),
    ],
)
def test_describe_confidence_tiers(confidence, level, color):
    tier = describe_confidence(confidence)

    assert tier.level == level
    assert tier.color == color
    assert tier.description
