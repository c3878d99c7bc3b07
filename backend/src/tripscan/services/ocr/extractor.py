"""
Field extraction from earnings screenshot text.

Recovers eight fields (trips, earnings, toll, cash collected, online time,
distance, surge, tips) from one noisy OCR text block in three passes:

1. Two-line labels: a bare label line ("Cash collected", "Taxes") followed
   by a currency line binds that value directly.
2. Per-field cascades: an ordered table of matchers per field, most
   specific first, most permissive last. The FIRST matcher whose value is
   in the field's range wins.
3. Earnings, run last: every non-negative currency match on every line is
   collected and the MAXIMUM wins, preferring lines that mention
   total/earning/earned. Negative tokens are deductions and never count.

IMPORTANT: earnings deliberately does not follow the first-match rule of
the other fields. Summary screens repeat the headline figure in several
places next to smaller per-trip and deduction amounts, so the labeled
largest occurrence is the reliable one. Do not fold earnings into the
generic cascade; it changes which figure is picked.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from tripscan.domain.models import ExtractedFields, FieldName, SampleSource
from tripscan.domain.scoring import score_confidence

from .normalize import format_number, parse_amount

logger = logging.getLogger(__name__)


# =============================================================================
# Token building blocks
# =============================================================================

CURRENCY = r'(?:₹|\brs\.?|\binr)'
AMOUNT = r'(\d+(?:,\d+)*(?:\.\d{1,2})?)'
QUANTITY = r'(\d+(?:\.\d+)?)'
HOURS = r'(?:hrs?|hours?)'
KM = r'(?:km|kms|kilometers?)'

NEGATIVE_AMOUNT = rf'-\s*{CURRENCY}\s*{AMOUNT}'
SIGNED_AMOUNT = rf'-?\s*{CURRENCY}\s*{AMOUNT}'


def labeled_amount(label: str, allow_negative: bool = False) -> str:
    """Label, optional separator, optional sign and currency, then an amount."""
    sign = r'-?' if allow_negative else ''
    return rf'{label}[\s:]*{sign}{CURRENCY}?\s*{AMOUNT}'


# =============================================================================
# Matchers and field rules
# =============================================================================

@dataclass(frozen=True)
class Matcher:
    """
    One pattern in a field cascade.

    Attributes:
        pattern: Regex whose first group is the value
        keywords: Words that must all appear in the line (lowercase)
        bounds: Accept range overriding the field's own range
    """
    pattern: re.Pattern
    keywords: tuple[str, ...] = ()
    bounds: tuple[Decimal, Decimal] | None = None

    def search(self, line: str) -> str | None:
        """Raw value token from a line, or None."""
        lowered = line.lower()
        if any(keyword not in lowered for keyword in self.keywords):
            return None
        match = self.pattern.search(line)
        return match.group(1) if match else None


def matcher(
    pattern: str,
    keywords: tuple[str, ...] = (),
    bounds: tuple[str, str] | None = None,
) -> Matcher:
    return Matcher(
        pattern=re.compile(pattern, re.IGNORECASE),
        keywords=keywords,
        bounds=(Decimal(bounds[0]), Decimal(bounds[1])) if bounds else None,
    )


@dataclass(frozen=True)
class FieldRule:
    """Accept range and ordered matcher cascade for one field."""
    field: FieldName
    low: Decimal
    high: Decimal
    matchers: tuple[Matcher, ...]
    integer: bool = False

    def accepts(self, value: Decimal, bounds: tuple[Decimal, Decimal] | None = None) -> bool:
        low, high = bounds or (self.low, self.high)
        return low <= value <= high

    def canonical(self, value: Decimal) -> str:
        if self.integer:
            return str(int(value))
        return format_number(value)


TRIPS_RULE = FieldRule(
    field=FieldName.TOTAL_TRIPS,
    low=Decimal("0"),
    high=Decimal("100"),
    integer=True,
    matchers=(
        matcher(r'total[\s:]*(\d+)\s*trips?'),
        matcher(r'trips?\s*completed[\s:]*(\d+)'),
        matcher(r'trips?\s*(?:count|number)[\s:]*(\d+)'),
        matcher(r'(\d+)\s*trips?\b'),
        matcher(r'trips?\s*[:\s]*(\d+)'),
        matcher(r'completed\s*[:\s]*(\d+)'),
        matcher(r'(\d+)\s*rides?\b'),
        matcher(r'rides?\s*[:\s]*(\d+)'),
        matcher(r'(\d+)\s*deliveries'),
        matcher(r'bookings?\s*[:\s]*(\d+)'),
        # Last resort: a bare integer on its own line
        matcher(r'^(\d+)$'),
    ),
)

TOLL_RULE = FieldRule(
    field=FieldName.TOLL,
    low=Decimal("0"),
    high=Decimal("2000"),
    matchers=(
        matcher(labeled_amount(r'toll', allow_negative=True)),
        matcher(labeled_amount(r'fees?', allow_negative=True)),
        matcher(labeled_amount(r'charges?', allow_negative=True)),
        matcher(labeled_amount(r'deduction', allow_negative=True)),
        matcher(labeled_amount(r'commission', allow_negative=True)),
        matcher(labeled_amount(r'taxes?', allow_negative=True)),
        # "Taxes" line carrying a negative amount anywhere on it
        matcher(NEGATIVE_AMOUNT, keywords=("tax",)),
    ),
)

CASH_RULE = FieldRule(
    field=FieldName.CASH_COLLECTED,
    low=Decimal("0"),
    high=Decimal("50000"),
    matchers=(
        matcher(labeled_amount(r'cash\s*collected', allow_negative=True)),
        matcher(labeled_amount(r'cash\s*payment', allow_negative=True)),
        matcher(labeled_amount(r'cash\s*from\s*customers?', allow_negative=True)),
        matcher(labeled_amount(r'cash', allow_negative=True)),
        matcher(labeled_amount(r'collected', allow_negative=True)),
        matcher(rf'{NEGATIVE_AMOUNT}\s*(?:cash|collected)'),
        matcher(NEGATIVE_AMOUNT, keywords=("cash", "collected")),
        # Fallback: a line that is only a large negative amount
        matcher(rf'^{NEGATIVE_AMOUNT}$', bounds=("1000", "50000")),
    ),
)

ONLINE_TIME_RULE = FieldRule(
    field=FieldName.ONLINE_TIME,
    low=Decimal("0"),
    high=Decimal("24"),
    matchers=(
        matcher(rf'online[\s:]*{QUANTITY}\s*{HOURS}'),
        matcher(rf'{QUANTITY}\s*{HOURS}\s*online'),
        matcher(rf'time[\s:]*{QUANTITY}\s*{HOURS}'),
        matcher(rf'duration[\s:]*{QUANTITY}\s*{HOURS}'),
    ),
)

DISTANCE_RULE = FieldRule(
    field=FieldName.DISTANCE,
    low=Decimal("0"),
    high=Decimal("1000"),
    matchers=(
        matcher(rf'distance[\s:]*{QUANTITY}\s*{KM}'),
        matcher(rf'{QUANTITY}\s*{KM}\s*driven'),
        matcher(rf'traveled[\s:]*{QUANTITY}\s*{KM}'),
        matcher(rf'total[\s:]*{QUANTITY}\s*{KM}'),
    ),
)

SURGE_RULE = FieldRule(
    field=FieldName.SURGE,
    low=Decimal("0"),
    high=Decimal("5000"),
    matchers=(
        matcher(labeled_amount(r'surge\s*pricing')),
        matcher(labeled_amount(r'surge')),
        matcher(labeled_amount(r'bonus')),
    ),
)

TIPS_RULE = FieldRule(
    field=FieldName.TIPS,
    low=Decimal("0"),
    high=Decimal("2000"),
    matchers=(
        matcher(labeled_amount(r'tips?')),
        matcher(labeled_amount(r'gratuity')),
    ),
)

# First-match cascades, in evaluation order. Toll and cash come before
# earnings resolution so deductions are bound before the headline search.
FIELD_CASCADES: tuple[FieldRule, ...] = (
    TRIPS_RULE,
    TOLL_RULE,
    CASH_RULE,
    ONLINE_TIME_RULE,
    DISTANCE_RULE,
    SURGE_RULE,
    TIPS_RULE,
)

RULES_BY_FIELD: dict[FieldName, FieldRule] = {rule.field: rule for rule in FIELD_CASCADES}


# =============================================================================
# Earnings (collect-all, pick max)
# =============================================================================

EARNINGS_LOW = Decimal("100")
EARNINGS_HIGH = Decimal("25000")

EARNINGS_PATTERNS: tuple[re.Pattern, ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        labeled_amount(r'total\s*earnings?'),
        labeled_amount(r'earnings?'),
        labeled_amount(r'earned'),
        labeled_amount(r'you\s*earned'),
        labeled_amount(r'gross\s*earnings?'),
        rf'{CURRENCY}\s*{AMOUNT}',
        labeled_amount(r'amount'),
        labeled_amount(r'total'),
        labeled_amount(r'pay'),
        labeled_amount(r'income'),
    )
)

EARNINGS_PRIORITY_WORDS = ("total", "earning", "earned")


@dataclass(frozen=True)
class EarningsCandidate:
    amount: Decimal
    line: str

    @property
    def is_priority(self) -> bool:
        lowered = self.line.lower()
        return any(word in lowered for word in EARNINGS_PRIORITY_WORDS)


def is_deduction(line: str, match: re.Match) -> bool:
    """True if the matched token is signed negative, as in -₹1,200."""
    return line[:match.start()].rstrip().endswith("-")


def collect_earnings_candidates(lines: list[str]) -> list[EarningsCandidate]:
    """Every in-range, non-deduction currency match across every pattern and line."""
    candidates: list[EarningsCandidate] = []
    for line in lines:
        for pattern in EARNINGS_PATTERNS:
            for match in pattern.finditer(line):
                if is_deduction(line, match):
                    continue
                amount = parse_amount(match.group(1))
                if amount is not None and EARNINGS_LOW <= amount <= EARNINGS_HIGH:
                    candidates.append(EarningsCandidate(amount=amount, line=line))
                    logger.debug(f"Earnings candidate: {amount} in line: '{line}'")
    return candidates


def resolve_earnings(lines: list[str]) -> str | None:
    """
    Pick the headline earnings figure.

    Candidates from lines mentioning total/earning/earned take precedence;
    within the chosen pool the largest amount wins.
    """
    candidates = collect_earnings_candidates(lines)
    if not candidates:
        logger.debug("No earnings found in any line")
        return None

    pool = [c for c in candidates if c.is_priority] or candidates
    selected = max(pool, key=lambda c: c.amount)

    logger.info(f"Selected earnings: {selected.amount} from line: '{selected.line}'")
    return format_number(selected.amount)


# =============================================================================
# Two-line labels
# =============================================================================

@dataclass(frozen=True)
class LabelPair:
    """A bare label line whose value sits on the next line."""
    label: re.Pattern
    field: FieldName | None  # None: recognized but not a target field


LABEL_VALUE_PATTERN = re.compile(SIGNED_AMOUNT, re.IGNORECASE)

LABEL_PAIRS: tuple[LabelPair, ...] = (
    LabelPair(re.compile(r'^cash\s*collected$', re.IGNORECASE), FieldName.CASH_COLLECTED),
    LabelPair(re.compile(r'^taxes?$', re.IGNORECASE), FieldName.TOLL),
    LabelPair(re.compile(r'^net\s*fare$', re.IGNORECASE), None),
    LabelPair(re.compile(r'^refunds?$', re.IGNORECASE), None),
)


def bind_label_pairs(lines: list[str]) -> dict[FieldName, str]:
    """Bind values from adjacent label/value line pairs. First binding wins."""
    bound: dict[FieldName, str] = {}

    for current, following in zip(lines, lines[1:]):
        for pair in LABEL_PAIRS:
            if not pair.label.match(current):
                continue
            match = LABEL_VALUE_PATTERN.search(following)
            if not match:
                continue

            if pair.field is None:
                logger.debug(f"Label '{current}' -> '{following}' has no target field")
                continue
            if pair.field in bound:
                continue

            rule = RULES_BY_FIELD[pair.field]
            amount = parse_amount(match.group(1))
            if amount is not None and rule.accepts(amount):
                bound[pair.field] = rule.canonical(amount)
                logger.info(
                    f"Found {pair.field.value} (label pair): {bound[pair.field]} "
                    f"from lines: '{current}' -> '{following}'"
                )

    return bound


# =============================================================================
# Cascade evaluation
# =============================================================================

def run_cascade(rule: FieldRule, lines: list[str]) -> str | None:
    """
    Evaluate a field's matchers in order.

    Each matcher scans every line before the next matcher is tried, so a
    contextual match anywhere beats a permissive match earlier in the text.
    """
    for m in rule.matchers:
        for line in lines:
            raw = m.search(line)
            if raw is None:
                continue
            value = parse_amount(raw)
            if value is None or not rule.accepts(value, m.bounds):
                continue
            canonical = rule.canonical(value)
            logger.info(f"Found {rule.field.value}: {canonical} from line: '{line}'")
            return canonical
    return None


def extract_fields(text: str) -> dict[FieldName, str]:
    """
    Recover the target fields from one OCR text block.

    Returns:
        Bound values by field; missing fields are simply absent
    """
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]

    logger.debug(f"Parsing OCR text: {len(text)} chars, {len(lines)} lines")

    values = bind_label_pairs(lines)

    for rule in FIELD_CASCADES:
        if rule.field in values:
            continue
        value = run_cascade(rule, lines)
        if value is not None:
            values[rule.field] = value

    earnings = resolve_earnings(lines)
    if earnings is not None:
        values[FieldName.TOTAL_EARNINGS] = earnings

    return values


class ScreenshotFieldExtractor:
    """
    Turns OCR text into a scored ExtractedFields record.

    Example:
        extractor = ScreenshotFieldExtractor()
        sample = extractor.extract("Total Trips\\n23\\nTotal Earnings ₹4,500")
        sample.total_trips     # "23"
        sample.total_earnings  # "4500"
    """

    def extract(
        self,
        text: str,
        source: SampleSource = SampleSource.TEXT,
        processed_at: datetime | None = None,
    ) -> ExtractedFields:
        """
        Extract and score one text sample.

        Args:
            text: Raw OCR text (kept verbatim on the result)
            source: Recognition path that produced the text
            processed_at: Timestamp to stamp on the result (now if None)
        """
        values = extract_fields(text)
        confidence = score_confidence(
            values.keys(),
            values.get(FieldName.TOTAL_TRIPS),
            values.get(FieldName.TOTAL_EARNINGS),
            text,
        )

        logger.info(
            f"Extraction summary: {len(values)} fields "
            f"({', '.join(f.value for f in values)}), confidence {confidence:.0%}"
        )

        kwargs = {"processed_at": processed_at} if processed_at else {}
        return ExtractedFields.from_values(
            values,
            confidence=confidence,
            raw_text=text,
            source=source,
            **kwargs,
        )
