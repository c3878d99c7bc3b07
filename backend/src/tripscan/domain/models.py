"""
Domain models for earnings screenshot extraction.

These models represent what the extraction pipeline recovers from one
driver earnings screenshot and what the validator reports about it.

Design Decisions:
- Frozen dataclasses: a sample is never mutated after extraction; merging
  produces a new record
- Absent fields are None, never an empty string
- Values are canonical numeric strings ("4500", "12.5") so that callers
  can hand them straight to form inputs
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class FieldName(str, Enum):
    """The eight fields recovered from an earnings screenshot."""
    TOTAL_TRIPS = "total_trips"
    TOTAL_EARNINGS = "total_earnings"
    TOLL = "toll"
    CASH_COLLECTED = "cash_collected"
    ONLINE_TIME = "online_time"
    DISTANCE = "distance"
    SURGE = "surge"
    TIPS = "tips"


# Declaration order, used wherever fields are iterated
TARGET_FIELDS: tuple[FieldName, ...] = tuple(FieldName)

CRITICAL_FIELDS: frozenset[FieldName] = frozenset(
    {FieldName.TOTAL_TRIPS, FieldName.TOTAL_EARNINGS}
)

# Rent report form keys filled from a sample
FORM_FIELD_KEYS: dict[FieldName, str] = {
    FieldName.TOTAL_TRIPS: "total_trips",
    FieldName.TOTAL_EARNINGS: "total_earnings",
    FieldName.TOLL: "toll",
    FieldName.CASH_COLLECTED: "total_cashcollect",
}


class SampleSource(str, Enum):
    """Recognition path that produced a sample."""
    TESSERACT = "tesseract"
    DOCTR = "doctr"
    TEXT = "text"
    FALLBACK = "fallback"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExtractedFields:
    """
    Fields extracted from one screenshot (or merged from several).

    `fields_found` always names exactly the fields that carry a value;
    construction fails otherwise.
    """
    total_trips: str | None = None
    total_earnings: str | None = None
    toll: str | None = None
    cash_collected: str | None = None
    online_time: str | None = None
    distance: str | None = None
    surge: str | None = None
    tips: str | None = None
    confidence: float = 0.0
    raw_text: str = ""
    fields_found: frozenset[FieldName] = frozenset()
    source: SampleSource = SampleSource.TEXT
    processed_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        """Validate confidence range and fields_found consistency."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be 0-1, got {self.confidence}")

        # Accept any iterable of names for convenience
        found = frozenset(FieldName(f) for f in self.fields_found)
        object.__setattr__(self, "fields_found", found)

        populated = self.populated_fields
        if found != populated:
            raise ValueError(
                f"fields_found {sorted(f.value for f in found)} does not match "
                f"populated fields {sorted(f.value for f in populated)}"
            )

    @classmethod
    def from_values(
        cls,
        values: dict[FieldName, str],
        **kwargs: Any,
    ) -> "ExtractedFields":
        """Build a record whose fields_found is derived from the values."""
        return cls(
            **{name.value: value for name, value in values.items()},
            fields_found=frozenset(name for name, value in values.items() if value),
            **kwargs,
        )

    @classmethod
    def placeholder(
        cls,
        source: SampleSource = SampleSource.FALLBACK,
        processed_at: datetime | None = None,
    ) -> "ExtractedFields":
        """All-absent, zero-confidence record standing in for a failed image."""
        return cls(
            confidence=0.0,
            source=source,
            processed_at=processed_at or _utcnow(),
        )

    def value_of(self, name: FieldName) -> str | None:
        """Value of a target field, None when absent."""
        return getattr(self, name.value)

    @property
    def values(self) -> dict[FieldName, str]:
        """Populated target fields in declaration order."""
        return {
            name: value
            for name in TARGET_FIELDS
            if (value := self.value_of(name))
        }

    @property
    def populated_fields(self) -> frozenset[FieldName]:
        return frozenset(self.values)

    def form_updates(self) -> dict[str, str]:
        """Report form values to auto-fill, skipping absent fields."""
        return {
            key: value
            for name, key in FORM_FIELD_KEYS.items()
            if (value := self.value_of(name))
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for responses and logging."""
        return {
            **{name.value: self.value_of(name) for name in TARGET_FIELDS},
            "confidence": round(self.confidence, 4),
            "raw_text": self.raw_text,
            "fields_found": [n.value for n in TARGET_FIELDS if n in self.fields_found],
            "source": self.source.value,
            "processed_at": self.processed_at.isoformat(),
        }


@dataclass
class ValidationReport:
    """
    Plausibility report for one extraction result.

    Issues block acceptance; warnings are advisory only.
    Mutable because issues and warnings are collected rule by rule.
    """
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "issues": list(self.issues),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class ConfidenceDescription:
    """Human-readable tier for a confidence score."""
    level: str
    color: str
    description: str


@dataclass(frozen=True)
class ProcessingState:
    """Progress snapshot reported while a batch is processed."""
    is_processing: bool
    progress: float
    status: str
