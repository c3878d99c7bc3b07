"""
Pydantic schemas for API request/response validation.

These schemas define the contract between the report form and the backend.
Extracted values stay strings, exactly as they are filled into the form.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from tripscan.domain.models import (
    ConfidenceDescription,
    ExtractedFields,
    SampleSource,
    ValidationReport,
)


# =============================================================================
# Request Schemas
# =============================================================================

class ParseTextRequest(BaseModel):
    """Request to parse already-recognized screenshot text."""
    text: str = Field(
        ...,
        max_length=20000,
        description="OCR text of one earnings screenshot",
    )


# =============================================================================
# Response Schemas
# =============================================================================

class ExtractedFieldsResponse(BaseModel):
    """One extracted (or merged) sample."""
    total_trips: str | None = None
    total_earnings: str | None = None
    toll: str | None = None
    cash_collected: str | None = None
    online_time: str | None = None
    distance: str | None = None
    surge: str | None = None
    tips: str | None = None
    confidence: float
    raw_text: str = ""
    fields_found: list[str] = []
    source: SampleSource
    processed_at: datetime
    form_updates: dict[str, str] = {}

    @classmethod
    def from_domain(cls, data: ExtractedFields) -> "ExtractedFieldsResponse":
        return cls(**data.to_dict(), form_updates=data.form_updates())


class ValidationReportResponse(BaseModel):
    """Plausibility report for a result."""
    is_valid: bool
    issues: list[str] = []
    warnings: list[str] = []

    @classmethod
    def from_domain(cls, report: ValidationReport) -> "ValidationReportResponse":
        return cls(**report.to_dict())


class ConfidenceResponse(BaseModel):
    """Display tier for a confidence score."""
    level: str
    color: str
    description: str

    @classmethod
    def from_domain(cls, tier: ConfidenceDescription) -> "ConfidenceResponse":
        return cls(level=tier.level, color=tier.color, description=tier.description)


class BatchExtractionResponse(BaseModel):
    """Response from a screenshot batch upload."""
    samples: list[ExtractedFieldsResponse]
    merged: ExtractedFieldsResponse | None = None
    validation: ValidationReportResponse | None = None
    confidence: ConfidenceResponse | None = None
    accepted: bool = False
    failed_images: list[int] = []


class TextExtractionResponse(BaseModel):
    """Response from parsing raw text."""
    sample: ExtractedFieldsResponse
    validation: ValidationReportResponse
    confidence: ConfidenceResponse
    accepted: bool


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    ocr_engine: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: str | None = None
