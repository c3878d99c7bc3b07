"""
Screenshot extraction endpoints.

Handles screenshot upload, field extraction and review signals.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from tripscan.api.schemas import (
    BatchExtractionResponse,
    ConfidenceResponse,
    ExtractedFieldsResponse,
    ParseTextRequest,
    TextExtractionResponse,
    ValidationReportResponse,
)
from tripscan.config import ExtractionConfig, get_settings
from tripscan.domain.scoring import describe_confidence
from tripscan.domain.validation import validate_extraction
from tripscan.services.ocr import ScreenshotFieldExtractor, create_engine
from tripscan.services.pipeline import BatchTooLargeError, ExtractionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/extractions", tags=["extractions"])

ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/webp"}


# Service instance (overridden in tests via app.dependency_overrides)
_extraction_service: ExtractionService | None = None


def get_extraction_service() -> ExtractionService:
    """Get or create the extraction service for the configured engine."""
    global _extraction_service
    if _extraction_service is None:
        settings = get_settings()
        _extraction_service = ExtractionService(engine=create_engine(settings.ocr_engine))
    return _extraction_service


def get_extraction_config() -> ExtractionConfig:
    """Extraction config built from application settings."""
    return get_settings().extraction_config()


@router.post(
    "",
    response_model=BatchExtractionResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Invalid or empty image"},
        413: {"description": "Too many images in one batch"},
    },
)
async def extract_screenshots(
    images: Annotated[list[UploadFile], File(description="Earnings screenshots (PNG/JPG/WEBP)")],
    service: Annotated[ExtractionService, Depends(get_extraction_service)],
    config: Annotated[ExtractionConfig, Depends(get_extraction_config)],
) -> BatchExtractionResponse:
    """
    Upload screenshots of one earnings summary and extract report fields.

    **Process:**
    1. Normalize and OCR every screenshot
    2. Extract and score fields per screenshot
    3. Merge all screenshots into one result
    4. Validate the merged result
    """
    contents: list[bytes] = []
    for upload in images:
        if upload.content_type and upload.content_type not in ALLOWED_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid file type for {upload.filename}: {upload.content_type}. "
                       f"Allowed: PNG, JPG, WEBP",
            )
        content = await upload.read()
        if not content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File is empty: {upload.filename}",
            )
        contents.append(content)

    try:
        outcome = await run_in_threadpool(service.run, contents, config)
    except BatchTooLargeError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(e),
        )

    logger.info(
        f"Batch extracted: {len(outcome.samples)} image(s), "
        f"{len(outcome.failed_indexes)} failed, accepted={outcome.accepted}"
    )

    return BatchExtractionResponse(
        samples=[ExtractedFieldsResponse.from_domain(s) for s in outcome.samples],
        merged=ExtractedFieldsResponse.from_domain(outcome.merged) if outcome.merged else None,
        validation=(
            ValidationReportResponse.from_domain(outcome.validation)
            if outcome.validation else None
        ),
        confidence=(
            ConfidenceResponse.from_domain(outcome.confidence)
            if outcome.confidence else None
        ),
        accepted=outcome.accepted,
        failed_images=outcome.failed_indexes,
    )


@router.post("/text", response_model=TextExtractionResponse)
async def extract_text(
    request: ParseTextRequest,
    config: Annotated[ExtractionConfig, Depends(get_extraction_config)],
) -> TextExtractionResponse:
    """
    Parse already-recognized screenshot text without running OCR.

    Useful for re-parsing stored raw text after extractor changes.
    """
    sample = ScreenshotFieldExtractor().extract(request.text)
    report = validate_extraction(sample)

    return TextExtractionResponse(
        sample=ExtractedFieldsResponse.from_domain(sample),
        validation=ValidationReportResponse.from_domain(report),
        confidence=ConfidenceResponse.from_domain(describe_confidence(sample.confidence)),
        accepted=config.accepts(sample.confidence),
    )
