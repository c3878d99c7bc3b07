"""
Health check endpoint.

Provides system health status for monitoring and load balancers.
"""

from fastapi import APIRouter

from tripscan import __version__
from tripscan.api.schemas import HealthResponse
from tripscan.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check system health and report the configured OCR engine."""
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=__version__,
        ocr_engine=settings.ocr_engine,
    )
