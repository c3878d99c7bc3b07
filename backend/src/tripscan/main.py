"""
FastAPI application entry point.

Ties together the extraction API:
- Health and screenshot extraction routes
- CORS configuration for the dashboard frontend
- Error handling and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tripscan import __version__
from tripscan.api.routes import extraction, health
from tripscan.config import get_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective extraction configuration on startup."""
    settings = get_settings()

    logger.info(f"Starting Tripscan v{__version__}")
    logger.info(f"OCR engine: {settings.ocr_engine} ({settings.ocr_language})")
    logger.info(
        f"Acceptance threshold: {settings.ocr_confidence_threshold:.0%}, "
        f"max images: {settings.ocr_max_images}"
    )
    logger.info(f"Debug mode: {settings.debug}")

    yield  # Application runs here

    logger.info("Shutting down Tripscan")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance ready to serve requests.
    """
    settings = get_settings()

    app = FastAPI(
        title="Tripscan API",
        description=(
            "Earnings screenshot extraction for fleet driver reports.\n\n"
            "Recovers trips, earnings, deductions and activity figures from "
            "driver app screenshots and flags implausible results for review."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # In production, replace with specific allowed origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(extraction.router, prefix="/api/v1")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")

        # Don't expose internal errors in production
        detail = str(exc) if settings.debug else "An internal error occurred"

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": detail,
            },
        )

    return app


# Create the application instance
app = create_app()


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tripscan.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
