"""
Configuration for the extraction pipeline and the application.

`ExtractionConfig` is the immutable per-call configuration handed to the
batch pipeline. `Settings` loads application defaults from environment
variables and builds an `ExtractionConfig` from them.

All configuration is validated on construction to fail fast on misconfiguration.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CHAR_WHITELIST = (
    "0123456789₹.,: abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ()-/Rs"
)


class ImageQuality(BaseModel):
    """Target bounds and encoding for normalized screenshots."""

    model_config = ConfigDict(frozen=True)

    max_width: int = Field(default=1920, gt=0)
    max_height: int = Field(default=1080, gt=0)
    quality: float = Field(
        default=0.95,
        gt=0.0,
        le=1.0,
        description="Encode quality (0-1], ignored by lossless formats",
    )
    format: Literal["PNG", "JPEG", "WEBP"] = "PNG"


class EngineOptions(BaseModel):
    """Engine-specific recognition options."""

    model_config = ConfigDict(frozen=True)

    char_whitelist: str | None = DEFAULT_CHAR_WHITELIST
    page_segmentation_mode: int | None = Field(default=3, ge=0, le=13)


class ExtractionConfig(BaseModel):
    """
    Immutable configuration for one extraction call.

    Example:
        config = ExtractionConfig(max_images=3)
        config.accepts(0.82)  # True with the default 0.7 threshold
    """

    model_config = ConfigDict(frozen=True)

    confidence_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum merged confidence to accept without review",
    )
    max_images: int = Field(default=5, gt=0)
    language: str = Field(default="eng", min_length=1)
    image_quality: ImageQuality = Field(default_factory=ImageQuality)
    engine_options: EngineOptions = Field(default_factory=EngineOptions)

    def accepts(self, confidence: float) -> bool:
        """True if a confidence meets the acceptance threshold."""
        return confidence >= self.confidence_threshold


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings are loaded from environment variables with the same name.
    Use .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # OCR engine
    ocr_engine: Literal["tesseract", "doctr"] = Field(
        default="tesseract",
        description="Recognition backend used for uploaded screenshots",
    )
    ocr_language: str = Field(default="eng", description="Tesseract language tag")
    ocr_char_whitelist: str | None = DEFAULT_CHAR_WHITELIST
    ocr_page_segmentation_mode: int | None = Field(default=3, ge=0, le=13)

    # Extraction
    ocr_confidence_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum confidence score for auto-filling a report (0-1)"
    )
    ocr_max_images: int = Field(default=5, gt=0)
    ocr_max_width: int = Field(default=1920, gt=0)
    ocr_max_height: int = Field(default=1080, gt=0)
    ocr_image_quality: float = Field(default=0.95, gt=0.0, le=1.0)

    # Server
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages"
    )

    def extraction_config(self) -> ExtractionConfig:
        """Build the per-call extraction config from these settings."""
        return ExtractionConfig(
            confidence_threshold=self.ocr_confidence_threshold,
            max_images=self.ocr_max_images,
            language=self.ocr_language,
            image_quality=ImageQuality(
                max_width=self.ocr_max_width,
                max_height=self.ocr_max_height,
                quality=self.ocr_image_quality,
            ),
            engine_options=EngineOptions(
                char_whitelist=self.ocr_char_whitelist,
                page_segmentation_mode=self.ocr_page_segmentation_mode,
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once at startup and cached for subsequent calls.
    """
    return Settings()
