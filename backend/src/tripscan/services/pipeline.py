"""
Batch extraction orchestrator.

Coordinates the full pipeline for a batch of earnings screenshots:
1. Image normalization (downscale + contrast boost)
2. OCR via the configured engine
3. Field extraction and confidence scoring
4. Consensus merge of all samples
5. Plausibility validation of the merged result

This is the primary interface for screenshot extraction.

Design Decisions:
- Images are processed sequentially and independently; a failure in one
  image degrades that slot to a zero-confidence placeholder and never
  aborts its siblings
- Configuration problems are the only batch-level failure, raised before
  any image is touched
- Progress callbacks are best-effort: a failing callback is logged and
  ignored
- Progress state lives in a per-call ProgressReporter, never on the
  service, which is shared across concurrent requests
"""

import dataclasses
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from tripscan.config import ExtractionConfig
from tripscan.domain.merging import merge_samples
from tripscan.domain.models import (
    ConfidenceDescription,
    ExtractedFields,
    ProcessingState,
    ValidationReport,
)
from tripscan.domain.scoring import describe_confidence
from tripscan.domain.validation import validate_extraction

from .ocr import (
    DecodeError,
    EngineError,
    ImageNormalizer,
    OCREngine,
    ScreenshotFieldExtractor,
    TesseractEngine,
)

logger = logging.getLogger(__name__)


ProgressCallback = Callable[[float, str], None]

# Share of the progress bar spent on per-image work; the rest is the final step
IMAGE_PROGRESS_SPAN = 90.0


class BatchTooLargeError(ValueError):
    """Raised when a batch holds more images than the config allows."""


class ProgressReporter:
    """
    Progress for one batch call.

    Holds the latest ProcessingState and forwards every update to an
    optional callback.
    """

    def __init__(self, on_progress: ProgressCallback | None = None) -> None:
        self.on_progress = on_progress
        self.state = ProcessingState(is_processing=False, progress=0.0, status="Idle")

    def report(self, progress: float, status: str, finished: bool = False) -> None:
        self.state = ProcessingState(
            is_processing=not finished, progress=progress, status=status
        )
        logger.debug(f"Progress {progress:.0f}%: {status}")

        if self.on_progress is None:
            return
        try:
            self.on_progress(progress, status)
        except Exception as e:
            logger.warning(f"Progress callback failed at {progress:.0f}%: {e}")


@dataclass
class BatchOutcome:
    """
    Complete result for one batch of screenshots.

    Aggregates the per-image samples with the consensus record and its
    review signals.
    """
    samples: list[ExtractedFields]
    merged: ExtractedFields | None = None
    validation: ValidationReport | None = None
    confidence: ConfidenceDescription | None = None
    accepted: bool = False

    failed_indexes: list[int] = field(default_factory=list)


class ExtractionService:
    """
    Orchestrates normalize -> recognize -> extract -> score per image.

    Example:
        service = ExtractionService(engine=TesseractEngine())
        outcome = service.run(blobs, ExtractionConfig())

        if outcome.accepted:
            report_form.update(outcome.merged.form_updates())
    """

    def __init__(
        self,
        engine: OCREngine,
        extractor: ScreenshotFieldExtractor | None = None,
    ) -> None:
        """
        Initialize extraction service.

        Args:
            engine: OCR backend used for every image
            extractor: Field extractor (created if None)
        """
        self.engine = engine
        self.extractor = extractor or ScreenshotFieldExtractor()

    def process_batch(
        self,
        images: Sequence[bytes],
        config: ExtractionConfig | None = None,
        on_progress: ProgressCallback | None = None,
        reporter: ProgressReporter | None = None,
    ) -> list[ExtractedFields]:
        """
        Extract one sample per image, in input order.

        Args:
            images: Raw image blobs
            config: Extraction config (defaults if None)
            on_progress: Called with (percent, status) as work advances
            reporter: Progress tracker for this call, built from on_progress
                if None; pass one in to read its state while the batch runs

        Returns:
            One ExtractedFields per image; failed images yield placeholders

        Raises:
            BatchTooLargeError: If len(images) exceeds config.max_images
        """
        config = config or ExtractionConfig()
        if len(images) > config.max_images:
            raise BatchTooLargeError(
                f"Batch has {len(images)} images, maximum is {config.max_images}"
            )

        reporter = reporter or ProgressReporter(on_progress)
        normalizer = ImageNormalizer(config.image_quality)
        total = len(images)
        step = IMAGE_PROGRESS_SPAN / total if total else 0.0
        results: list[ExtractedFields] = []

        logger.info(f"Processing batch: {total} image(s), engine={self.engine.source.value}")

        for index, content in enumerate(images):
            base = index * step
            position = f"{index + 1} of {total}"

            reporter.report(base, f"Preprocessing image {position}...")
            results.append(
                self._process_image(
                    index, content, config, normalizer,
                    lambda: reporter.report(
                        base + step * 0.3,
                        f"Processing image {index + 1} with OCR...",
                    ),
                )
            )
            reporter.report(base + step * 0.9, f"Parsed image {position}")

        reporter.report(100.0, "Processing complete!", finished=True)
        return results

    def _process_image(
        self,
        index: int,
        content: bytes,
        config: ExtractionConfig,
        normalizer: ImageNormalizer,
        before_ocr: Callable[[], None],
    ) -> ExtractedFields:
        """Run one image through the pipeline, degrading failures to a placeholder."""
        try:
            payload = normalizer.normalize(content)
            before_ocr()
            recognition = self.engine.recognize(
                payload, config.language, config.engine_options
            )
        except DecodeError as e:
            logger.warning(f"Image {index + 1}: cannot decode, using placeholder: {e}")
            return ExtractedFields.placeholder()
        except EngineError as e:
            logger.error(f"Image {index + 1}: OCR engine failed, using placeholder: {e}")
            return ExtractedFields.placeholder()
        except Exception:
            logger.exception(f"Image {index + 1}: unexpected failure, using placeholder")
            return ExtractedFields.placeholder()

        processed_at = datetime.now(timezone.utc)
        sample = self.extractor.extract(
            recognition.text,
            source=self.engine.source,
            processed_at=processed_at,
        )

        # Engine certainty scales the parser's own estimate
        combined = min(recognition.confidence / 100 * sample.confidence, 1.0)
        sample = dataclasses.replace(sample, confidence=max(0.0, combined))

        logger.info(
            f"Image {index + 1}: {recognition.word_count} words, "
            f"{len(sample.fields_found)} fields, "
            f"engine {recognition.confidence:.0f}%, confidence {sample.confidence:.0%}"
        )
        return sample

    def run(
        self,
        images: Sequence[bytes],
        config: ExtractionConfig | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchOutcome:
        """
        Process a batch and reduce it to one reviewed result.

        Returns:
            BatchOutcome with samples, merged record, validation report,
            confidence tier and acceptance flag
        """
        config = config or ExtractionConfig()
        samples = self.process_batch(images, config, on_progress)
        return summarize(samples, config)


def summarize(
    samples: list[ExtractedFields],
    config: ExtractionConfig | None = None,
) -> BatchOutcome:
    """Merge samples and attach validation, confidence tier and acceptance."""
    config = config or ExtractionConfig()
    merged = merge_samples(samples)
    failed = [
        index for index, sample in enumerate(samples)
        if sample.confidence == 0 and not sample.fields_found
    ]

    if merged is None:
        return BatchOutcome(samples=samples, failed_indexes=failed)

    return BatchOutcome(
        samples=samples,
        merged=merged,
        validation=validate_extraction(merged),
        confidence=describe_confidence(merged.confidence),
        accepted=config.accepts(merged.confidence),
        failed_indexes=failed,
    )


def process_batch(
    images: Sequence[bytes],
    config: ExtractionConfig,
    on_progress: ProgressCallback | None = None,
    engine: OCREngine | None = None,
) -> list[ExtractedFields]:
    """Convenience wrapper: process a batch with a fresh service."""
    service = ExtractionService(engine or TesseractEngine())
    return service.process_batch(images, config, on_progress)
