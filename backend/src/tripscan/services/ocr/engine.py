"""
OCR engine adapters for earnings screenshots.

The extraction pipeline treats recognition as a black box: a normalized
image plus a language tag and an options bag in, plain text plus a 0-100
confidence out. Two backends implement that contract:

- Tesseract via pytesseract (default; honors the character whitelist and
  page segmentation mode)
- docTR (optional extra; layout-aware, ignores the tesseract options)

Design Decisions:
- Lazy imports and lazy model loading to avoid startup overhead
- Every backend failure surfaces as EngineError so the batch pipeline can
  degrade a single image without knowing backend exception types
"""

import logging
import shlex
from dataclasses import dataclass
from typing import Protocol

from tripscan.config import EngineOptions
from tripscan.domain.models import SampleSource

from .image import NormalizedImage

logger = logging.getLogger(__name__)


class EngineError(RuntimeError):
    """Raised when an OCR backend cannot recognize an image."""


@dataclass(frozen=True)
class RecognitionResult:
    """Text recognized from one image."""
    text: str
    confidence: float  # 0-100, engine scale

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class OCREngine(Protocol):
    """Recognition backend contract."""

    source: SampleSource

    def recognize(
        self,
        image: NormalizedImage,
        language: str,
        options: EngineOptions,
    ) -> RecognitionResult: ...


class TesseractEngine:
    """
    Tesseract OCR via pytesseract.

    Example:
        engine = TesseractEngine()
        result = engine.recognize(payload, "eng", EngineOptions())
        print(result.text, result.confidence)
    """

    source = SampleSource.TESSERACT

    def __init__(self) -> None:
        self._pytesseract = None

    def _get_backend(self):
        """Lazy load pytesseract; the tesseract binary is checked on first call."""
        if self._pytesseract is None:
            try:
                import pytesseract
            except ImportError as e:
                logger.error(f"pytesseract not installed: {e}")
                raise EngineError(
                    "pytesseract is required for OCR. Install with: pip install pytesseract"
                ) from e
            self._pytesseract = pytesseract
        return self._pytesseract

    @staticmethod
    def build_config(options: EngineOptions) -> str:
        """Translate engine options into a tesseract command-line config."""
        parts: list[str] = []
        if options.page_segmentation_mode is not None:
            parts.append(f"--psm {options.page_segmentation_mode}")
        if options.char_whitelist:
            parts.append(
                "-c " + shlex.quote(f"tessedit_char_whitelist={options.char_whitelist}")
            )
        return " ".join(parts)

    def recognize(
        self,
        image: NormalizedImage,
        language: str,
        options: EngineOptions,
    ) -> RecognitionResult:
        pytesseract = self._get_backend()
        config = self.build_config(options)

        try:
            data = pytesseract.image_to_data(
                image.to_pil(),
                lang=language,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            logger.error(f"Tesseract failed: {e}")
            raise EngineError(f"Tesseract failed: {e}") from e

        text, word_confidences = self.assemble_lines(data)
        confidence = (
            sum(word_confidences) / len(word_confidences) if word_confidences else 0.0
        )

        logger.info(
            f"Tesseract complete: {len(word_confidences)} words, "
            f"avg confidence: {confidence:.1f}"
        )
        return RecognitionResult(text=text, confidence=confidence)

    @staticmethod
    def assemble_lines(data: dict) -> tuple[str, list[float]]:
        """
        Rebuild line-oriented text from tesseract's word table.

        Words are grouped by (block, paragraph, line) in reading order, so
        the field matchers see the same lines image_to_string would give.

        Returns:
            (text, confidences of the recognized words)
        """
        lines: dict[tuple[int, int, int], list[str]] = {}
        confidences: list[float] = []

        for i, word in enumerate(data.get("text", [])):
            word = str(word).strip()
            if not word:
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)

            conf = float(data["conf"][i])
            if conf >= 0:
                confidences.append(conf)

        return "\n".join(" ".join(words) for words in lines.values()), confidences


class DoctrEngine:
    """
    Layout-aware OCR using docTR.

    Words are joined per detected line so the line-oriented field matchers
    see the same structure they would get from tesseract.
    """

    source = SampleSource.DOCTR

    def __init__(self) -> None:
        self._model = None

    def _get_model(self):
        """
        Lazy load the docTR model.

        The pretrained models are cached by docTR after first download.
        """
        if self._model is None:
            try:
                from doctr.models import ocr_predictor
            except ImportError as e:
                logger.error(f"docTR not installed: {e}")
                raise EngineError(
                    "docTR is required for this engine. Install with: pip install 'tripscan[doctr]'"
                ) from e

            logger.info("Loading docTR OCR model...")
            self._model = ocr_predictor(
                det_arch="db_resnet50",
                reco_arch="crnn_vgg16_bn",
                pretrained=True,
            )
            logger.info("docTR model loaded successfully")

        return self._model

    def recognize(
        self,
        image: NormalizedImage,
        language: str,
        options: EngineOptions,
    ) -> RecognitionResult:
        model = self._get_model()
        from doctr.io import DocumentFile

        try:
            doc = DocumentFile.from_images(image.content)
            result = model(doc)
        except Exception as e:
            logger.exception("docTR inference failed")
            raise EngineError(f"docTR failed: {e}") from e

        lines: list[str] = []
        confidences: list[float] = []
        for page in result.pages:
            for block in page.blocks:
                for line in block.lines:
                    lines.append(" ".join(word.value for word in line.words))
                    confidences.extend(word.confidence for word in line.words)

        confidence = (sum(confidences) / len(confidences) * 100) if confidences else 0.0

        logger.info(
            f"docTR complete: {len(lines)} lines, avg confidence: {confidence:.1f}"
        )
        return RecognitionResult(text="\n".join(lines), confidence=confidence)


ENGINES: dict[str, type] = {
    "tesseract": TesseractEngine,
    "doctr": DoctrEngine,
}


def create_engine(name: str) -> OCREngine:
    """Instantiate an OCR backend by name."""
    try:
        return ENGINES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown OCR engine: {name}. Available: {', '.join(ENGINES)}"
        ) from None
