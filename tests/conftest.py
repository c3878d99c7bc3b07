"""
Shared pytest fixtures: fake OCR engines, generated screenshots and sample text.
"""

import io

import pytest
from PIL import Image

from tripscan.config import EngineOptions
from tripscan.domain.models import SampleSource
from tripscan.services.ocr import EngineError, NormalizedImage, RecognitionResult


SUMMARY_TEXT = """Weekly summary
Total Earnings ₹4,500.00
23 trips
Online 8.5 hrs
Distance 142.3 km
Surge ₹320
Tips ₹50
Taxes
-₹45
Cash collected
-₹1,200
"""


class FakeEngine:
    """
    In-process OCR engine returning canned text.

    Texts are handed out in call order (cycling). Calls listed in
    `fail_on` (0-based, counting only images that reached the engine)
    raise EngineError.
    """

    source = SampleSource.TESSERACT

    def __init__(
        self,
        texts: list[str],
        confidence: float = 100.0,
        fail_on: tuple[int, ...] = (),
    ) -> None:
        self.texts = texts
        self.confidence = confidence
        self.fail_on = fail_on
        self.calls: list[NormalizedImage] = []

    def recognize(
        self,
        image: NormalizedImage,
        language: str,
        options: EngineOptions,
    ) -> RecognitionResult:
        index = len(self.calls)
        self.calls.append(image)
        if index in self.fail_on:
            raise EngineError("engine crashed")
        return RecognitionResult(
            text=self.texts[index % len(self.texts)],
            confidence=self.confidence,
        )


def _make_png(
    width: int = 40,
    height: int = 20,
    color: tuple[int, ...] = (100, 100, 100),
    mode: str = "RGB",
) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_png():
    """Factory for solid-color PNG screenshots."""
    return _make_png


@pytest.fixture
def fake_engine_cls():
    """The FakeEngine class, for tests that configure their own engine."""
    return FakeEngine


@pytest.fixture
def summary_text() -> str:
    """OCR text of a complete weekly earnings summary."""
    return SUMMARY_TEXT
