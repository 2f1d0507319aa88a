"""Shared test fixtures for the slip verification test suite."""

from decimal import Decimal
from pathlib import Path

import cv2
import numpy as np
import pytest

from slipcheck.ocr.tesseract_engine import OCRResult
from slipcheck.utils.config import AppConfig, PreprocessingConfig
from slipcheck.verification.errors import OCRError
from slipcheck.verification.models import VerificationResult


class FakeOCREngine:
    """OCR stand-in returning canned text, keyed by the bytes it receives."""

    def __init__(
        self,
        text: str = "",
        confidence: float = 90.0,
        responses: dict[bytes, str] | None = None,
        failing: set[bytes] | None = None,
    ) -> None:
        self.text = text
        self.confidence = confidence
        self.responses = responses or {}
        self.failing = failing or set()
        self.calls: list[bytes] = []

    def recognize(self, data: bytes) -> OCRResult:
        self.calls.append(data)
        if data in self.failing:
            raise OCRError("engine crashed")
        return OCRResult(text=self.responses.get(data, self.text), confidence=self.confidence)


def make_result(
    match: bool | None = None,
    amount_match: bool | None = None,
    text: str = "slip text",
) -> VerificationResult:
    """Build a verification result with sensible defaults."""
    return VerificationResult(
        match=match,
        confidence=80.0,
        extracted_text=text,
        distance=None if match is None else (0 if match else 3),
        detected_amount=Decimal("10.00"),
        expected_amount=None if amount_match is None else Decimal("10.00"),
        amount_match=amount_match,
    )


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a wide synthetic BGR slip image."""
    image = np.full((400, 2000, 3), 200, dtype=np.uint8)
    image[100:300, 200:1800] = (40, 60, 80)
    return image


@pytest.fixture
def png_bytes(sample_color_image: np.ndarray) -> bytes:
    """Encode the synthetic slip as PNG."""
    ok, buffer = cv2.imencode(".png", sample_color_image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def passthrough_config() -> AppConfig:
    """Configuration with preprocessing disabled so OCR sees raw bytes."""
    return AppConfig(preprocessing=PreprocessingConfig(enabled=False))


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
