"""Tesseract OCR adapter for slip images.

Turns image bytes into text plus the engine's own confidence score. This is
the one step of the pipeline allowed to fail: any engine problem surfaces
as :class:`OCRError`.
"""

import io
from dataclasses import dataclass

import pytesseract
from PIL import Image

from slipcheck.utils.logger import get_logger
from slipcheck.verification.errors import OCRError

logger = get_logger(__name__)


@dataclass
class OCRResult:
    """Text recognized on a slip.

    ``confidence`` is Tesseract's mean word confidence on its native
    0-100 scale.
    """

    text: str
    confidence: float


class TesseractEngine:
    """Wrapper around Tesseract OCR for slip text extraction.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code.
        psm: Tesseract page segmentation mode.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 3,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm

    def recognize(self, data: bytes) -> OCRResult:
        """Recognize the text of an encoded image.

        Args:
            data: Encoded image bytes (PNG, JPEG, TIFF, ...).

        Returns:
            OCRResult with the full text and mean confidence.

        Raises:
            OCRError: If the image cannot be decoded or Tesseract fails.
        """
        config = f"--psm {self.psm}"
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            text = pytesseract.image_to_string(image, lang=self.default_lang, config=config)
            data_dict = pytesseract.image_to_data(
                image,
                lang=self.default_lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
        except Exception as exc:
            raise OCRError(f"OCR failed: {exc}") from exc

        confidence = self._mean_confidence(data_dict)
        logger.info(
            "OCR read %d characters with confidence %.1f",
            len(text),
            confidence,
        )
        return OCRResult(text=text or "", confidence=confidence)

    @staticmethod
    def _mean_confidence(data: dict) -> float:
        """Average the confidence of recognized words, ignoring layout rows."""
        scores: list[float] = []
        for word, conf in zip(data.get("text", []), data.get("conf", [])):
            try:
                score = float(conf)
            except (TypeError, ValueError):
                continue
            if score >= 0 and str(word).strip():
                scores.append(score)
        return sum(scores) / len(scores) if scores else 0.0
