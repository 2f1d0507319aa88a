"""Slip image preprocessing ahead of OCR.

Decodes the uploaded bytes (image or PDF), bounds the width, converts to
grayscale, normalizes contrast and re-encodes as PNG. Preprocessing only
improves OCR quality; it must never stop a slip from being read, so any
failure falls back to the original bytes.
"""

import cv2
import numpy as np

from slipcheck.utils.config import PreprocessingConfig
from slipcheck.utils.logger import get_logger

from .contrast import apply_clahe, resize_to_width, stretch_contrast, to_gray
from .pdf_render import is_pdf, render_first_page

logger = get_logger(__name__)


def decode_image(data: bytes, mime_type: str | None = None, pdf_dpi: int = 300) -> np.ndarray:
    """Decode raw upload bytes into an image array.

    Args:
        data: Raw file bytes.
        mime_type: Declared content type, if known.
        pdf_dpi: Resolution used when the payload is a PDF.

    Returns:
        Decoded image (BGR or grayscale).

    Raises:
        ValueError: If the bytes are not a decodable image.
    """
    if is_pdf(data, mime_type):
        return render_first_page(data, dpi=pdf_dpi)

    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError(f"Cannot decode image data ({mime_type or 'unknown type'})")
    return image


def encode_png(image: np.ndarray) -> bytes:
    """Encode an image array as PNG bytes."""
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("PNG encoding failed")
    return buffer.tobytes()


class SlipPreprocessor:
    """Normalize slip uploads for OCR.

    Args:
        config: Preprocessing configuration controlling which steps to apply.
    """

    def __init__(self, config: PreprocessingConfig | None = None) -> None:
        self.config = config or PreprocessingConfig()

    def preprocess(self, data: bytes, mime_type: str | None = None) -> bytes:
        """Run the preprocessing steps, falling back to the input on any error.

        Args:
            data: Raw upload bytes.
            mime_type: Declared content type.

        Returns:
            PNG bytes of the normalized image, or ``data`` unchanged when
            preprocessing is disabled or fails.
        """
        if not self.config.enabled:
            return data

        try:
            return self._run(data, mime_type)
        except Exception as exc:
            logger.warning("Preprocessing failed, using original bytes: %s", exc)
            return data

    def _run(self, data: bytes, mime_type: str | None) -> bytes:
        image = decode_image(data, mime_type, pdf_dpi=self.config.pdf_dpi)
        original_shape = image.shape

        result = resize_to_width(image, self.config.max_width)

        if self.config.grayscale:
            result = to_gray(result)

        if self.config.normalize_contrast:
            result = stretch_contrast(result)

        if self.config.clahe_enabled:
            result = apply_clahe(
                result,
                clip_limit=self.config.clahe_clip_limit,
                tile_size=self.config.clahe_tile_size,
            )

        logger.debug(
            "Preprocessed slip %s -> %s",
            "x".join(map(str, original_shape[:2])),
            "x".join(map(str, result.shape[:2])),
        )
        return encode_png(result)
