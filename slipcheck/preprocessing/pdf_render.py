"""First-page rendering of PDF slips.

Slips exported from banking apps often arrive as PDFs. Only the first page
carries the transfer confirmation, so only that page is rasterized.
"""

import cv2
import numpy as np
from pdf2image import convert_from_bytes

from slipcheck.utils.logger import get_logger

logger = get_logger(__name__)

PDF_MIME_TYPE = "application/pdf"


def is_pdf(data: bytes, mime_type: str | None = None) -> bool:
    """Tell whether the payload is a PDF, by mime type or magic bytes."""
    return mime_type == PDF_MIME_TYPE or data[:4] == b"%PDF"


def render_first_page(data: bytes, dpi: int = 300) -> np.ndarray:
    """Render page one of a PDF to a BGR image.

    Args:
        data: Raw PDF bytes.
        dpi: Rendering resolution.

    Returns:
        Page image as a numpy array (BGR format).

    Raises:
        RuntimeError: If the PDF cannot be rendered or has no pages.
    """
    try:
        pages = convert_from_bytes(data, dpi=dpi, first_page=1, last_page=1)
    except Exception as exc:
        raise RuntimeError(f"PDF rendering failed: {exc}") from exc

    if not pages:
        raise RuntimeError("PDF has no pages")

    logger.debug("Rendered first PDF page at %d DPI", dpi)
    rgb = np.array(pages[0].convert("RGB"))
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
