"""Slip verification pipeline.

Runs preprocessing, OCR, transaction id matching and amount extraction for
one slip and folds the outcome into a :class:`VerificationResult`. Only the
OCR step may raise; everything else is total.
"""

import asyncio
import re
from decimal import Decimal
from typing import Protocol

from slipcheck.extraction.amount_extractor import (
    AmountExtractor,
    amounts_match,
    parse_expected_amount,
)
from slipcheck.matching.edit_distance import match_transaction_id
from slipcheck.ocr.tesseract_engine import OCRResult, TesseractEngine
from slipcheck.preprocessing.pipeline import SlipPreprocessor
from slipcheck.utils.config import AppConfig
from slipcheck.utils.logger import get_logger

from .errors import OCRTimeoutError
from .models import VerificationResult

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


class OCREngine(Protocol):
    def recognize(self, data: bytes) -> OCRResult: ...


def collapse_whitespace(text: str | None) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return _WHITESPACE.sub(" ", text or "").strip()


class SlipVerifier:
    """Verify a single slip against an expected transaction id and amount.

    Args:
        config: Application configuration.
        preprocessor: Image preprocessor; built from config when omitted.
        ocr_engine: OCR adapter; a Tesseract engine is built when omitted.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        preprocessor: SlipPreprocessor | None = None,
        ocr_engine: OCREngine | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.preprocessor = preprocessor or SlipPreprocessor(self.config.preprocessing)
        self.ocr_engine = ocr_engine or TesseractEngine(
            tesseract_cmd=self.config.ocr.tesseract_cmd,
            default_lang=self.config.ocr.default_lang,
            psm=self.config.ocr.psm,
        )
        self.amount_extractor = AmountExtractor(self.config.amount)

    async def verify(
        self,
        data: bytes,
        mime_type: str | None = None,
        expected_transaction_id: str | None = None,
        expected_amount: str | Decimal | float | None = None,
    ) -> VerificationResult:
        """Verify one slip.

        Args:
            data: Raw upload bytes.
            mime_type: Declared content type of the upload.
            expected_transaction_id: Transaction id the slip should show.
            expected_amount: Amount the slip should show.

        Returns:
            The verification result.

        Raises:
            OCRError: If OCR fails or exceeds the configured timeout.
        """
        processed = await asyncio.to_thread(self.preprocessor.preprocess, data, mime_type)
        ocr_result = await self._recognize(processed)

        text = collapse_whitespace(ocr_result.text)
        id_match = match_transaction_id(
            expected_transaction_id,
            text,
            max_distance=self.config.matching.max_distance,
            fold_confusables=self.config.matching.fold_confusables,
        )

        detected = self.amount_extractor.extract(text)
        expected = parse_expected_amount(expected_amount)
        amount_match = amounts_match(detected, expected, self.config.amount.tolerance)

        logger.debug(
            "Slip verified: match=%s distance=%s detected=%s expected=%s amount_match=%s",
            id_match.match,
            id_match.distance,
            detected,
            expected,
            amount_match,
        )
        return VerificationResult(
            match=id_match.match,
            confidence=float(ocr_result.confidence),
            extracted_text=text,
            distance=id_match.distance,
            detected_amount=detected,
            expected_amount=expected,
            amount_match=amount_match,
        )

    async def _recognize(self, data: bytes) -> OCRResult:
        # The worker thread keeps running after a timeout; only the wait is abandoned.
        timeout = self.config.ocr.timeout_seconds
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.ocr_engine.recognize, data),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise OCRTimeoutError(timeout) from exc
