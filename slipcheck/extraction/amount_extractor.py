"""Heuristic extraction of the paid amount from slip OCR text.

Slips are unstructured: bank logos, reference numbers, dates, balances and
account numbers all show up as digits. Extraction runs in two passes:

1. Labelled candidates, i.e. numbers next to a currency marker (either side)
   or following a total/amount/due/paid keyword. The largest one wins, since
   a total is normally the largest labelled figure on a slip.
2. Only when nothing is labelled: every decimal-like token, minus values
   that cannot be a payment (non-positive, above a ceiling, or a four digit
   integer that looks like a calendar year). The largest survivor wins.

The year filter is tied to the current era and will also drop genuine
amounts in the same band. That is a known limitation of the heuristic.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from slipcheck.utils.config import AmountConfig
from slipcheck.utils.logger import get_logger

logger = get_logger(__name__)

_CENT = Decimal("0.01")

_NUMBER = r"(?<![\d,])(?<!\d\.)(?P<num>\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)(?!\d)"
_CURRENCY_CODES = r"MVR|USD|EUR|GBP|INR|AED|LKR|Rf|RF|Rs|RS"
_CURRENCY_SYMBOLS = r"[$€£₹]"

# Pattern definitions: (name, regex, flags)
_LABELLED_PATTERNS: list[tuple[str, str, int]] = [
    (
        "currency_before",
        rf"(?:(?<![A-Za-z])(?:{_CURRENCY_CODES})\.?|{_CURRENCY_SYMBOLS})\s*[:\-]?\s*{_NUMBER}",
        0,
    ),
    (
        "currency_after",
        rf"{_NUMBER}\s*(?:(?:{_CURRENCY_CODES})(?![A-Za-z])|{_CURRENCY_SYMBOLS})",
        0,
    ),
    (
        "keyword",
        rf"\b(?:total|amount|due|paid)\b[^\d\n]{{0,24}}?{_NUMBER}",
        re.IGNORECASE,
    ),
]

_LABELLED = [(name, re.compile(pattern, flags)) for name, pattern, flags in _LABELLED_PATTERNS]
_ANY_NUMBER = re.compile(_NUMBER)
_EXPECTED_JUNK = re.compile(r"[^0-9.\-]")


def _to_decimal(token: str) -> Decimal | None:
    """Parse a numeric token, treating commas as thousands separators."""
    try:
        value = Decimal(token.replace(",", ""))
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


class AmountExtractor:
    """Locate the monetary total of a slip in raw OCR text.

    Args:
        config: Plausibility limits for candidate amounts.
    """

    def __init__(self, config: AmountConfig | None = None) -> None:
        self.config = config or AmountConfig()

    def extract(self, text: str | None) -> Decimal | None:
        """Return the most likely paid amount, or ``None``.

        Never raises; unparsable input yields ``None``.
        """
        if not text:
            return None

        labelled = self._labelled_candidates(text)
        if labelled:
            amount = max(labelled)
            logger.debug("Amount %s chosen from %d labelled candidates", amount, len(labelled))
            return amount.quantize(_CENT, rounding=ROUND_HALF_UP)

        fallback = self._fallback_candidates(text)
        if not fallback:
            logger.debug("No plausible amount found in slip text")
            return None

        amount = max(fallback)
        logger.debug("Amount %s chosen from %d unlabelled tokens", amount, len(fallback))
        return amount.quantize(_CENT, rounding=ROUND_HALF_UP)

    def _labelled_candidates(self, text: str) -> list[Decimal]:
        candidates: list[Decimal] = []
        for name, pattern in _LABELLED:
            for match in pattern.finditer(text):
                value = _to_decimal(match.group("num"))
                if value is not None and self._is_plausible(value):
                    logger.debug("Labelled candidate (%s): %s", name, value)
                    candidates.append(value)
        return candidates

    def _fallback_candidates(self, text: str) -> list[Decimal]:
        candidates: list[Decimal] = []
        for match in _ANY_NUMBER.finditer(text):
            token = match.group("num")
            value = _to_decimal(token)
            if value is None or not self._is_plausible(value):
                continue
            if self._looks_like_year(token):
                continue
            candidates.append(value)
        return candidates

    def _is_plausible(self, value: Decimal) -> bool:
        return Decimal(0) < value <= self.config.ceiling

    def _looks_like_year(self, token: str) -> bool:
        if len(token) != 4 or not token.isdigit():
            return False
        return self.config.year_min <= int(token) <= self.config.year_max


_default_extractor = AmountExtractor()


def extract_amount(text: str | None) -> Decimal | None:
    """Extract the paid amount from slip text using default limits."""
    return _default_extractor.extract(text)


def parse_expected_amount(value: object) -> Decimal | None:
    """Parse a caller-supplied expected amount.

    Everything except digits, ``.`` and ``-`` is stripped, so ``"MVR 1,250.00"``
    parses as ``1250.00``.

    Args:
        value: Amount as string, number or ``None``.

    Returns:
        Parsed amount, or ``None`` when missing or invalid.
    """
    if value is None or isinstance(value, bool):
        return None
    cleaned = _EXPECTED_JUNK.sub("", str(value))
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def amounts_match(
    detected: Decimal | None,
    expected: Decimal | None,
    tolerance: Decimal = Decimal("1"),
) -> bool | None:
    """Compare detected and expected amounts within an absolute tolerance.

    Returns:
        ``None`` when either side is missing, otherwise whether
        ``|detected - expected| <= tolerance``.
    """
    if detected is None or expected is None:
        return None
    return abs(detected - expected) <= tolerance
