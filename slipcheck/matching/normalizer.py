"""Text normalization for transaction id comparison."""

import re

_NON_ALNUM = re.compile(r"[^0-9A-Za-z]")

# Glyph pairs Tesseract commonly swaps inside alphanumeric references.
_CONFUSABLES = str.maketrans({"O": "0", "I": "1"})


def normalize(text: str | None) -> str:
    """Strip every non-alphanumeric character and uppercase the rest.

    Args:
        text: Raw text, possibly ``None``.

    Returns:
        Normalized text; empty string for empty input.
    """
    if not text:
        return ""
    return _NON_ALNUM.sub("", str(text)).upper()


def fold_confusables(text: str) -> str:
    """Map easily confused letters onto their digit look-alikes.

    Expects already normalized (uppercase) text.
    """
    return text.translate(_CONFUSABLES)
