"""Levenshtein distance and windowed search of a short id in noisy text.

OCR output of a slip is long and messy; the transaction id we look for is
short. Rather than comparing the id with the whole text, a window of the
id's length is slid across the text and the best local alignment wins.
"""

from dataclasses import dataclass

from slipcheck.utils.logger import get_logger

from .normalizer import fold_confusables as fold
from .normalizer import normalize

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransactionMatch:
    """Outcome of matching an expected transaction id against slip text.

    ``match`` and ``distance`` are ``None`` when no id was expected.
    """

    match: bool | None
    distance: int | None


def levenshtein_distance(a: str, b: str) -> int:
    """Compute the unit-cost edit distance between two strings.

    Args:
        a: First string.
        b: Second string.

    Returns:
        Minimum number of single-character insertions, deletions and
        substitutions turning ``a`` into ``b``.
    """
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        for j, char_b in enumerate(b, 1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def best_window_distance(needle: str, haystack: str) -> int:
    """Find the smallest edit distance between ``needle`` and any window of ``haystack``.

    Windows have the length of ``needle``. The scan stops early on an exact
    window.

    Args:
        needle: Short string to look for.
        haystack: Longer text to search in.

    Returns:
        Minimum distance over all windows. ``0`` for an empty needle,
        ``len(needle)`` for an empty haystack, and the whole-string distance
        when the haystack is not longer than the needle.
    """
    if not needle:
        return 0
    if not haystack:
        return len(needle)
    if len(haystack) <= len(needle):
        return levenshtein_distance(needle, haystack)

    width = len(needle)
    best = width
    for start in range(len(haystack) - width + 1):
        distance = levenshtein_distance(needle, haystack[start : start + width])
        if distance == 0:
            return 0
        best = min(best, distance)
    return best


def _distance(expected: str, text: str) -> int:
    if expected in text:
        return 0
    return best_window_distance(expected, text)


def match_transaction_id(
    expected: str | None,
    text: str | None,
    max_distance: int = 1,
    fold_confusables: bool = True,
) -> TransactionMatch:
    """Decide whether slip text contains the expected transaction id.

    Both sides are normalized first. When the plain comparison misses and
    ``fold_confusables`` is set, the comparison is repeated with ``O``/``0``
    and ``I``/``1`` folded together and the smaller distance is kept.

    Args:
        expected: Transaction id the caller claims, or ``None``.
        text: OCR text of the slip.
        max_distance: Largest distance still counted as a match.
        fold_confusables: Whether to retry with OCR look-alikes folded.

    Returns:
        Match decision and the best distance found.
    """
    needle = normalize(expected)
    if not needle:
        return TransactionMatch(match=None, distance=None)

    haystack = normalize(text)
    distance = _distance(needle, haystack)

    if distance > max_distance and fold_confusables:
        folded = _distance(fold(needle), fold(haystack))
        if folded < distance:
            logger.debug(
                "Confusable folding improved distance for %s: %d -> %d",
                needle,
                distance,
                folded,
            )
            distance = folded

    return TransactionMatch(match=distance <= max_distance, distance=distance)
