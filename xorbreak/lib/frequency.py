"""
Character frequency model. A `FrequencyVector` is a histogram over the 128 ASCII code points,
normalized so that its entries sum to one. Lowercase letters are counted as their uppercase
counterpart, and characters outside of the ASCII range are ignored entirely: they count neither
as an occurrence nor towards the total length of the text.
"""
from __future__ import annotations

from collections import Counter
from typing import Tuple

from xorbreak.lib.environment import logger

ALPHABET_SIZE = 0x80

FrequencyVector = Tuple[float, ...]
"""
An immutable histogram of `xorbreak.lib.frequency.ALPHABET_SIZE` relative frequencies.
"""

_log = logger(__name__)


def empty_frequencies() -> FrequencyVector:
    """
    The all-zero histogram, which is the frequency vector of any text without ASCII characters.
    """
    return (0.0,) * ALPHABET_SIZE


def compute_frequencies(text: str) -> FrequencyVector:
    """
    Compute the relative frequency of each ASCII character in the given text.
    """
    counts = Counter(
        code - 0x20 if 0x61 <= code <= 0x7A else code
        for code in map(ord, text) if code < ALPHABET_SIZE)
    total = sum(counts.values())
    if not total:
        return empty_frequencies()
    frequencies = tuple(counts[code] / total for code in range(ALPHABET_SIZE))
    _log.debug('character frequencies for %d ASCII characters computed', total)
    return frequencies
