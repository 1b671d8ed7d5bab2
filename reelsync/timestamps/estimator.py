"""Syllable-based word-timing estimation.

Used only when exact transcription timings are unavailable or failed. Each
word gets a share of the narration proportional to its estimated syllable
count; the resulting timings are contiguous and monotonic.
"""

from __future__ import annotations

import math
import re

from reelsync.timestamps.models import WordTiming
from reelsync.utils.constant import SYLLABLES_PER_SECOND

__all__ = [
    "count_syllables",
    "estimate_word_timings",
]

_NON_LETTERS = re.compile(r"[^a-z]")
_VOWEL_GROUPS = re.compile(r"[aeiouy]+")


def count_syllables(word: str) -> int:
    """Estimate the number of syllables in ``word``.

    Non-letters are stripped and the rest lower-cased. Words of at most two
    letters count as one syllable. Longer words count their vowel groups,
    falling back to ``ceil(len / 3)`` for vowel-less tokens such as
    abbreviations. The result is never below 1.

    Args:
        word: A single whitespace-free token.

    Returns:
        Estimated syllable count, at least 1.

    Examples:
        >>> count_syllables("banana")
        3
        >>> count_syllables("NPR")
        1
        >>> count_syllables("42")
        1
    """
    letters = _NON_LETTERS.sub("", word.lower())
    if len(letters) <= 2:
        return 1
    groups = _VOWEL_GROUPS.findall(letters)
    if not groups:
        return max(1, math.ceil(len(letters) / 3))
    return max(1, len(groups))


def estimate_word_timings(
    text: str,
    total_duration: float | None = None,
    syllables_per_second: float = SYLLABLES_PER_SECOND,
) -> list[WordTiming]:
    """Produce approximate word timings for ``text``.

    Args:
        text: Narration text; split on whitespace.
        total_duration: Known audio duration in seconds. When given, the last
            word ends exactly at this value.
        syllables_per_second: Assumed speaking rate when no duration is known.

    Returns:
        One timing per whitespace-separated word, contiguous from 0.0.

    Raises:
        TypeError: If ``text`` is not a string.
    """
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {type(text).__name__}")

    words = text.split()
    if not words:
        return []

    syllables = [count_syllables(word) for word in words]
    total_syllables = sum(syllables)
    if total_duration is not None and total_duration > 0:
        seconds_per_syllable = total_duration / total_syllables
    else:
        seconds_per_syllable = 1.0 / syllables_per_second

    timings: list[WordTiming] = []
    running = 0.0
    for index, (word, count) in enumerate(zip(words, syllables)):
        end = running + count * seconds_per_syllable
        if index == len(words) - 1 and total_duration is not None and total_duration > 0:
            # Pin the final boundary to absorb float accumulation error.
            end = total_duration
        timings.append(WordTiming(word=word, start=running, end=end))
        running = end
    return timings
