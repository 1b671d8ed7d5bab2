"""Unit tests for syllable-based word-timing estimation."""

from __future__ import annotations

import pytest

from reelsync.timestamps.estimator import count_syllables, estimate_word_timings


@pytest.mark.parametrize(
    ("word", "expected"),
    [
        ("banana", 3),
        ("beautiful", 3),
        ("rhythm", 1),
        ("a", 1),
        ("ok", 1),
        ("NPR", 1),
        ("42", 1),
        ("Hello,", 2),
        ("", 1),
    ],
)
def test_count_syllables(word: str, expected: int) -> None:
    """Vowel groups are counted with a floor of one syllable."""
    assert count_syllables(word) == expected


def test_estimate_word_timings_empty() -> None:
    """Blank text produces no timings."""
    assert estimate_word_timings("") == []
    assert estimate_word_timings("   \n ") == []


def test_estimate_word_timings_pins_last_word_to_duration() -> None:
    """With a known duration the last word ends exactly on it."""
    # one=2, two=1, three=1 syllables -> 0.75 s per syllable
    timings = estimate_word_timings("one two three", total_duration=3.0)

    assert [t.word for t in timings] == ["one", "two", "three"]
    assert timings[0].start == 0.0
    assert timings[0].end == pytest.approx(1.5)
    assert timings[1].end == pytest.approx(2.25)
    assert timings[-1].end == 3.0


def test_estimate_word_timings_uses_speaking_rate_without_duration() -> None:
    """Without a duration the configured syllables-per-second rate applies."""
    timings = estimate_word_timings("hello world", syllables_per_second=3.0)

    assert timings[0].end == pytest.approx(2 / 3)
    assert timings[1].end == pytest.approx(1.0)


def test_estimate_word_timings_is_contiguous_and_monotonic() -> None:
    """Each word starts where the previous one ended."""
    timings = estimate_word_timings(
        "Scene timing depends on accurate word boundaries everywhere", total_duration=4.2
    )

    for previous, current in zip(timings, timings[1:]):
        assert current.start == previous.end
        assert current.end > current.start


def test_estimate_word_timings_rejects_non_string() -> None:
    """Only strings can be estimated."""
    with pytest.raises(TypeError):
        estimate_word_timings(["not", "text"])  # type: ignore[arg-type]
