"""Group timed words into caption phrases and animate the active one.

Phrases are fixed-size runs of words. A phrase is visible while
``start <= t < end``; between phrases nothing is shown rather than holding
the previous phrase. On entry the phrase pops in over a few frames with a
quadratic ease-in, scale 0.8→1.0 and opacity 0→1, clamped once the entry ends.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from dataclasses import dataclass

from reelsync.timestamps.models import Phrase, WordTiming
from reelsync.utils.constant import CAPTION_ENTRY_FRAMES, DEFAULT_FPS, DEFAULT_WORDS_PER_PHRASE

__all__ = [
    "ENTRY_OPACITY",
    "ENTRY_SCALE",
    "CaptionFrame",
    "active_phrase",
    "caption_frame_at",
    "group_phrases",
    "phrase_animation",
]

ENTRY_SCALE: tuple[float, float] = (0.8, 1.0)
ENTRY_OPACITY: tuple[float, float] = (0.0, 1.0)


@dataclass(frozen=True)
class CaptionFrame:
    """Render state of the caption for one video frame.

    Attributes:
        text: Phrase text to draw.
        scale: Uniform scale factor.
        opacity: Alpha in ``[0, 1]``.
        highlight_index: Index within the phrase of the word being spoken.

    """

    text: str
    scale: float
    opacity: float
    highlight_index: int


def group_phrases(
    words: Sequence[WordTiming],
    words_per_phrase: int = DEFAULT_WORDS_PER_PHRASE,
) -> list[Phrase]:
    """Chunk ``words`` into phrases of ``words_per_phrase`` words.

    Args:
        words: Ordered word timings.
        words_per_phrase: Phrase size; the last phrase may be shorter.

    Returns:
        ``ceil(len(words) / words_per_phrase)`` phrases in order.

    Raises:
        ValueError: If ``words_per_phrase`` is smaller than 1.
    """
    if words_per_phrase < 1:
        raise ValueError("words_per_phrase must be >= 1")

    phrases: list[Phrase] = []
    for offset in range(0, len(words), words_per_phrase):
        run = list(words[offset : offset + words_per_phrase])
        phrases.append(
            Phrase(
                text=" ".join(word.word for word in run),
                start=run[0].start,
                end=run[-1].end,
                words=run,
            )
        )
    return phrases


def active_phrase(phrases: Sequence[Phrase], current_time: float) -> Phrase | None:
    """Return the phrase whose window contains ``current_time``.

    Args:
        phrases: Phrases ordered by start time.
        current_time: Playback position in seconds.

    Returns:
        The active phrase, or ``None`` in a gap or outside the narration.
    """
    starts = [phrase.start for phrase in phrases]
    index = bisect.bisect_right(starts, current_time) - 1
    if index < 0:
        return None
    phrase = phrases[index]
    if phrase.start <= current_time < phrase.end:
        return phrase
    return None


def _lerp(bounds: tuple[float, float], progress: float) -> float:
    low, high = bounds
    return low + (high - low) * progress


def phrase_animation(
    phrase: Phrase,
    current_time: float,
    fps: int = DEFAULT_FPS,
    entry_frames: int = CAPTION_ENTRY_FRAMES,
) -> CaptionFrame:
    """Compute the pop-in state of ``phrase`` at ``current_time``.

    Args:
        phrase: The active phrase.
        current_time: Playback position in seconds.
        fps: Frame rate used to measure the entry transition.
        entry_frames: Length of the entry transition in frames.

    Returns:
        Scale, opacity and highlighted word for the frame.
    """
    frames_in = (current_time - phrase.start) * fps
    if entry_frames <= 0:
        progress = 1.0
    else:
        linear = min(1.0, max(0.0, frames_in / entry_frames))
        progress = linear * linear

    highlight = 0
    for index, word in enumerate(phrase.words):
        if word.start <= current_time:
            highlight = index
        else:
            break

    return CaptionFrame(
        text=phrase.text,
        scale=_lerp(ENTRY_SCALE, progress),
        opacity=_lerp(ENTRY_OPACITY, progress),
        highlight_index=highlight,
    )


def caption_frame_at(
    phrases: Sequence[Phrase],
    current_time: float,
    fps: int = DEFAULT_FPS,
    entry_frames: int = CAPTION_ENTRY_FRAMES,
) -> CaptionFrame | None:
    """Return what the caption layer draws at ``current_time``, if anything."""
    phrase = active_phrase(phrases, current_time)
    if phrase is None:
        return None
    return phrase_animation(phrase, current_time, fps=fps, entry_frames=entry_frames)
