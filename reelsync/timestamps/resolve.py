"""Resolve narration word timings from transcription or estimation.

Exact timings from a transcription collaborator are preferred. When none is
configured, when it raises, or when it returns nothing, the syllable
estimator fills in so the pipeline never stalls on a missing transcript.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from reelsync.speech import Narration, NarrationSegment, Transcriber
from reelsync.timestamps.estimator import estimate_word_timings
from reelsync.timestamps.models import ResolvedTimings, WordTiming

logger = logging.getLogger(__name__)

__all__ = [
    "MIN_WORD_SEC",
    "resolve_narration_timings",
    "resolve_word_timings",
    "sanitize_word_timings",
]

# Shortest span given to a word reported with zero or negative length.
MIN_WORD_SEC = 0.01


def sanitize_word_timings(words: Sequence[WordTiming]) -> list[WordTiming]:
    """Repair vendor word timings into a well-formed sequence.

    Blank words are dropped, starts that move backwards are clamped to the
    previous start, and every word gets ``end > start``.

    Args:
        words: Raw timings as returned by a transcriber.

    Returns:
        A new list satisfying the ordering and positive-span invariants.
    """
    cleaned: list[WordTiming] = []
    previous_start = 0.0
    for item in words:
        text = item.word.strip()
        if not text:
            continue
        start = max(item.start, previous_start)
        end = max(item.end, start + MIN_WORD_SEC)
        if text != item.word or start != item.start or end != item.end:
            item = WordTiming(word=text, start=start, end=end)
        cleaned.append(item)
        previous_start = start
    return cleaned


def resolve_word_timings(
    text: str,
    audio_url: str | None = None,
    transcriber: Transcriber | None = None,
    duration: float | None = None,
) -> ResolvedTimings:
    """Return word timings for a synthesized narration.

    Args:
        text: The narration text that was synthesized.
        audio_url: Location of the synthesized audio, passed to the transcriber.
        transcriber: Optional exact-timing collaborator.
        duration: Audio duration reported by the synthesis vendor, in seconds.

    Returns:
        The timings, the narration duration (the larger of the reported
        duration and the last word end) and the timing source.
    """
    words: list[WordTiming] = []
    source = "estimate"

    if transcriber is not None and audio_url:
        try:
            words = sanitize_word_timings(transcriber.transcribe(audio_url))
        except Exception as exc:  # noqa: BLE001 - any vendor failure falls back
            logger.warning("Transcription failed for %s, estimating timings: %s", audio_url, exc)
            words = []
        else:
            if words:
                source = "transcription"
            else:
                logger.warning("Transcription returned no words for %s, estimating", audio_url)

    if not words:
        words = estimate_word_timings(text, total_duration=duration)

    last_end = words[-1].end if words else 0.0
    resolved_duration = max(duration or 0.0, last_end)
    logger.debug(
        "Resolved %d word timings from %s (duration=%.2fs)", len(words), source, resolved_duration
    )
    return ResolvedTimings(words=words, duration=resolved_duration, source=source)


def resolve_narration_timings(
    narration: Narration,
    transcriber: Transcriber | None = None,
) -> tuple[Narration, list[WordTiming]]:
    """Resolve timings for every narration segment on one global clock.

    Segments are re-laid end to end using their resolved durations, so a
    transcript that runs past the vendor-reported length pushes the following
    segments back instead of overlapping them.

    Args:
        narration: Segments from :func:`reelsync.speech.synthesize_narration`.
        transcriber: Optional exact-timing collaborator.

    Returns:
        The re-laid narration and the flat word timings in narration time.
    """
    segments: list[NarrationSegment] = []
    words: list[WordTiming] = []
    offset = 0.0
    for segment in narration.segments:
        resolved = resolve_word_timings(
            segment.text,
            audio_url=segment.audio_url,
            transcriber=transcriber,
            duration=segment.duration,
        )
        words.extend(
            WordTiming(word=w.word, start=w.start + offset, end=w.end + offset)
            for w in resolved.words
        )
        segments.append(
            segment.model_copy(update={"offset": offset, "duration": resolved.duration})
        )
        offset += resolved.duration
    return Narration(segments=segments), words
