"""Speech synthesis and transcription collaborator interfaces.

The vendors themselves live outside this package. This module fixes the
shapes the pipeline consumes from them and assembles a multi-chunk
narration: the script is split to the vendor's character limit, each chunk
is synthesized in order, and the resulting audio pieces are laid end to end
as one narration track.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from reelsync.config import RetryConfig
from reelsync.utils.retry import TransientError, call_with_retry
from reelsync.text.chunker import chunk_text
from reelsync.text.language import VoiceProfile, detect_language, voice_profile_for
from reelsync.timestamps.estimator import estimate_word_timings
from reelsync.timestamps.models import WordTiming
from reelsync.utils.constant import TTS_MAX_CHARS

logger = logging.getLogger(__name__)

__all__ = [
    "Narration",
    "NarrationSegment",
    "SpeechChunk",
    "SpeechSynthesizer",
    "Transcriber",
    "TransientSpeechError",
    "synthesize_narration",
]


class TransientSpeechError(RuntimeError, TransientError):
    """Speech vendor timeout, rate limit or 5xx; the call is retried."""


class SpeechChunk(BaseModel):
    """Result of one synthesis call."""

    audio_url: str = Field(..., alias="audioUrl")
    duration_ms: float | None = Field(None, alias="durationMs", ge=0.0)

    model_config = {"populate_by_name": True}


@runtime_checkable
class SpeechSynthesizer(Protocol):
    """Text-to-speech vendor returning an audio URL per request."""

    def synthesize(self, text: str, voice: str, profile: VoiceProfile) -> SpeechChunk:
        """Synthesize ``text`` with the ``voice`` reference in ``profile``'s language."""
        ...


@runtime_checkable
class Transcriber(Protocol):
    """Exact word-timing vendor for an audio URL."""

    def transcribe(self, audio_url: str) -> list[WordTiming]:
        """Return ordered word timings for the audio at ``audio_url``."""
        ...


class NarrationSegment(BaseModel):
    """One synthesized chunk placed on the narration timeline."""

    text: str
    audio_url: str = Field(..., alias="audioUrl")
    offset: float = Field(..., ge=0.0, description="Start of the chunk in the narration (s).")
    duration: float = Field(..., ge=0.0, description="Chunk audio length (s).")
    estimated: bool = Field(False, description="Duration was estimated, not vendor-reported.")

    model_config = {"populate_by_name": True}


class Narration(BaseModel):
    """Full narration as an ordered list of audio segments."""

    segments: list[NarrationSegment]

    @property
    def duration(self) -> float:
        """Return the total narration length in seconds."""
        if not self.segments:
            return 0.0
        last = self.segments[-1]
        return last.offset + last.duration

    @property
    def audio_urls(self) -> list[str]:
        """Return the audio URLs in playback order."""
        return [segment.audio_url for segment in self.segments]


def synthesize_narration(
    text: str,
    synthesizer: SpeechSynthesizer,
    voice: str,
    profile: VoiceProfile | None = None,
    max_chars: int = TTS_MAX_CHARS,
    retry: RetryConfig | None = None,
    sleep: Callable[[float], None] | None = None,
) -> Narration:
    """Synthesize a script of any length as consecutive audio segments.

    Args:
        text: Full narration script.
        synthesizer: Speech synthesis collaborator.
        voice: Voice reference forwarded to the vendor.
        profile: Voice profile; detected from ``text`` when omitted.
        max_chars: Vendor character limit per request.
        retry: Attempt and backoff bounds for each chunk's synthesis call.
        sleep: Replacement for ``time.sleep`` between attempts.

    Returns:
        The narration with each chunk's offset and duration. Durations the
        vendor did not report are estimated from the chunk text.

    Raises:
        TransientSpeechError: If a chunk still fails after the last attempt.
    """
    if profile is None:
        profile = voice_profile_for(detect_language(text))
    segments: list[NarrationSegment] = []
    offset = 0.0
    chunks = [chunk for chunk in chunk_text(text, max_chars) if chunk.strip()]
    for index, chunk in enumerate(chunks):
        result = call_with_retry(
            lambda chunk=chunk: synthesizer.synthesize(chunk, voice, profile), retry, sleep=sleep
        )
        if result.duration_ms is not None:
            duration = result.duration_ms / 1000.0
            estimated = False
        else:
            timings = estimate_word_timings(chunk)
            duration = timings[-1].end if timings else 0.0
            estimated = True
        logger.debug(
            "Synthesized chunk %d/%d (%d chars, %.2fs%s)",
            index + 1,
            len(chunks),
            len(chunk),
            duration,
            ", estimated" if estimated else "",
        )
        segments.append(
            NarrationSegment(
                text=chunk,
                audio_url=result.audio_url,
                offset=offset,
                duration=duration,
                estimated=estimated,
            )
        )
        offset += duration

    if len(segments) > 1:
        logger.info("Narration split into %d synthesized segments", len(segments))
    return Narration(segments=segments)
