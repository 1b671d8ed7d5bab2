"""Unit tests for multi-chunk narration synthesis."""

from __future__ import annotations

import pytest

from reelsync.config import RetryConfig
from reelsync.speech import (
    Narration,
    NarrationSegment,
    SpeechChunk,
    SpeechSynthesizer,
    TransientSpeechError,
    synthesize_narration,
)
from reelsync.text.language import voice_profile_for


def test_synthesize_narration_single_chunk(synthesizer) -> None:
    """Short scripts are synthesized in one call at offset zero."""
    narration = synthesize_narration("Hello there my friend.", synthesizer, "voice-1")

    assert isinstance(synthesizer, SpeechSynthesizer)
    assert len(narration.segments) == 1
    segment = narration.segments[0]
    assert segment.offset == 0.0
    assert segment.duration == pytest.approx(1.2)
    assert segment.estimated is False
    assert synthesizer.calls[0][1] == "voice-1"
    assert synthesizer.calls[0][2].language == "english"


def test_synthesize_narration_lays_chunks_end_to_end(synthesizer) -> None:
    """Chunks over the limit become consecutive segments."""
    text = "First sentence is here. Second sentence follows now. Third one ends it."

    narration = synthesize_narration(text, synthesizer, "voice-1", max_chars=30)

    assert [s.text for s in narration.segments] == [
        "First sentence is here.",
        "Second sentence follows now.",
        "Third one ends it.",
    ]
    assert [s.offset for s in narration.segments] == pytest.approx([0.0, 1.2, 2.4])
    assert narration.duration == pytest.approx(3.6)
    assert narration.audio_urls == [
        "https://cdn.example.com/tts/1.mp3",
        "https://cdn.example.com/tts/2.mp3",
        "https://cdn.example.com/tts/3.mp3",
    ]


def test_synthesize_narration_estimates_missing_duration(synthesizer) -> None:
    """Vendors that omit the duration get an estimated one."""
    synthesizer.report_duration = False

    narration = synthesize_narration("one two three", synthesizer, "voice-1")

    assert narration.segments[0].estimated is True
    assert narration.segments[0].duration > 0


def test_synthesize_narration_detects_profile(synthesizer) -> None:
    """The voice profile follows the script language unless given."""
    synthesize_narration("Hola, muy buenos días a todos.", synthesizer, "v")
    synthesize_narration("Hello.", synthesizer, "v", profile=voice_profile_for("german"))

    assert synthesizer.calls[0][2].locale == "es"
    assert synthesizer.calls[1][2].locale == "de"


def test_narration_segment_accepts_wire_alias() -> None:
    """Segments parse the camelCase audio URL."""
    segment = NarrationSegment.model_validate(
        {"text": "hi", "audioUrl": "a.mp3", "offset": 0.5, "duration": 1.0}
    )

    assert segment.audio_url == "a.mp3"
    assert Narration(segments=[segment]).duration == pytest.approx(1.5)
    assert Narration(segments=[]).duration == 0.0


class _Flaky:
    """Synthesizer that raises ``error`` for the first ``failures`` calls."""

    def __init__(self, failures: int, error: Exception) -> None:
        self.failures = failures
        self.error = error
        self.attempts = 0

    def synthesize(self, text, voice, profile) -> SpeechChunk:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.error
        return SpeechChunk(audio_url="https://cdn.example.com/tts/ok.mp3", duration_ms=900)


_NO_WAIT = RetryConfig(max_attempts=3, min_wait_sec=0.0, max_wait_sec=0.0)


def test_synthesize_narration_retries_transient_failures() -> None:
    """Timeouts and 5xx from the vendor are retried with backoff."""
    flaky = _Flaky(failures=2, error=TransientSpeechError("503 from vendor"))
    sleeps: list[float] = []

    narration = synthesize_narration(
        "one two three", flaky, "voice-1", retry=_NO_WAIT, sleep=sleeps.append
    )

    assert flaky.attempts == 3
    assert len(sleeps) == 2
    assert narration.audio_urls == ["https://cdn.example.com/tts/ok.mp3"]
    assert narration.duration == pytest.approx(0.9)


def test_synthesize_narration_gives_up_after_last_attempt() -> None:
    """A vendor that keeps failing surfaces the transient error."""
    flaky = _Flaky(failures=5, error=TransientSpeechError("timeout"))

    with pytest.raises(TransientSpeechError, match="timeout"):
        synthesize_narration(
            "one two three", flaky, "voice-1", retry=_NO_WAIT, sleep=lambda _s: None
        )
    assert flaky.attempts == 3


def test_synthesize_narration_does_not_retry_other_errors() -> None:
    """Non-transient failures propagate on the first attempt."""
    flaky = _Flaky(failures=1, error=ValueError("voice not found"))

    with pytest.raises(ValueError, match="voice not found"):
        synthesize_narration(
            "one two three", flaky, "voice-1", retry=_NO_WAIT, sleep=lambda _s: None
        )
    assert flaky.attempts == 1
