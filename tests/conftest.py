"""Shared test fixtures for the reelsync test suite."""

from __future__ import annotations

import threading
from collections.abc import Iterator

import pytest

from reelsync.config import PollingConfig, RetryConfig
from reelsync.jobs.orchestrator import RenderOrchestrator
from reelsync.render.base import BackendProgress, RenderHandle
from reelsync.render.request import RenderRequest
from reelsync.speech import NarrationSegment, SpeechChunk
from reelsync.text.language import VoiceProfile
from reelsync.timestamps.models import Scene, WordTiming

OUTPUT_URL = "https://cdn.example.com/renders/final.mp4"


class FakeSynthesizer:
    """Speech synthesizer double returning one URL per call.

    Every call reports ``seconds_per_word`` seconds of audio per word unless
    ``report_duration`` is False, in which case the duration is omitted.
    """

    def __init__(self, seconds_per_word: float = 0.3, report_duration: bool = True) -> None:
        self.seconds_per_word = seconds_per_word
        self.report_duration = report_duration
        self.calls: list[tuple[str, str, VoiceProfile]] = []

    def synthesize(self, text: str, voice: str, profile: VoiceProfile) -> SpeechChunk:
        self.calls.append((text, voice, profile))
        duration_ms = None
        if self.report_duration:
            duration_ms = len(text.split()) * self.seconds_per_word * 1000
        return SpeechChunk(
            audio_url=f"https://cdn.example.com/tts/{len(self.calls)}.mp3",
            duration_ms=duration_ms,
        )


class FakeBackend:
    """Scripted render backend.

    ``observations`` are returned by successive progress queries, the last
    one repeating. Exceptions queued in ``submit_errors`` and
    ``progress_errors`` are raised before any observation is served.
    """

    name = "fake"

    def __init__(self, observations: list[BackendProgress] | None = None) -> None:
        self.observations = observations or [
            BackendProgress(done=True, progress_fraction=1.0, output_url=OUTPUT_URL, duration=3.6)
        ]
        self.submit_errors: list[Exception] = []
        self.progress_errors: list[Exception] = []
        self.submitted: list[RenderRequest] = []
        self.progress_calls = 0
        self.cancelled: list[str] = []

    def submit(self, request: RenderRequest) -> RenderHandle:
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        self.submitted.append(request)
        number = len(self.submitted)
        return RenderHandle(render_id=f"render-{number}", backend=self.name, locator={"n": number})

    def progress(self, handle: RenderHandle) -> BackendProgress:
        self.progress_calls += 1
        if self.progress_errors:
            raise self.progress_errors.pop(0)
        if len(self.observations) > 1:
            return self.observations.pop(0)
        return self.observations[0]

    def cancel(self, handle: RenderHandle) -> None:
        self.cancelled.append(handle.render_id)


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def no_wait(seconds: float, cancel_event: threading.Event | None = None) -> bool:
    """Return immediately, reporting whether cancellation was requested."""
    del seconds
    return cancel_event is not None and cancel_event.is_set()


@pytest.fixture(autouse=True)
def _reset_process_state() -> Iterator[None]:
    """Reset the API orchestrator, step processor and cancel event around each test."""
    from reelsync.api import routes
    from reelsync.utils import cancel

    routes.set_step_processor(None)
    routes.set_orchestrator(None)
    cancel.reset_cancel_event()
    yield
    routes.set_step_processor(None)
    routes.set_orchestrator(None)
    cancel.reset_cancel_event()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    """Return a synthesizer double reporting 0.3 s per word."""
    return FakeSynthesizer()


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Return a backend that completes on the first progress query."""
    return FakeBackend()


@pytest.fixture
def clock() -> FakeClock:
    """Return a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def polling() -> PollingConfig:
    """Return polling settings with zero waits and three attempts per call."""
    return PollingConfig(
        status_poll_interval_sec=0.0,
        trigger_interval_sec=0.0,
        stale_lock_sec=30.0,
        max_wall_clock_sec=60.0,
        request_timeout_sec=5.0,
        retry=RetryConfig(max_attempts=3, min_wait_sec=0.0, max_wait_sec=0.0),
    )


@pytest.fixture
def orchestrator(
    fake_backend: FakeBackend, polling: PollingConfig, clock: FakeClock
) -> RenderOrchestrator:
    """Return an orchestrator over the fake backend that never sleeps."""
    return RenderOrchestrator(
        fake_backend,
        polling=polling,
        clock=clock,
        wait=no_wait,
        retry_sleep=lambda _seconds: None,
    )


@pytest.fixture
def three_scenes() -> list[Scene]:
    """Return scenes of 5, 3 and 4 words mixing face and still visuals."""
    return [
        Scene(
            text="Every morning starts with coffee.",
            type="face",
            asset_url="https://cdn.example.com/face/intro.mp4",
        ),
        Scene(
            text="Then we walk.",
            type="asset",
            asset_url="https://cdn.example.com/img/park.jpg",
            keywords=["park"],
        ),
        Scene(
            text="The city wakes up.",
            type="asset",
            asset_url="https://cdn.example.com/img/city.jpg",
        ),
    ]


@pytest.fixture
def twelve_words() -> list[WordTiming]:
    """Return twelve contiguous 0.3 s word timings matching ``three_scenes``."""
    tokens = "Every morning starts with coffee. Then we walk. The city wakes up.".split()
    return [
        WordTiming(word=token, start=round(index * 0.3, 6), end=round((index + 1) * 0.3, 6))
        for index, token in enumerate(tokens)
    ]


@pytest.fixture
def render_request(three_scenes: list[Scene], twelve_words: list[WordTiming]) -> RenderRequest:
    """Return a ready-to-render request with one narration track."""
    return RenderRequest(
        scenes=three_scenes,
        word_timings=twelve_words,
        narration=[
            NarrationSegment(
                text=" ".join(w.word for w in twelve_words),
                audio_url="https://cdn.example.com/tts/full.mp3",
                offset=0.0,
                duration=3.6,
            )
        ],
    )
