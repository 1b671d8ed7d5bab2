"""Cooperative, one-step-per-trigger job processing.

Some deployments cannot keep a worker alive for the whole job, so work is
advanced by repeated triggers instead. Each :meth:`SceneStepProcessor.trigger`
performs exactly one step under the job's processing lock:

1. synthesize narration for the next pending scene
   (progress ``min(90, floor(done / total * 90))``);
2. once every scene has audio, resolve word timings and submit the render
   (progress 95);
3. afterwards, poll the pending render until it completes or fails.

Triggers are idempotent. A terminal job returns ``already_finished``; a
job whose lock is younger than ``stale_lock_sec`` returns
``already_processing`` without doing anything. Older locks are treated as
abandoned and broken. The lock is released after every step.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable

from reelsync.config import PollingConfig
from reelsync.jobs.models import JobErrorKind, JobStatus, RenderJob
from reelsync.jobs.orchestrator import RenderOrchestrator
from reelsync.jobs.progress import FINALIZING_PROGRESS_FLOOR, step_progress
from reelsync.speech import (
    Narration,
    NarrationSegment,
    SpeechSynthesizer,
    Transcriber,
    synthesize_narration,
)
from reelsync.text.language import VoiceProfile, detect_language, voice_profile_for
from reelsync.timestamps.allocator import join_scene_text
from reelsync.timestamps.estimator import estimate_word_timings
from reelsync.timestamps.models import Scene
from reelsync.timestamps.resolve import resolve_narration_timings

logger = logging.getLogger(__name__)

__all__ = ["SceneStepProcessor", "TriggerOutcome"]


class TriggerOutcome(str, enum.Enum):  # noqa: UP042
    """What a single trigger did."""

    ALREADY_FINISHED = "already_finished"
    ALREADY_PROCESSING = "already_processing"
    SCENE_SYNTHESIZED = "scene_synthesized"
    RENDER_SUBMITTED = "render_submitted"
    RENDER_POLLED = "render_polled"
    FAILED = "failed"


class SceneStepProcessor:
    """Advance render jobs one step per trigger.

    Args:
        orchestrator: Orchestrator owning the job store and render backend.
        synthesizer: Speech synthesis collaborator.
        voice: Voice reference passed to the synthesizer.
        transcriber: Optional exact word-timing collaborator.
        profile: Voice profile; detected from the scene text when omitted.

    """

    def __init__(
        self,
        orchestrator: RenderOrchestrator,
        synthesizer: SpeechSynthesizer,
        voice: str,
        transcriber: Transcriber | None = None,
        profile: VoiceProfile | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.synthesizer = synthesizer
        self.voice = voice
        self.transcriber = transcriber
        self.profile = profile

    @property
    def polling(self) -> PollingConfig:
        """Return the orchestrator's polling configuration."""
        return self.orchestrator.polling

    def trigger(self, job_id: str) -> TriggerOutcome:
        """Perform at most one step for ``job_id``.

        Safe to call redundantly and concurrently.
        """
        store = self.orchestrator.store
        job = store.get(job_id)
        if job.status.is_terminal:
            return TriggerOutcome.ALREADY_FINISHED
        token = store.acquire_lock(job_id, self.orchestrator.clock(), self.polling.stale_lock_sec)
        if token is None:
            logger.debug("Job %s is already being processed", job_id)
            return TriggerOutcome.ALREADY_PROCESSING
        try:
            return self._step(job_id)
        finally:
            store.release_lock(job_id, token)

    def _step(self, job_id: str) -> TriggerOutcome:
        job = self.orchestrator.store.get(job_id)
        if job.status.is_terminal:
            return TriggerOutcome.ALREADY_FINISHED
        if job.request is None:
            self.orchestrator.fail(job_id, JobErrorKind.VALIDATION, "Job has no render request")
            return TriggerOutcome.FAILED
        if self.orchestrator.check_deadline(job) is not None:
            return TriggerOutcome.FAILED

        if job.render_id:
            polled = self.orchestrator.poll_once(job_id)
            return _outcome(polled, TriggerOutcome.RENDER_POLLED)

        scenes = job.request.scenes
        needs_audio = not job.request.word_timings
        if needs_audio and job.completed_steps < len(scenes):
            return self._synthesize_scene(job, scenes)
        return self._submit(job, needs_audio)

    def _profile_for(self, scenes: list[Scene]) -> VoiceProfile:
        if self.profile is not None:
            return self.profile
        return voice_profile_for(detect_language(join_scene_text(scenes)))

    def _synthesize_scene(self, job: RenderJob, scenes: list[Scene]) -> TriggerOutcome:
        index = job.completed_steps
        total = len(scenes)
        scene = scenes[index]
        self.orchestrator.mark_processing(
            job.job_id, f"Generating audio for scene {index + 1}/{total}"
        )
        offset = 0.0
        if job.scene_outputs:
            last = job.scene_outputs[-1]
            offset = last.offset + last.duration

        text = scene.text.strip()
        new_segments: list[NarrationSegment] = []
        try:
            if text and scene.audio_url:
                estimate = estimate_word_timings(text)
                new_segments.append(
                    NarrationSegment(
                        text=text,
                        audio_url=scene.audio_url,
                        offset=offset,
                        duration=estimate[-1].end if estimate else 0.0,
                        estimated=True,
                    )
                )
            elif text:
                narration = synthesize_narration(
                    text,
                    self.synthesizer,
                    self.voice,
                    profile=self._profile_for(scenes),
                    retry=self.polling.retry,
                    sleep=self.orchestrator.retry_sleep,
                )
                new_segments.extend(
                    segment.model_copy(update={"offset": segment.offset + offset})
                    for segment in narration.segments
                )
        except Exception as exc:  # noqa: BLE001 - any vendor failure ends the job
            self.orchestrator.fail(
                job.job_id,
                JobErrorKind.STEP_FAILURE,
                f"Audio generation failed for scene {index + 1}: {exc}",
            )
            return TriggerOutcome.FAILED

        done = index + 1
        self.orchestrator.store.update(
            job.job_id,
            scene_outputs=[*job.scene_outputs, *new_segments],
            completed_steps=done,
            progress=step_progress(done, total),
            progress_message=f"Prepared scene {done}/{total}",
        )
        logger.info("Job %s: scene %d/%d ready", job.job_id, done, total)
        return TriggerOutcome.SCENE_SYNTHESIZED

    def _submit(self, job: RenderJob, needs_audio: bool) -> TriggerOutcome:
        request = job.request
        if needs_audio:
            narration, words = resolve_narration_timings(
                Narration(segments=list(job.scene_outputs)), self.transcriber
            )
            if not words:
                self.orchestrator.fail(
                    job.job_id, JobErrorKind.VALIDATION, "Scenes produced no narration"
                )
                return TriggerOutcome.FAILED
            request = request.model_copy(
                update={"narration": narration.segments, "word_timings": words}
            )
        self.orchestrator.store.update(
            job.job_id,
            request=request,
            progress=FINALIZING_PROGRESS_FLOOR,
            progress_message="Rendering video",
        )
        submitted = self.orchestrator.submit(job.job_id)
        return _outcome(submitted, TriggerOutcome.RENDER_SUBMITTED)

    def drive(
        self,
        job_id: str,
        cancel_event: threading.Event | None = None,
        on_progress: Callable[[RenderJob], None] | None = None,
    ) -> RenderJob:
        """Re-trigger ``job_id`` on the trigger interval until it is terminal.

        The wall-clock ceiling applies even while another worker holds the
        lock. Setting ``cancel_event`` stops re-triggering.
        """
        while True:
            self.trigger(job_id)
            job = self.orchestrator.store.get(job_id)
            timed_out = self.orchestrator.check_deadline(job)
            if timed_out is not None:
                job = timed_out
            if on_progress is not None:
                on_progress(job)
            if job.status.is_terminal:
                return job
            if cancel_event is not None and cancel_event.is_set():
                return self.orchestrator.stop(job)
            if self.orchestrator.wait(self.polling.trigger_interval_sec, cancel_event):
                return self.orchestrator.stop(job)


def _outcome(job: RenderJob, success: TriggerOutcome) -> TriggerOutcome:
    return TriggerOutcome.FAILED if job.status is JobStatus.FAILED else success
