"""Render job orchestration.

:class:`RenderOrchestrator` owns the job state machine. It submits a job's
request to a render backend, polls the backend for progress and maps the
outcome onto the job record:

* backend fractions are remapped into the ``[10, 95]`` band and guarded so
  displayed progress never decreases;
* backend completion marks the job ``completed`` with the output URL;
* a backend-reported fatal error marks it ``failed`` with the payload kept
  verbatim (JSON for structured payloads);
* transient call failures are retried with bounded exponential backoff and
  escalate to a job failure once exhausted;
* the wall-clock ceiling is absolute: a job that has not finished within
  ``max_wall_clock_sec`` fails with the ``timeout`` error kind.

Cancelling a job means ceasing to poll it. When the backend exposes a
``cancel`` call it is invoked; otherwise in-flight backend work continues
orphaned and the job record is left as it was.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from reelsync.config import PollingConfig
from reelsync.jobs.models import JobErrorKind, JobStatus, RenderJob, RenderResult
from reelsync.jobs.progress import COMPLETE_PROGRESS, QUEUED_PROGRESS_CEILING, remap_progress
from reelsync.utils.retry import call_with_retry
from reelsync.jobs.store import InMemoryJobStore, JobStore
from reelsync.render.base import (
    BackendError,
    BackendProgress,
    CancellableBackend,
    FatalBackendError,
    RenderBackend,
    RenderHandle,
    TransientBackendError,
)
from reelsync.render.request import RenderRequest
from reelsync.utils.cancel import sleep_unless_cancelled

logger = logging.getLogger(__name__)

__all__ = ["RenderOrchestrator", "serialize_error_payload"]

Clock = Callable[[], float]
Waiter = Callable[[float, threading.Event | None], bool]


def serialize_error_payload(payload: Any) -> str:
    """Render a backend error payload as a diagnostic string.

    Strings pass through unchanged; structured payloads become JSON.
    """
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(payload)


class RenderOrchestrator:
    """Drive render jobs through ``pending → processing → completed | failed``.

    Args:
        backend: Render backend receiving submissions and progress queries.
        store: Job persistence; defaults to a fresh :class:`InMemoryJobStore`.
        polling: Intervals, ceilings and retry bounds.
        clock: Wall-clock source in seconds.
        wait: Interruptible sleep ``(seconds, cancel_event) -> cancelled``.
        retry_sleep: Sleep used between retry attempts.

    """

    def __init__(
        self,
        backend: RenderBackend,
        store: JobStore | None = None,
        polling: PollingConfig | None = None,
        clock: Clock = time.time,
        wait: Waiter = sleep_unless_cancelled,
        retry_sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.backend = backend
        self.store: JobStore = store if store is not None else InMemoryJobStore()
        self.polling = polling or PollingConfig()
        self.clock = clock
        self._wait = wait
        self.retry_sleep = retry_sleep
        self._submit_lock = threading.Lock()

    def create_job(self, request: RenderRequest) -> tuple[RenderJob, bool]:
        """Create a job for ``request`` unless one already exists.

        Returns:
            The job and ``True`` when it was newly created.
        """
        key = request.request_key()
        existing = self.store.get_by_request_key(key)
        if existing is not None:
            logger.debug("Reusing job %s for request %s", existing.job_id, key[:12])
            return existing, False
        job = self.store.create(RenderJob(request=request, request_key=key))
        # A concurrent create with the same key returns the winner's record.
        created = self.store.get_by_request_key(key)
        if created is not None and created.job_id != job.job_id:
            return created, False
        logger.info("Created render job %s (%d scenes)", job.job_id, len(request.scenes))
        return job, True

    def get_job(self, job_id: str) -> RenderJob:
        """Return the job record for ``job_id``."""
        return self.store.get(job_id)

    def fail(
        self,
        job_id: str,
        kind: JobErrorKind,
        message: str,
    ) -> RenderJob:
        """Mark the job ``failed`` unless it already reached a terminal state."""
        job = self.store.get(job_id)
        if job.status.is_terminal:
            return job
        logger.error("Render job %s failed (%s): %s", job_id, kind.value, message)
        return self.store.update(
            job_id,
            status=JobStatus.FAILED,
            error=message,
            error_kind=kind,
            progress_message=f"Failed: {message}",
        )

    def mark_processing(self, job_id: str, message: str) -> RenderJob:
        """Move a pending job to ``processing`` and start its wall clock."""
        job = self.store.get(job_id)
        changes: dict[str, Any] = {"progress_message": message}
        if job.status is JobStatus.PENDING:
            changes["status"] = JobStatus.PROCESSING
        if job.started_at is None:
            changes["started_at"] = self.clock()
        return self.store.update(job_id, **changes)

    def check_deadline(self, job: RenderJob) -> RenderJob | None:
        """Fail ``job`` with a timeout if it exceeded the wall-clock ceiling.

        Returns:
            The failed job, or ``None`` while within the ceiling.
        """
        if job.status.is_terminal or job.started_at is None:
            return None
        elapsed = self.clock() - job.started_at
        if elapsed <= self.polling.max_wall_clock_sec:
            return None
        self.cancel_backend(job)
        return self.fail(
            job.job_id,
            JobErrorKind.TIMEOUT,
            f"Render did not finish within {self.polling.max_wall_clock_sec:.0f}s",
        )

    def _handle(self, job: RenderJob) -> RenderHandle:
        return RenderHandle(
            render_id=str(job.render_id),
            backend=self.backend.name,
            locator=dict(job.render_locator),
        )

    def _call(self, fn: Callable[[], Any]) -> Any:
        return call_with_retry(fn, self.polling.retry, sleep=self.retry_sleep)

    def submit(self, job_id: str) -> RenderJob:
        """Hand the job's request to the backend.

        Repeated calls are no-ops once a render id is recorded.
        """
        with self._submit_lock:
            job = self.store.get(job_id)
            if job.status.is_terminal or job.render_id:
                return job
            if job.request is None:
                return self.fail(job_id, JobErrorKind.VALIDATION, "Job has no render request")
            self.mark_processing(job_id, "Submitting render")
            request = job.request
            try:
                handle = self._call(lambda: self.backend.submit(request))
            except TransientBackendError as exc:
                return self.fail(
                    job_id,
                    JobErrorKind.SUBMIT_FAILURE,
                    f"Render submission failed after {self.polling.retry.max_attempts} "
                    f"attempts: {exc}",
                )
            except FatalBackendError as exc:
                detail = serialize_error_payload(exc.payload) if exc.payload is not None else ""
                message = f"{exc}: {detail}" if detail else str(exc)
                return self.fail(job_id, JobErrorKind.SUBMIT_FAILURE, message)
            except ValueError as exc:
                return self.fail(job_id, JobErrorKind.VALIDATION, str(exc))

            logger.info("Job %s submitted to %s as %s", job_id, handle.backend, handle.render_id)
            return self.store.update(
                job_id,
                render_id=handle.render_id,
                render_locator=dict(handle.locator),
                progress=QUEUED_PROGRESS_CEILING,
                progress_message="Queued for rendering",
            )

    def _apply_progress(self, job: RenderJob, observed: BackendProgress) -> RenderJob:
        if observed.failed:
            return self.fail(
                job.job_id,
                JobErrorKind.BACKEND_FAILURE,
                serialize_error_payload(observed.fatal_error),
            )
        if observed.done:
            if not observed.output_url:
                return self.fail(
                    job.job_id,
                    JobErrorKind.BACKEND_FAILURE,
                    "Backend reported completion without an output URL",
                )
            logger.info("Render job %s completed: %s", job.job_id, observed.output_url)
            return self.store.update(
                job.job_id,
                status=JobStatus.COMPLETED,
                progress=COMPLETE_PROGRESS,
                progress_message="Render complete",
                result=RenderResult(video_url=observed.output_url, duration=observed.duration),
            )
        updated = self.store.update(
            job.job_id,
            progress=remap_progress(observed.progress_fraction),
        )
        return self.store.update(
            job.job_id, progress_message=f"Rendering video ({updated.progress}%)"
        )

    def poll_once(self, job_id: str) -> RenderJob:
        """Query backend progress once and record the outcome.

        Safe to call repeatedly and concurrently; terminal jobs and jobs
        without a render id are returned unchanged.
        """
        job = self.store.get(job_id)
        if job.status.is_terminal:
            return job
        timed_out = self.check_deadline(job)
        if timed_out is not None:
            return timed_out
        if not job.render_id:
            return job

        handle = self._handle(job)
        try:
            observed = self._call(lambda: self.backend.progress(handle))
        except TransientBackendError as exc:
            return self.fail(
                job_id,
                JobErrorKind.TRANSPORT_FAILURE,
                f"Progress query failed after {self.polling.retry.max_attempts} attempts: {exc}",
            )
        except FatalBackendError as exc:
            payload = exc.payload if exc.payload is not None else str(exc)
            return self.fail(job_id, JobErrorKind.BACKEND_FAILURE, serialize_error_payload(payload))
        return self._apply_progress(job, observed)

    def cancel_backend(self, job: RenderJob) -> bool:
        """Ask the backend to stop the job's render when it supports cancelling."""
        if not job.render_id or not isinstance(self.backend, CancellableBackend):
            return False
        try:
            self.backend.cancel(self._handle(job))
        except BackendError as exc:
            logger.warning("Backend cancel failed for job %s: %s", job.job_id, exc)
            return False
        return True

    def run(
        self,
        job_id: str,
        cancel_event: threading.Event | None = None,
        on_progress: Callable[[RenderJob], None] | None = None,
    ) -> RenderJob:
        """Submit if needed, then poll until the job is terminal.

        Args:
            job_id: Job to drive.
            cancel_event: Stops polling when set. The job record is left as
                it was; the backend render is cancelled when supported.
            on_progress: Called with the job record after every poll.

        Returns:
            The last job record observed.
        """
        job = self.store.get(job_id)
        if not job.status.is_terminal and not job.render_id:
            job = self.submit(job_id)
            if on_progress is not None:
                on_progress(job)

        while not job.status.is_terminal:
            if cancel_event is not None and cancel_event.is_set():
                return self.stop(job)
            if self.wait(self.polling.status_poll_interval_sec, cancel_event):
                return self.stop(job)
            job = self.poll_once(job_id)
            if on_progress is not None:
                on_progress(job)
        return job

    def wait(self, seconds: float, cancel_event: threading.Event | None = None) -> bool:
        """Sleep between polls; return True if ``cancel_event`` cut the wait short."""
        return self._wait(seconds, cancel_event)

    def stop(self, job: RenderJob) -> RenderJob:
        """Stop driving ``job``, cancelling its backend render when supported."""
        cancelled = self.cancel_backend(job)
        logger.info(
            "Stopped polling job %s%s",
            job.job_id,
            "" if cancelled else "; backend work may continue",
        )
        return self.store.get(job.job_id)
