"""Job persistence.

The orchestrator talks to storage through :class:`JobStore`. Updates must
be safe to apply more than once: writing the same progress twice is
harmless and displayed progress never moves backwards.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import uuid
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from reelsync.jobs.models import RenderJob
from reelsync.jobs.progress import advance_progress

logger = logging.getLogger(__name__)

__all__ = ["JobNotFoundError", "JobStore", "InMemoryJobStore"]


class JobNotFoundError(KeyError):
    """Raised when a job id is unknown to the store."""

    def __init__(self, job_id: str) -> None:
        super().__init__(job_id)
        self.job_id = job_id

    def __str__(self) -> str:
        return f"Job not found: {self.job_id}"


@runtime_checkable
class JobStore(Protocol):
    """Structural interface for job persistence."""

    def create(self, job: RenderJob) -> RenderJob:
        """Persist a new job, or return the existing one with the same request key."""
        ...

    def get(self, job_id: str) -> RenderJob:
        """Return the job or raise :class:`JobNotFoundError`."""
        ...

    def get_by_request_key(self, request_key: str) -> RenderJob | None:
        """Return the job created for ``request_key``, if any."""
        ...

    def update(self, job_id: str, **changes: Any) -> RenderJob:
        """Apply ``changes`` to the job and return the updated record."""
        ...

    def acquire_lock(self, job_id: str, now: float, stale_after: float) -> str | None:
        """Take the processing lock unless a live one is held; return its owner token."""
        ...

    def release_lock(self, job_id: str, token: str) -> bool:
        """Release the processing lock if ``token`` still owns it."""
        ...


class InMemoryJobStore:
    """Thread-safe, process-local :class:`JobStore`.

    Records are copied on the way in and out so callers never share mutable
    state with the store.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, RenderJob] = {}
        self._by_key: dict[str, str] = {}
        self._lock = threading.RLock()

    def create(self, job: RenderJob) -> RenderJob:
        with self._lock:
            if job.request_key and job.request_key in self._by_key:
                return dataclasses.replace(self._jobs[self._by_key[job.request_key]])
            self._jobs[job.job_id] = dataclasses.replace(job)
            if job.request_key:
                self._by_key[job.request_key] = job.job_id
            logger.debug("Created job %s", job.job_id)
            return dataclasses.replace(job)

    def _get_live(self, job_id: str) -> RenderJob:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise JobNotFoundError(job_id) from None

    def get(self, job_id: str) -> RenderJob:
        with self._lock:
            return dataclasses.replace(self._get_live(job_id))

    def get_by_request_key(self, request_key: str) -> RenderJob | None:
        with self._lock:
            job_id = self._by_key.get(request_key)
            return dataclasses.replace(self._jobs[job_id]) if job_id else None

    def list_jobs(self) -> list[RenderJob]:
        """Return all jobs, newest first."""
        with self._lock:
            jobs = [dataclasses.replace(job) for job in self._jobs.values()]
        return sorted(jobs, key=lambda job: job.created_at, reverse=True)

    def update(self, job_id: str, **changes: Any) -> RenderJob:
        with self._lock:
            job = self._get_live(job_id)
            if "progress" in changes:
                changes["progress"] = advance_progress(job.progress, int(changes["progress"]))
            for name, value in changes.items():
                if not hasattr(job, name):
                    raise AttributeError(f"RenderJob has no field '{name}'")
                setattr(job, name, value)
            job.updated_at = datetime.now()
            return dataclasses.replace(job)

    def acquire_lock(self, job_id: str, now: float, stale_after: float) -> str | None:
        with self._lock:
            job = self._get_live(job_id)
            held_since = job.lock_acquired_at
            if held_since is not None:
                age = now - held_since
                if age < stale_after:
                    return None
                logger.warning("Breaking stale lock on job %s (held %.1fs)", job_id, age)
            job.lock_acquired_at = now
            job.lock_token = uuid.uuid4().hex
            return job.lock_token

    def release_lock(self, job_id: str, token: str) -> bool:
        with self._lock:
            job = self._get_live(job_id)
            if job.lock_token != token:
                # The lock went stale and another worker now owns it.
                logger.warning("Not releasing lock on job %s held by another worker", job_id)
                return False
            job.lock_acquired_at = None
            job.lock_token = None
            return True
