"""Render job records.

A job moves ``pending → processing → {completed | failed}``. Every terminal
job carries either a ``result`` or an ``error``, and ``progress_message``
always holds a human-readable status line.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from reelsync.render.request import RenderRequest
from reelsync.speech import NarrationSegment


class JobStatus(str, enum.Enum):  # noqa: UP042
    """Lifecycle state of a render job.

    Attributes:
        PENDING: Job created, nothing submitted yet.
        PROCESSING: Scenes are being prepared or the backend is rendering.
        COMPLETED: Output video available.
        FAILED: Job stopped with an error.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Return True for ``COMPLETED`` and ``FAILED``."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobErrorKind(str, enum.Enum):  # noqa: UP042
    """Why a job failed.

    Attributes:
        BACKEND_FAILURE: The backend reported a fatal render error.
        TIMEOUT: The wall-clock ceiling was exceeded.
        SUBMIT_FAILURE: The render could not be submitted.
        TRANSPORT_FAILURE: Progress queries kept failing after retries.
        STEP_FAILURE: A cooperative scene step failed.
        VALIDATION: The request could not be turned into a timeline.
    """

    BACKEND_FAILURE = "backend_failure"
    TIMEOUT = "timeout"
    SUBMIT_FAILURE = "submit_failure"
    TRANSPORT_FAILURE = "transport_failure"
    STEP_FAILURE = "step_failure"
    VALIDATION = "validation"


@dataclass(frozen=True)
class RenderResult:
    """Output of a completed render."""

    video_url: str
    duration: float | None = None


@dataclass
class RenderJob:
    """One render job as persisted by a :class:`~reelsync.jobs.store.JobStore`.

    Attributes:
        request: The render request.
        request_key: Digest of ``request`` used for idempotent creation.
        job_id: Unique job identifier.
        status: Current lifecycle state.
        progress: Displayed progress, 0-100, never decreasing.
        progress_message: Human-readable status line.
        result: Output once completed.
        error: Failure description once failed; backend payloads verbatim.
        error_kind: Failure category once failed.
        render_id: Backend render id after submission.
        render_locator: Backend-specific handle extras.
        completed_steps: Scenes finished by cooperative steps.
        scene_outputs: Narration audio produced per scene by cooperative steps.
        started_at: Clock reading when processing began.
        lock_acquired_at: Clock reading of the live processing lock, if any.
        lock_token: Owner token of the live processing lock, if any.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.

    Examples:
        >>> job = RenderJob()
        >>> job.status
        <JobStatus.PENDING: 'pending'>
    """

    request: RenderRequest | None = None
    request_key: str | None = None
    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    progress_message: str = "Queued"
    result: RenderResult | None = None
    error: str | None = None
    error_kind: JobErrorKind | None = None
    render_id: str | None = None
    render_locator: dict[str, Any] = field(default_factory=dict)
    completed_steps: int = 0
    scene_outputs: list[NarrationSegment] = field(default_factory=list)
    started_at: float | None = None
    lock_acquired_at: float | None = None
    lock_token: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Return the public job shape exposed by the API and CLI."""
        return {
            "id": self.job_id,
            "status": self.status.value,
            "progress": self.progress,
            "progressMessage": self.progress_message,
            "result": (
                {"videoUrl": self.result.video_url, "duration": self.result.duration}
                if self.result
                else None
            ),
            "error": self.error,
            "errorKind": self.error_kind.value if self.error_kind else None,
        }
