"""Render job state, persistence and orchestration."""

from reelsync.jobs.models import JobErrorKind, JobStatus, RenderJob, RenderResult
from reelsync.jobs.orchestrator import RenderOrchestrator
from reelsync.jobs.progress import MonotonicProgress, remap_progress
from reelsync.jobs.stepper import SceneStepProcessor, TriggerOutcome
from reelsync.jobs.store import InMemoryJobStore, JobNotFoundError, JobStore

__all__ = [
    "InMemoryJobStore",
    "JobErrorKind",
    "JobNotFoundError",
    "JobStatus",
    "JobStore",
    "MonotonicProgress",
    "RenderJob",
    "RenderOrchestrator",
    "RenderResult",
    "SceneStepProcessor",
    "TriggerOutcome",
    "remap_progress",
]
