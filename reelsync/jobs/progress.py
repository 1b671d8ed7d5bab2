"""Displayed job progress.

Backends report a fraction in ``[0, 1]``. The displayed 0-100 value reserves
headroom at both ends so callers can show states the backend never reports:

* ``0 .. QUEUED_PROGRESS_CEILING`` while the job is being prepared or queued;
* ``QUEUED_PROGRESS_CEILING .. FINALIZING_PROGRESS_FLOOR`` for backend work,
  computed as ``floor(10 + fraction * 85 + 0.5)``;
* ``100`` only once the backend reports completion.

Poll responses may arrive stale, so the displayed value is guarded to never
decrease. The samples ``[0.1, 0.05, 0.4, 0.39, 1.0 (done)]`` display as
``[19, 19, 44, 44, 100]``.
"""

from __future__ import annotations

import math

__all__ = [
    "COMPLETE_PROGRESS",
    "FINALIZING_PROGRESS_FLOOR",
    "MonotonicProgress",
    "QUEUED_PROGRESS_CEILING",
    "SCENE_STEP_PROGRESS_CEILING",
    "advance_progress",
    "remap_progress",
    "step_progress",
]

QUEUED_PROGRESS_CEILING = 10
FINALIZING_PROGRESS_FLOOR = 95
COMPLETE_PROGRESS = 100
# Cooperative scene preparation reports up to this value before submitting.
SCENE_STEP_PROGRESS_CEILING = 90


def remap_progress(fraction: float, done: bool = False) -> int:
    """Map a backend fraction onto the displayed 0-100 scale.

    Examples:
        >>> remap_progress(0.4)
        44
        >>> remap_progress(1.0, done=True)
        100
    """
    if done:
        return COMPLETE_PROGRESS
    clamped = min(1.0, max(0.0, fraction))
    span = FINALIZING_PROGRESS_FLOOR - QUEUED_PROGRESS_CEILING
    return math.floor(QUEUED_PROGRESS_CEILING + clamped * span + 0.5)


def step_progress(done: int, total: int) -> int:
    """Return progress after ``done`` of ``total`` cooperative scene steps."""
    if total <= 0:
        return SCENE_STEP_PROGRESS_CEILING
    return min(SCENE_STEP_PROGRESS_CEILING, done * SCENE_STEP_PROGRESS_CEILING // total)


def advance_progress(current: int, candidate: int) -> int:
    """Return the larger of ``current`` and ``candidate``, capped at 100."""
    return min(COMPLETE_PROGRESS, max(current, candidate))


class MonotonicProgress:
    """Non-decreasing displayed progress for one job.

    Writing the same or a lower value is a no-op, so replayed or
    out-of-order observations are harmless.
    """

    def __init__(self, initial: int = 0) -> None:
        self.value = initial

    def advance(self, candidate: int) -> int:
        """Accept ``candidate`` if it is higher and return the current value."""
        self.value = advance_progress(self.value, candidate)
        return self.value

    def observe(self, fraction: float, done: bool = False) -> int:
        """Remap a backend fraction and advance to it."""
        return self.advance(remap_progress(fraction, done=done))
