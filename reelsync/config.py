"""Configuration dataclasses for the composition and render pipeline.

This module groups related settings so that orchestrator, compositor and
caption code take one config object instead of long parameter lists.
Defaults are read from :mod:`reelsync.utils.constant`, which in turn honours
environment overrides.
"""

from __future__ import annotations

from dataclasses import dataclass

from reelsync.utils.constant import (
    BACKGROUND_MUSIC_VOLUME,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_FPS,
    MAX_RETRIES,
    MAX_WALL_CLOCK_SEC,
    REQUEST_TIMEOUT_SEC,
    RETRY_MAX_WAIT_SEC,
    RETRY_MIN_WAIT_SEC,
    STALE_LOCK_SEC,
    STATUS_POLL_INTERVAL_SEC,
    TRIGGER_INTERVAL_SEC,
)

# Output frame size per supported aspect ratio.
ASPECT_RATIO_DIMENSIONS: dict[str, tuple[int, int]] = {
    "9:16": (1080, 1920),
    "16:9": (1920, 1080),
    "1:1": (1080, 1080),
}


@dataclass(frozen=True)
class RetryConfig:
    """Bounded retry policy for individual vendor calls.

    Attributes:
        max_attempts: Total attempts per call, including the first one.
        min_wait_sec: Lower bound of the exponential backoff.
        max_wait_sec: Upper bound of the exponential backoff.

    """

    max_attempts: int = MAX_RETRIES
    min_wait_sec: float = RETRY_MIN_WAIT_SEC
    max_wait_sec: float = RETRY_MAX_WAIT_SEC


@dataclass(frozen=True)
class PollingConfig:
    """Timing knobs for render polling and cooperative re-triggering.

    The status poll and the work trigger run on separate intervals. A job
    whose processing lock is older than ``stale_lock_sec`` may be picked up
    again by the next trigger.

    Attributes:
        status_poll_interval_sec: Delay between two progress queries.
        trigger_interval_sec: Delay between two cooperative step triggers.
        stale_lock_sec: Age after which a processing lock counts as abandoned.
        max_wall_clock_sec: Absolute ceiling for one job; exceeding it fails
            the job with a timeout error.
        request_timeout_sec: Per-call HTTP timeout, distinct from the ceiling.
        retry: Retry policy applied to each submit/poll call.

    """

    status_poll_interval_sec: float = STATUS_POLL_INTERVAL_SEC
    trigger_interval_sec: float = TRIGGER_INTERVAL_SEC
    stale_lock_sec: float = STALE_LOCK_SEC
    max_wall_clock_sec: float = MAX_WALL_CLOCK_SEC
    request_timeout_sec: float = REQUEST_TIMEOUT_SEC
    retry: RetryConfig = RetryConfig()


@dataclass(frozen=True)
class VideoConfig:
    """Output video geometry.

    Attributes:
        aspect_ratio: One of the keys of ``ASPECT_RATIO_DIMENSIONS``.
        fps: Frames per second of the composition.
        music_volume: Linear gain applied to background music.

    """

    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    fps: int = DEFAULT_FPS
    music_volume: float = BACKGROUND_MUSIC_VOLUME

    @property
    def dimensions(self) -> tuple[int, int]:
        """Return ``(width, height)`` for the aspect ratio, vertical by default."""
        return ASPECT_RATIO_DIMENSIONS.get(self.aspect_ratio, ASPECT_RATIO_DIMENSIONS["9:16"])
