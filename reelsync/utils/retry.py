"""Bounded retries for vendor calls.

Render backends and speech vendors both classify their failures. Anything
derived from :class:`TransientError` is retried with exponential backoff;
every other exception propagates on the first attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from reelsync.config import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransientError(Exception):
    """Marker base for failures worth retrying: timeouts, rate limits, 5xx."""


def call_with_retry(
    fn: Callable[[], T],
    retry: RetryConfig | None = None,
    sleep: Callable[[float], None] | None = None,
) -> T:
    """Call ``fn``, retrying transient failures with exponential backoff.

    Fatal errors and any other exception propagate on the first attempt.
    When the attempts are exhausted the last :class:`TransientError` is
    re-raised.

    Args:
        fn: Zero-argument callable performing one vendor call.
        retry: Attempt and backoff bounds; defaults to ``RetryConfig()``.
        sleep: Replacement for ``time.sleep`` between attempts.

    Returns:
        Whatever ``fn`` returns.
    """
    retry = retry or RetryConfig()
    options = {}
    if sleep is not None:
        options["sleep"] = sleep
    retrying = Retrying(
        stop=stop_after_attempt(retry.max_attempts),
        wait=wait_exponential(multiplier=1, min=retry.min_wait_sec, max=retry.max_wait_sec),
        retry=retry_if_exception_type(TransientError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
        **options,
    )
    return retrying(fn)
