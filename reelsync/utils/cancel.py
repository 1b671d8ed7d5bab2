"""Cooperative cancellation for render polling loops.

A render job is cancelled from the caller's side by no longer polling or
re-triggering it. Work already accepted by a remote backend keeps running
unless that backend exposes a cancel call, so the helpers here only govern
the local loop: a shared ``threading.Event``, signal wiring for the CLI, and
an interruptible sleep used between polls.
"""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterable

logger = logging.getLogger(__name__)

_cancel_event: threading.Event | None = None
_installed_signals: set[int] = set()


def get_cancel_event() -> threading.Event:
    """Return the process-wide cancel event, creating it on first use.

    Returns:
        Event set once cancellation has been requested.
    """
    global _cancel_event
    if _cancel_event is None:
        _cancel_event = threading.Event()
    return _cancel_event


def install_signal_handlers(
    cancel_event: threading.Event | None = None,
    signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
) -> None:
    """Route termination signals to the cancel event.

    Signals that already have a handler from an earlier call are skipped.

    Args:
        cancel_event: Event to set; defaults to the process-wide event.
        signals: Signals to intercept.
    """
    event = cancel_event if cancel_event is not None else get_cancel_event()

    def _handler(signum: int, frame: object) -> None:
        del frame
        logger.info("Received %s, stopping render polling", signal.Signals(signum).name)
        event.set()

    for sig in signals:
        if int(sig) in _installed_signals:
            logger.debug("Handler for %s already installed", sig.name)
            continue
        signal.signal(sig, _handler)
        _installed_signals.add(int(sig))


def reset_cancel_event() -> None:
    """Clear the process-wide event so a new render can be polled."""
    if _cancel_event is not None:
        _cancel_event.clear()


def is_cancelled(cancel_event: threading.Event | None = None) -> bool:
    """Check if cancellation has been requested.

    Args:
        cancel_event: Optional event to check. If None, uses the global event.

    Returns:
        True if cancellation has been requested, False otherwise.
    """
    event = cancel_event if cancel_event is not None else get_cancel_event()
    return event.is_set()


def sleep_unless_cancelled(seconds: float, cancel_event: threading.Event | None = None) -> bool:
    """Wait between polls, waking early when cancellation is requested.

    Args:
        seconds: Delay before the next poll.
        cancel_event: Event to watch; ``None`` means a plain wait on a private
            event (never cancelled).

    Returns:
        True if the wait was cut short by cancellation.
    """
    event = cancel_event if cancel_event is not None else threading.Event()
    return event.wait(timeout=max(0.0, seconds))
