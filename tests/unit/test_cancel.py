"""Unit tests for cooperative cancellation helpers."""

from __future__ import annotations

import signal
import threading
import time

import pytest

from reelsync.utils import cancel


def test_process_event_is_shared_and_resettable() -> None:
    """The process-wide event is created once and can be cleared."""
    event = cancel.get_cancel_event()

    assert cancel.get_cancel_event() is event
    assert cancel.is_cancelled() is False
    event.set()
    assert cancel.is_cancelled() is True
    cancel.reset_cancel_event()
    assert cancel.is_cancelled() is False


def test_sleep_unless_cancelled() -> None:
    """Waits end early once the event is set."""
    event = threading.Event()
    event.set()

    started = time.monotonic()
    assert cancel.sleep_unless_cancelled(5.0, event) is True
    assert time.monotonic() - started < 1.0
    assert cancel.sleep_unless_cancelled(0.0) is False
    assert cancel.sleep_unless_cancelled(-1.0, threading.Event()) is False


@pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="POSIX signals required")
def test_signal_handler_sets_event(monkeypatch: pytest.MonkeyPatch) -> None:
    """An intercepted signal sets the cancel event, and handlers install once."""
    previous = signal.getsignal(signal.SIGUSR1)
    monkeypatch.setattr(cancel, "_installed_signals", set())
    event = threading.Event()
    try:
        cancel.install_signal_handlers(event, signals=(signal.SIGUSR1,))
        handler = signal.getsignal(signal.SIGUSR1)
        cancel.install_signal_handlers(threading.Event(), signals=(signal.SIGUSR1,))

        assert signal.getsignal(signal.SIGUSR1) is handler
        signal.raise_signal(signal.SIGUSR1)
        assert event.wait(1.0)
    finally:
        signal.signal(signal.SIGUSR1, previous)
