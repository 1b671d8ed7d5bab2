"""Unit tests for centralized logging configuration."""

from __future__ import annotations

import logging
import warnings

import pytest

from reelsync.utils import logging_config


@pytest.fixture
def basic_config_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, object]]:
    """Capture ``logging.basicConfig`` keyword arguments."""
    calls: list[dict[str, object]] = []

    def fake_basic_config(**kwargs: object) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(logging, "basicConfig", fake_basic_config)
    return calls


def test_configure_logging_default(
    monkeypatch: pytest.MonkeyPatch, basic_config_calls: list[dict[str, object]]
) -> None:
    """Default logging config should set INFO and quiet the HTTP client."""
    monkeypatch.delenv("REELSYNC_LOG_LEVEL", raising=False)

    logging_config.configure_logging()

    assert basic_config_calls[0]["level"] == logging.INFO
    assert basic_config_calls[0]["force"] is True
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("tenacity").level == logging.WARNING


def test_configure_logging_env_level(
    monkeypatch: pytest.MonkeyPatch, basic_config_calls: list[dict[str, object]]
) -> None:
    """``REELSYNC_LOG_LEVEL`` applies when no flag is given."""
    monkeypatch.setenv("REELSYNC_LOG_LEVEL", "warning")

    logging_config.configure_logging()

    assert basic_config_calls[0]["level"] == logging.WARNING


def test_configure_logging_verbose(basic_config_calls: list[dict[str, object]]) -> None:
    """Verbose mode should set DEBUG and let HTTP client logs through."""
    logging_config.configure_logging(verbose=True)

    assert basic_config_calls[0]["level"] == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.INFO
    assert logging.getLogger("httpcore").level == logging.INFO


def test_configure_logging_quiet(
    monkeypatch: pytest.MonkeyPatch, basic_config_calls: list[dict[str, object]]
) -> None:
    """Quiet mode logs only critical messages and silences warnings."""
    filters: list[str] = []
    monkeypatch.setattr(warnings, "filterwarnings", lambda action, *a, **k: filters.append(action))

    logging_config.configure_logging(quiet=True)

    assert basic_config_calls[0]["level"] == logging.CRITICAL
    assert filters == ["ignore"]


def test_explicit_level_wins(basic_config_calls: list[dict[str, object]]) -> None:
    """An explicit level overrides the verbosity flags."""
    logging_config.configure_logging(level="ERROR", verbose=True)

    assert basic_config_calls[0]["level"] == logging.ERROR
    assert basic_config_calls[0]["format"] == "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def test_get_logger_returns_named_logger() -> None:
    """``get_logger`` is a thin wrapper around ``logging.getLogger``."""
    assert logging_config.get_logger("reelsync.test") is logging.getLogger("reelsync.test")
