"""Render backend contract.

A backend accepts a :class:`~reelsync.render.request.RenderRequest`, returns a
handle, and answers progress queries. It never retries on its own; instead it
classifies failures so the orchestrator can retry transient ones with
backoff and surface fatal ones immediately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from reelsync.utils.retry import TransientError

if TYPE_CHECKING:
    from reelsync.render.request import RenderRequest

__all__ = [
    "BackendError",
    "BackendProgress",
    "CancellableBackend",
    "FatalBackendError",
    "RenderBackend",
    "RenderHandle",
    "TransientBackendError",
]


class BackendError(RuntimeError):
    """Base class for render backend failures.

    Attributes:
        payload: Backend error content preserved verbatim for diagnostics.
    """

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class TransientBackendError(BackendError, TransientError):
    """Timeouts, connection failures, rate limits and 5xx responses."""


class FatalBackendError(BackendError):
    """Authentication and validation failures, malformed responses."""


@dataclass(frozen=True)
class RenderHandle:
    """Identifies a submitted render.

    Attributes:
        render_id: Backend render identifier.
        backend: Name of the backend that accepted the render.
        locator: Backend-specific extras needed to query it later.

    """

    render_id: str
    backend: str
    locator: dict[str, Any] = field(default_factory=dict)


class BackendProgress(BaseModel):
    """A single progress observation."""

    done: bool = False
    progress_fraction: float = Field(0.0, ge=0.0, le=1.0, alias="progressFraction")
    output_url: str | None = Field(None, alias="outputUrl")
    duration: float | None = None
    fatal_error: Any = Field(None, alias="fatalError")
    errors: list[Any] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @property
    def failed(self) -> bool:
        """Return True when the backend reported a fatal error."""
        return self.fatal_error is not None


@runtime_checkable
class RenderBackend(Protocol):
    """Structural interface implemented by every render backend."""

    name: str

    def submit(self, request: RenderRequest) -> RenderHandle:
        """Start rendering ``request`` and return its handle."""
        ...

    def progress(self, handle: RenderHandle) -> BackendProgress:
        """Return the current progress of the render behind ``handle``."""
        ...


@runtime_checkable
class CancellableBackend(Protocol):
    """Backends that can abandon an in-flight render."""

    def cancel(self, handle: RenderHandle) -> None:
        """Stop the render behind ``handle`` on a best-effort basis."""
        ...
