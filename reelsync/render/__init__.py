"""Render backends and the render request they consume."""

from reelsync.render.base import (
    BackendError,
    BackendProgress,
    FatalBackendError,
    RenderBackend,
    RenderHandle,
    TransientBackendError,
)
from reelsync.render.request import CaptionSettings, MusicSettings, RenderRequest

__all__ = [
    "BackendError",
    "BackendProgress",
    "CaptionSettings",
    "FatalBackendError",
    "MusicSettings",
    "RenderBackend",
    "RenderHandle",
    "RenderRequest",
    "TransientBackendError",
    "get_backend",
]


def get_backend(name: str, **kwargs: object) -> RenderBackend:
    """Instantiate a render backend by name (``"ffmpeg"`` or ``"json2video"``).

    Raises:
        ValueError: If ``name`` is not a known backend.
    """
    key = name.lower()
    if key == "ffmpeg":
        from reelsync.render.ffmpeg import FFmpegBackend

        return FFmpegBackend(**kwargs)  # type: ignore[arg-type]
    if key == "json2video":
        from reelsync.render.json2video import Json2VideoBackend

        return Json2VideoBackend(**kwargs)  # type: ignore[arg-type]
    raise ValueError(
        f"Unknown render backend: '{name}'. Supported backends are: ['ffmpeg', 'json2video']"
    )
