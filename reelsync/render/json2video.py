"""JSON2Video cloud render backend.

The backend translates a :class:`RenderRequest` into a JSON2Video movie
document, submits it over HTTP and maps the vendor's movie status onto
:class:`BackendProgress`. HTTP failures are classified for the
orchestrator's retry policy:

* timeouts, connection errors, ``429`` and ``5xx`` responses are transient;
* other ``4xx`` responses and malformed bodies are fatal.

JSON2Video only reports coarse states, so progress is ``0.1`` while
queued, ``0.5`` while running and ``1.0`` when done.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from reelsync.captions.styles import get_caption_style
from reelsync.composition.kenburns import KenBurnsEffect
from reelsync.composition.timeline import frames_to_seconds
from reelsync.render.base import (
    BackendProgress,
    FatalBackendError,
    RenderHandle,
    TransientBackendError,
)
from reelsync.render.request import RenderRequest
from reelsync.utils.constant import JSON2VIDEO_API_BASE, JSON2VIDEO_API_KEY, REQUEST_TIMEOUT_SEC

logger = logging.getLogger(__name__)

__all__ = ["Json2VideoBackend", "build_movie_payload", "movie_status_to_progress"]

# Vendor zoom is -10..10 (negative zooms out); pan-distance is a fraction of the frame.
_KENBURNS_SETTINGS: dict[KenBurnsEffect, dict[str, Any]] = {
    KenBurnsEffect.ZOOM_IN: {"zoom": 4, "fade-in": 0.5, "fade-out": 0.5},
    KenBurnsEffect.PAN_RIGHT: {
        "zoom": 3,
        "pan": "right",
        "pan-distance": 0.15,
        "fade-in": 0.4,
        "fade-out": 0.4,
    },
    KenBurnsEffect.ZOOM_OUT: {"zoom": -3, "fade-in": 0.5, "fade-out": 0.5},
    KenBurnsEffect.PAN_LEFT: {
        "zoom": 2,
        "pan": "left",
        "pan-distance": 0.15,
        "fade-in": 0.4,
        "fade-out": 0.4,
    },
    KenBurnsEffect.ZOOM_PAN: {
        "zoom": 4,
        "pan": "top",
        "pan-distance": 0.12,
        "fade-in": 0.5,
        "fade-out": 0.5,
    },
}

_RUNNING_FRACTION = 0.5
_QUEUED_FRACTION = 0.1


def _subtitle_settings(request: RenderRequest) -> dict[str, Any]:
    style = get_caption_style(request.captions.style)
    settings: dict[str, Any] = {
        "style": "classic",
        "font-family": style.font,
        "font-size": style.font_size,
        "word-color": style.highlight_color,
        "line-color": style.text_color,
        "outline-color": style.outline_color,
        "outline-width": style.outline_width,
        "shadow-color": style.shadow_color,
        "shadow-offset": style.shadow_depth,
        "position": "bottom-center",
        "max-words-per-line": request.captions.words_per_phrase,
    }
    if style.all_caps:
        settings["all-caps"] = True
    return settings


def build_movie_payload(request: RenderRequest) -> dict[str, Any]:
    """Translate ``request`` into a JSON2Video movie document.

    Scene durations come from the visual timeline, so the vendor cuts
    exactly where the local compositor would. Narration segments become
    movie-level audio elements at their offsets; per-scene audio is only
    attached when no narration track is present.

    Args:
        request: The render request.

    Returns:
        A JSON-serializable movie payload.
    """
    timeline = request.visual_timeline()
    width, height = timeline.width, timeline.height
    use_scene_audio = not request.narration

    scenes: list[dict[str, Any]] = []
    for position, segment in enumerate(timeline.segments):
        elements: list[dict[str, Any]] = []
        if segment.scene_type == "face":
            elements.append(
                {
                    "type": "video",
                    "src": segment.media_url,
                    "resize": "cover",
                    "media-duration": "exact",
                }
            )
        else:
            element: dict[str, Any] = {"type": "image", "src": segment.media_url, "resize": "cover"}
            if segment.effect is not None:
                element.update(_KENBURNS_SETTINGS[segment.effect])
            elements.append(element)
        if use_scene_audio and segment.audio_url:
            elements.append(
                {"type": "audio", "src": segment.audio_url, "start": 0, "duration": -1, "volume": 1}
            )
        scenes.append(
            {
                "comment": f"Scene {position + 1}",
                "duration": round(frames_to_seconds(segment.duration_frames, timeline.fps), 3),
                "elements": elements,
            }
        )

    movie_elements: list[dict[str, Any]] = []
    for narration in request.narration:
        movie_elements.append(
            {
                "type": "audio",
                "src": narration.audio_url,
                "start": round(narration.offset, 3),
                "duration": -1,
                "volume": 1,
            }
        )
    if request.music is not None:
        movie_elements.append(
            {
                "type": "audio",
                "src": request.music.url,
                "start": 0,
                "duration": -2,
                "volume": request.music.volume,
                "loop": -1,
                "fade-in": 1,
                "fade-out": 2,
            }
        )
    if request.captions.enabled:
        movie_elements.append(
            {"type": "subtitles", "language": "auto", "settings": _subtitle_settings(request)}
        )

    payload: dict[str, Any] = {
        "resolution": "custom",
        "width": width,
        "height": height,
        "quality": "high",
        "fps": timeline.fps,
        "draft": False,
        "scenes": scenes,
    }
    if movie_elements:
        payload["elements"] = movie_elements
    return payload


def movie_status_to_progress(body: Any) -> BackendProgress:
    """Map a JSON2Video status response body onto :class:`BackendProgress`.

    Raises:
        FatalBackendError: If the body has no ``movie`` object.
    """
    movie = body.get("movie") if isinstance(body, dict) else None
    if not isinstance(movie, dict):
        raise FatalBackendError("JSON2Video status response has no movie object", payload=body)

    status = movie.get("status")
    if status == "done":
        return BackendProgress(
            done=True,
            progress_fraction=1.0,
            output_url=movie.get("url"),
            duration=movie.get("duration"),
        )
    if status == "error":
        return BackendProgress(
            progress_fraction=0.0,
            fatal_error=movie.get("message") or movie,
        )
    if status == "running":
        return BackendProgress(progress_fraction=_RUNNING_FRACTION)
    return BackendProgress(progress_fraction=_QUEUED_FRACTION)


def _response_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class Json2VideoBackend:
    """Render backend backed by the JSON2Video movies API.

    Args:
        api_key: Vendor API key. Defaults to ``JSON2VIDEO_API_KEY``.
        base_url: API base URL. Defaults to ``JSON2VIDEO_API_BASE``.
        timeout: Per-call timeout in seconds.
        transport: Optional ``httpx`` transport, used in tests.

    """

    name = "json2video"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = JSON2VIDEO_API_BASE,
        timeout: float = REQUEST_TIMEOUT_SEC,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else JSON2VIDEO_API_KEY
        if not self.api_key:
            logger.warning("JSON2VIDEO_API_KEY is not set; submissions will be rejected")
        self.base_url = base_url
        self._client = httpx.Client(
            base_url=base_url,
            headers={"x-api-key": self.api_key, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> Json2VideoBackend:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransientBackendError(f"JSON2Video request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise TransientBackendError(f"JSON2Video connection failed: {exc}") from exc

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientBackendError(
                f"JSON2Video returned HTTP {response.status_code}",
                payload=_response_payload(response),
            )
        if response.status_code >= 400:
            raise FatalBackendError(
                f"JSON2Video rejected the request with HTTP {response.status_code}",
                payload=_response_payload(response),
            )
        try:
            return response.json()
        except ValueError as exc:
            raise FatalBackendError(
                "JSON2Video returned a malformed response", payload=response.text
            ) from exc

    def submit(self, request: RenderRequest) -> RenderHandle:
        """Create a JSON2Video movie for ``request``.

        Raises:
            FatalBackendError: Missing API key, rejected payload or a
                response without a project id.
            TransientBackendError: Timeouts, connection and server errors.
        """
        if not self.api_key:
            raise FatalBackendError("JSON2VIDEO_API_KEY is not set")
        payload = build_movie_payload(request)
        logger.info("Submitting JSON2Video movie with %d scenes", len(payload["scenes"]))
        body = self._request("POST", "/movies", json=payload)
        project = body.get("project") if isinstance(body, dict) else None
        if not project:
            message = body.get("message") if isinstance(body, dict) else None
            raise FatalBackendError(
                message or "JSON2Video response has no project id",
                payload=body,
            )
        logger.info("JSON2Video project: %s", project)
        return RenderHandle(render_id=str(project), backend=self.name, locator={"project": project})

    def progress(self, handle: RenderHandle) -> BackendProgress:
        """Query the movie status for ``handle``."""
        project = handle.locator.get("project", handle.render_id)
        body = self._request("GET", "/movies", params={"project": project})
        result = movie_status_to_progress(body)
        logger.debug(
            "JSON2Video %s: done=%s fraction=%.2f", project, result.done, result.progress_fraction
        )
        return result
