"""Unit tests for the JSON2Video render backend."""

from __future__ import annotations

import json

import httpx
import pytest

from reelsync.render.base import FatalBackendError, RenderHandle, TransientBackendError
from reelsync.render.json2video import (
    Json2VideoBackend,
    build_movie_payload,
    movie_status_to_progress,
)
from reelsync.render.request import CaptionSettings, MusicSettings, RenderRequest

BASE_URL = "https://api.json2video.test/v2"


def _backend(handler, api_key: str = "secret-key") -> Json2VideoBackend:
    return Json2VideoBackend(
        api_key=api_key, base_url=BASE_URL, timeout=1.0, transport=httpx.MockTransport(handler)
    )


class TestMoviePayload:
    """Tests for translating a render request into a movie document."""

    def test_scene_layout(self, render_request: RenderRequest) -> None:
        """Scene durations follow the frame grid and visuals follow the scene type."""
        payload = build_movie_payload(render_request)

        assert (payload["width"], payload["height"], payload["fps"]) == (1080, 1920, 30)
        assert [scene["duration"] for scene in payload["scenes"]] == [1.5, 0.9, 1.2]
        face, park, city = (scene["elements"][0] for scene in payload["scenes"])
        assert face["type"] == "video"
        assert face["src"] == "https://cdn.example.com/face/intro.mp4"
        assert park["type"] == "image"
        assert park["pan"] == "right"
        assert city["zoom"] == -3

    def test_movie_level_audio_and_subtitles(self, render_request: RenderRequest) -> None:
        """Narration becomes a movie audio element and captions a subtitles element."""
        request = render_request.model_copy(
            update={"music": MusicSettings(url="https://cdn.example.com/music.mp3", volume=0.2)}
        )

        elements = build_movie_payload(request)["elements"]

        narration, music, subtitles = elements
        assert narration["src"] == "https://cdn.example.com/tts/full.mp3"
        assert narration["start"] == 0.0
        assert music["volume"] == 0.2
        assert music["loop"] == -1
        assert subtitles["type"] == "subtitles"
        assert subtitles["settings"]["font-family"] == "Impact"
        assert subtitles["settings"]["max-words-per-line"] == 4
        # Scene elements carry no audio when a narration track exists.
        assert all(len(scene["elements"]) == 1 for scene in build_movie_payload(request)["scenes"])

    def test_scene_audio_without_narration(self, render_request: RenderRequest) -> None:
        """Per-scene audio is attached when there is no narration track."""
        scenes = [
            scene.model_copy(update={"audio_url": f"https://cdn.example.com/s{n}.mp3"})
            for n, scene in enumerate(render_request.scenes)
        ]
        request = render_request.model_copy(
            update={
                "scenes": scenes,
                "narration": [],
                "captions": CaptionSettings(enabled=False),
            }
        )

        payload = build_movie_payload(request)

        assert "elements" not in payload
        assert payload["scenes"][1]["elements"][1]["src"] == "https://cdn.example.com/s1.mp3"


class TestMovieStatus:
    """Tests for mapping vendor movie states."""

    @pytest.mark.parametrize(
        ("status", "fraction"), [("pending", 0.1), ("running", 0.5), ("queued", 0.1)]
    )
    def test_in_flight_states(self, status: str, fraction: float) -> None:
        """Coarse vendor states map to fixed fractions."""
        progress = movie_status_to_progress({"movie": {"status": status}})

        assert progress.progress_fraction == fraction
        assert not progress.done
        assert not progress.failed

    def test_done(self) -> None:
        """A finished movie reports its URL and duration."""
        progress = movie_status_to_progress(
            {"movie": {"status": "done", "url": "https://cdn.test/m.mp4", "duration": 3.6}}
        )

        assert progress.done
        assert progress.output_url == "https://cdn.test/m.mp4"
        assert progress.duration == 3.6

    def test_error_keeps_message_or_movie(self) -> None:
        """Vendor errors are surfaced verbatim."""
        with_message = movie_status_to_progress(
            {"movie": {"status": "error", "message": "Source not found"}}
        )
        without_message = movie_status_to_progress({"movie": {"status": "error", "code": 7}})

        assert with_message.fatal_error == "Source not found"
        assert without_message.fatal_error == {"status": "error", "code": 7}

    def test_missing_movie_is_fatal(self) -> None:
        """A body without a movie object cannot be interpreted."""
        with pytest.raises(FatalBackendError):
            movie_status_to_progress({"success": True})


class TestJson2VideoBackend:
    """Tests for the HTTP client side of the backend."""

    def test_submit_posts_movie(self, render_request: RenderRequest) -> None:
        """Submitting posts the payload with the API key header."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "project": "proj-42"})

        with _backend(handler) as backend:
            handle = backend.submit(render_request)

        assert handle == RenderHandle("proj-42", "json2video", {"project": "proj-42"})
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/v2/movies"
        assert seen[0].headers["x-api-key"] == "secret-key"
        assert len(json.loads(seen[0].content)["scenes"]) == 3

    def test_progress_queries_project(self) -> None:
        """Progress is read from ``GET /movies?project=...``."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["project"] == "proj-42"
            return httpx.Response(200, json={"movie": {"status": "running"}})

        backend = _backend(handler)
        progress = backend.progress(RenderHandle("proj-42", "json2video", {"project": "proj-42"}))

        assert progress.progress_fraction == 0.5

    @pytest.mark.parametrize("status_code", [429, 500, 503])
    def test_retryable_statuses_are_transient(
        self, status_code: int, render_request: RenderRequest
    ) -> None:
        """Rate limits and server errors are classified as transient."""
        backend = _backend(lambda request: httpx.Response(status_code, json={"error": "busy"}))

        with pytest.raises(TransientBackendError) as excinfo:
            backend.submit(render_request)

        assert excinfo.value.payload == {"error": "busy"}

    def test_timeout_is_transient(self) -> None:
        """Request timeouts are classified as transient."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(TransientBackendError, match="timed out"):
            _backend(handler).progress(RenderHandle("p", "json2video"))

    def test_client_error_is_fatal(self, render_request: RenderRequest) -> None:
        """Authentication failures are fatal and keep the vendor body."""
        backend = _backend(lambda request: httpx.Response(401, json={"message": "Invalid key"}))

        with pytest.raises(FatalBackendError) as excinfo:
            backend.submit(render_request)

        assert "HTTP 401" in str(excinfo.value)
        assert excinfo.value.payload == {"message": "Invalid key"}

    def test_malformed_body_is_fatal(self) -> None:
        """Non-JSON success bodies are fatal."""
        backend = _backend(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(FatalBackendError, match="malformed"):
            backend.progress(RenderHandle("p", "json2video"))

    def test_missing_project_is_fatal(self, render_request: RenderRequest) -> None:
        """A submit response without a project id reports the vendor message."""
        backend = _backend(
            lambda request: httpx.Response(200, json={"success": False, "message": "Bad movie"})
        )

        with pytest.raises(FatalBackendError, match="Bad movie"):
            backend.submit(render_request)

    def test_missing_api_key_is_fatal(self, render_request: RenderRequest) -> None:
        """Submitting without an API key fails before any request."""
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"project": "x"})

        with pytest.raises(FatalBackendError, match="JSON2VIDEO_API_KEY"):
            _backend(handler, api_key="").submit(render_request)

        assert calls == []
