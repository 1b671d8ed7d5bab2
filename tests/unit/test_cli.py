"""Unit tests for the Typer command-line interface.

Rendering commands run against the shared fake backend; nothing here
spawns ffmpeg or talks to a vendor.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import typer
from typer.testing import CliRunner

from reelsync import __version__, cli
from reelsync.jobs.orchestrator import RenderOrchestrator
from reelsync.render.base import BackendProgress
from reelsync.render.request import RenderRequest
from reelsync.timestamps.models import Scene, WordTiming
from reelsync.utils.cancel import get_cancel_event

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_cli(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Record logging setup and keep real signal handlers untouched."""
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(cli, "install_signal_handlers", lambda *args, **kwargs: None)
    return calls


def _write_json(path: Path, payload: Any) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def words_file(tmp_path: Path, twelve_words: list[WordTiming]) -> Path:
    """Write the shared word timings as a JSON list."""
    return _write_json(tmp_path / "words.json", [w.model_dump() for w in twelve_words])


@pytest.fixture
def scenes_file(tmp_path: Path, three_scenes: list[Scene]) -> Path:
    """Write the shared scenes wrapped in an object."""
    scenes = [scene.model_dump(by_alias=True) for scene in three_scenes]
    return _write_json(tmp_path / "scenes.json", {"scenes": scenes})


@pytest.fixture
def request_file(tmp_path: Path, render_request: RenderRequest) -> Path:
    """Write the shared render request."""
    return _write_json(tmp_path / "request.json", render_request.model_dump(by_alias=True))


def test_version_callback() -> None:
    """``--version`` prints the version and exits."""
    with pytest.raises(typer.Exit):
        cli.version_callback(True)

    result = runner.invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert f"reelsync version: {__version__}" in result.stdout


def test_main_help() -> None:
    """Invoking the app without args prints usage and exits 0."""
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 0
    assert "Usage" in result.stdout


def test_verbose_flag_configures_logging(_quiet_cli: list[dict[str, Any]]) -> None:
    """Global flags reach the logging setup."""
    runner.invoke(cli.app, ["--verbose", "detect-language", "Hello there"])

    assert _quiet_cli[0] == {"verbose": True, "quiet": False}


def test_chunk_command() -> None:
    """Long scripts are shown as numbered chunks."""
    text = "First sentence is here. Second sentence follows now. Third one ends it."

    result = runner.invoke(cli.app, ["chunk", text, "--max-chars", "30"])

    assert result.exit_code == 0
    assert "3 chunk(s)" in result.stdout
    assert "Second sentence follows now." in result.stdout


def test_chunk_requires_text() -> None:
    """Neither TEXT nor --file is a usage error."""
    result = runner.invoke(cli.app, ["chunk"])

    assert result.exit_code == 2


def test_detect_language_command() -> None:
    """The language tag and voice locale are printed tab-separated."""
    result = runner.invoke(cli.app, ["detect-language", "Hola, muy buenos días a todos."])

    assert result.exit_code == 0
    assert result.stdout.strip() == "spanish\tes"


def test_estimate_command_reads_file(tmp_path: Path) -> None:
    """Estimated timings are printed as JSON and pinned to --duration."""
    script = tmp_path / "script.txt"
    script.write_text("one two three", encoding="utf-8")

    result = runner.invoke(cli.app, ["estimate", "--file", str(script), "--duration", "3.0"])

    assert result.exit_code == 0
    words = json.loads(result.stdout)
    assert [w["word"] for w in words] == ["one", "two", "three"]
    assert words[-1]["end"] == pytest.approx(3.0)


def test_allocate_command_writes_json(
    tmp_path: Path, scenes_file: Path, words_file: Path
) -> None:
    """Scene timings are written in the wire shape."""
    output = tmp_path / "out" / "timings.json"

    result = runner.invoke(
        cli.app, ["allocate", str(scenes_file), str(words_file), "--output", str(output)]
    )

    assert result.exit_code == 0
    timings = json.loads(output.read_text(encoding="utf-8"))
    assert [(t["startTime"], t["endTime"]) for t in timings] == [
        (0.0, 1.5),
        (1.5, 2.4),
        (2.4, 3.6),
    ]
    assert f"Wrote {output}" in result.stdout


def test_allocate_command_table(scenes_file: Path, words_file: Path) -> None:
    """Without --output the timings are shown as a table."""
    result = runner.invoke(cli.app, ["allocate", str(scenes_file), str(words_file), "--aligned"])

    assert result.exit_code == 0
    assert "Scene timings" in result.stdout


def test_captions_command_srt(words_file: Path) -> None:
    """Phrases are exported as SRT cues."""
    result = runner.invoke(cli.app, ["captions", str(words_file), "--words-per-phrase", "2"])

    assert result.exit_code == 0
    assert "00:00:00,000 --> 00:00:00,600" in result.stdout
    assert "Every morning" in result.stdout


def test_captions_command_ass(tmp_path: Path, words_file: Path) -> None:
    """Styled formats honour --style."""
    output = tmp_path / "captions.ass"

    result = runner.invoke(
        cli.app,
        ["captions", str(words_file), "--format", "ass", "--style", "minimal", "-o", str(output)],
    )

    assert result.exit_code == 0
    assert "Title: Captions - Minimal" in output.read_text(encoding="utf-8")


def test_captions_command_rejects_unknown_format(words_file: Path) -> None:
    """Unsupported formats are usage errors."""
    result = runner.invoke(cli.app, ["captions", str(words_file), "--format", "docx"])

    assert result.exit_code == 2


def test_timeline_command(request_file: Path) -> None:
    """The frame layout is summarised in the table title."""
    result = runner.invoke(cli.app, ["timeline", str(request_file)])

    assert result.exit_code == 0
    assert "1080x1920 @ 30 fps, 108 frames" in result.stdout
    assert "pan-right" in result.stdout


def test_timeline_command_rejects_bad_request(tmp_path: Path) -> None:
    """Files that are not render requests are usage errors."""
    bad = _write_json(tmp_path / "bad.json", {"scenes": []})

    result = runner.invoke(cli.app, ["timeline", str(bad)])

    assert result.exit_code == 2


class TestRenderCommand:
    """Tests for ``reelsync render`` against the fake backend."""

    @pytest.fixture(autouse=True)
    def _fake_stack(
        self,
        monkeypatch: pytest.MonkeyPatch,
        fake_backend,
        orchestrator: RenderOrchestrator,
    ) -> list[tuple[str, dict[str, Any]]]:
        requested: list[tuple[str, dict[str, Any]]] = []

        def fake_get_backend(name: str, **options: Any):
            requested.append((name, options))
            return fake_backend

        monkeypatch.setattr(cli, "get_backend", fake_get_backend)
        monkeypatch.setattr(cli, "RenderOrchestrator", lambda backend: orchestrator)
        return requested

    def test_render_success(
        self,
        tmp_path: Path,
        request_file: Path,
        _fake_stack: list[tuple[str, dict[str, Any]]],
    ) -> None:
        """A completed render prints the video URL."""
        result = runner.invoke(
            cli.app,
            ["render", str(request_file), "--backend", "ffmpeg", "--output-dir", str(tmp_path)],
        )

        assert result.exit_code == 0
        assert "https://cdn.example.com/renders/final.mp4" in result.stdout
        assert _fake_stack == [("ffmpeg", {"output_dir": tmp_path})]

    def test_render_failure_exits_1(self, request_file: Path, fake_backend) -> None:
        """A failed render exits with code 1 and reports the error kind."""
        fake_backend.observations = [BackendProgress(fatal_error="Asset 404")]

        result = runner.invoke(
            cli.app, ["render", str(request_file), "--backend", "json2video", "--no-progress"]
        )

        assert result.exit_code == 1
        assert "Render failed (backend_failure): Asset 404" in result.output

    def test_render_interrupted_exits_130(self, request_file: Path, fake_backend) -> None:
        """A pre-set cancel event stops waiting without failing the job."""
        fake_backend.observations = [BackendProgress(progress_fraction=0.2)]
        get_cancel_event().set()

        result = runner.invoke(cli.app, ["render", str(request_file), "--no-progress"])

        assert result.exit_code == 130
        assert "Interrupted; backend work may continue." in result.output
        assert fake_backend.cancelled == ["render-1"]
