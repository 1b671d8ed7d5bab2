"""Local render backend driving the ``ffmpeg`` binary.

A render runs as a sequence of ffmpeg invocations in a worker thread:

1. one clip per scene (``zoompan`` Ken Burns for stills, looped or padded
   face clips), each exactly as many frames as the visual timeline allots;
2. the narration track, with every segment delayed to its offset;
3. a stream-copy concat of the scene clips;
4. the final mux with optional background music and burned-in ASS captions.

Progress is the fraction of finished invocations. A failing invocation is
a fatal error carrying ffmpeg's stderr; nothing here is retried.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
import uuid
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from reelsync.composition.kenburns import kenburns_keyframes
from reelsync.composition.timeline import FaceClipPolicy, SceneSegment, VisualTimeline
from reelsync.formatting import format_phrases
from reelsync.render.base import BackendProgress, FatalBackendError, RenderHandle
from reelsync.render.request import RenderRequest
from reelsync.utils.constant import FFMPEG_BINARY, RENDER_OUTPUT_DIR

logger = logging.getLogger(__name__)

__all__ = [
    "FFmpegBackend",
    "build_final_command",
    "build_narration_command",
    "build_scene_command",
    "zoompan_filter",
]

Runner = Callable[..., Any]

# Stills are upscaled before zoompan to avoid integer-pixel jitter.
_ZOOMPAN_OVERSAMPLE = 2
_CAPTIONS_FILE = "captions.ass"
_CONCAT_LIST = "scenes.txt"
_NARRATION_FILE = "narration.m4a"
# Finished renders remembered for repeat progress queries; older ones are dropped.
_FINISHED_RETAINED = 64


def _local_source(source: str | None) -> str | None:
    """Return ``source`` with a relative local path made absolute.

    ffmpeg runs inside the render's work directory, so paths relative to the
    caller's working directory must be resolved before the render starts.
    URLs pass through unchanged.
    """
    if not source or "://" in source or source.startswith("data:"):
        return source
    return str(Path(source).expanduser().resolve())


def _with_local_sources(request: RenderRequest) -> RenderRequest:
    scenes = [
        scene.model_copy(
            update={
                "asset_url": _local_source(scene.asset_url),
                "audio_url": _local_source(scene.audio_url),
            }
        )
        for scene in request.scenes
    ]
    narration = [
        segment.model_copy(update={"audio_url": _local_source(segment.audio_url)})
        for segment in request.narration
    ]
    music = request.music
    if music is not None:
        music = music.model_copy(update={"url": _local_source(music.url)})
    return request.model_copy(update={"scenes": scenes, "narration": narration, "music": music})

_VIDEO_FILE = "video.mp4"


def _cover_filter(width: int, height: int) -> str:
    return f"scale={width}:{height}:force_original_aspect_ratio=increase,crop={width}:{height}"


def zoompan_filter(segment: SceneSegment, width: int, height: int, fps: int) -> str:
    """Return the filter chain animating a still over ``segment``.

    The zoom and horizontal offset follow the same linear keyframes as
    :func:`reelsync.composition.kenburns.kenburns_transform`, clamped once
    the output frame counter reaches the scene length.
    """
    if segment.effect is None:
        raise ValueError(f"Scene {segment.scene_index} has no Ken Burns effect")
    scale_a, scale_b, x_a, x_b = kenburns_keyframes(segment.effect)
    frames = max(segment.duration_frames, 1)
    progress = f"min(on/{frames},1)"
    zoom = f"{scale_a}+({scale_b - scale_a})*{progress}"
    shift = f"({x_a}+({x_b - x_a})*{progress})"
    x_expr = f"iw/2-(iw/zoom/2)-{shift}*iw/zoom/100"
    y_expr = "ih/2-(ih/zoom/2)"
    over_w, over_h = width * _ZOOMPAN_OVERSAMPLE, height * _ZOOMPAN_OVERSAMPLE
    return (
        f"{_cover_filter(over_w, over_h)},"
        f"zoompan=z='{zoom}':x='{x_expr}':y='{y_expr}':d=1:s={width}x{height}:fps={fps},"
        "format=yuv420p"
    )


def build_scene_command(
    binary: str, segment: SceneSegment, width: int, height: int, fps: int, output: str
) -> list[str]:
    """Return the ffmpeg command rendering one scene clip without audio."""
    seconds = segment.duration_frames / fps
    cmd = [binary, "-y", "-nostdin"]
    if segment.scene_type == "face":
        policy = segment.clip_policy or FaceClipPolicy.LOOP
        vf = f"{_cover_filter(width, height)},fps={fps}"
        if policy is FaceClipPolicy.LOOP:
            cmd += ["-stream_loop", "-1", "-i", str(segment.media_url), "-t", f"{seconds:.3f}"]
        else:
            cmd += ["-i", str(segment.media_url)]
            vf += f",tpad=stop_mode=clone:stop_duration={seconds:.3f}"
        vf += ",format=yuv420p"
    else:
        cmd += ["-loop", "1", "-framerate", str(fps), "-i", str(segment.media_url)]
        vf = zoompan_filter(segment, width, height, fps)
    cmd += [
        "-vf",
        vf,
        "-frames:v",
        str(segment.duration_frames),
        "-an",
        "-c:v",
        "libx264",
        "-preset",
        "veryfast",
        "-r",
        str(fps),
        output,
    ]
    return cmd


def build_narration_command(
    binary: str, tracks: list[tuple[str, float]], output: str
) -> list[str]:
    """Return the command laying audio ``(url, offset)`` tracks on one timeline."""
    cmd = [binary, "-y", "-nostdin"]
    for url, _offset in tracks:
        cmd += ["-i", url]
    if len(tracks) == 1 and tracks[0][1] <= 0:
        return [*cmd, "-vn", "-c:a", "aac", output]

    parts = []
    labels = []
    for index, (_url, offset) in enumerate(tracks):
        delay_ms = int(round(offset * 1000))
        parts.append(f"[{index}:a]adelay={delay_ms}:all=1[a{index}]")
        labels.append(f"[a{index}]")
    parts.append(f"{''.join(labels)}amix=inputs={len(tracks)}:normalize=0[aout]")
    return [*cmd, "-filter_complex", ";".join(parts), "-map", "[aout]", "-c:a", "aac", output]


def build_final_command(
    binary: str,
    video: str,
    narration: str | None,
    music_url: str | None,
    music_volume: float,
    captions: str | None,
    duration: float,
    output: str,
) -> list[str]:
    """Return the command muxing video, narration, music and captions."""
    cmd = [binary, "-y", "-nostdin", "-i", video]
    if narration:
        cmd += ["-i", narration]
    if music_url:
        cmd += ["-stream_loop", "-1", "-i", music_url]

    filters: list[str] = []
    audio_map: str | None = None
    if narration and music_url:
        filters.append(
            f"[1:a]volume=1.0[voice];[2:a]volume={music_volume}[music];"
            "[voice][music]amix=inputs=2:duration=first:dropout_transition=2[aout]"
        )
        audio_map = "[aout]"
    elif music_url:
        filters.append(f"[1:a]volume={music_volume}[aout]")
        audio_map = "[aout]"
    elif narration:
        audio_map = "1:a"

    if captions:
        filters.insert(0, f"[0:v]subtitles={captions}[vout]")
        cmd += ["-filter_complex", ";".join(filters), "-map", "[vout]"]
        video_codec = ["-c:v", "libx264", "-preset", "veryfast"]
    else:
        if filters:
            cmd += ["-filter_complex", ";".join(filters)]
        cmd += ["-map", "0:v"]
        video_codec = ["-c:v", "copy"]

    if audio_map:
        cmd += ["-map", audio_map, "-c:a", "aac"]
    cmd += [*video_codec, "-t", f"{duration:.3f}", "-movflags", "+faststart", output]
    return cmd


@dataclass
class _RenderState:
    total_steps: int
    completed_steps: int = 0
    output_path: Path | None = None
    duration: float | None = None
    error: str | None = None
    done: bool = False
    cancel_event: threading.Event = field(default_factory=threading.Event)
    thread: threading.Thread | None = None


class FFmpegBackend:
    """Render locally with ffmpeg.

    Args:
        output_dir: Directory receiving finished videos and work files.
        ffmpeg_binary: Name or path of the ffmpeg executable.
        runner: Callable with the ``subprocess.run`` signature.
        threaded: Run renders in a worker thread. When ``False`` the render
            completes inside :meth:`submit`.

    """

    name = "ffmpeg"

    def __init__(
        self,
        output_dir: Path | str = RENDER_OUTPUT_DIR,
        ffmpeg_binary: str = FFMPEG_BINARY,
        runner: Runner | None = None,
        threaded: bool = True,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.ffmpeg_binary = ffmpeg_binary
        self._runner: Runner = runner or subprocess.run
        self._threaded = threaded
        self._renders: dict[str, _RenderState] = {}
        self._finished: OrderedDict[str, BackendProgress] = OrderedDict()
        self._lock = threading.Lock()

    def submit(self, request: RenderRequest) -> RenderHandle:
        """Start rendering ``request``.

        Raises:
            FatalBackendError: If ffmpeg is not available.
        """
        if self._runner is subprocess.run and shutil.which(self.ffmpeg_binary) is None:
            raise FatalBackendError("FFmpeg is not installed or not in PATH.")

        request = _with_local_sources(request)
        timeline = request.visual_timeline()
        if not timeline.segments:
            raise FatalBackendError("Render request produced an empty timeline")

        render_id = uuid.uuid4().hex
        audio_tracks = self._audio_tracks(request, timeline)
        total = len(timeline.segments) + (1 if audio_tracks else 0) + 2
        state = _RenderState(total_steps=total)
        with self._lock:
            self._renders[render_id] = state

        work_dir = self.output_dir / render_id
        output = self.output_dir / f"{render_id}.mp4"
        args = (render_id, request, timeline, audio_tracks, work_dir, output)
        if self._threaded:
            state.thread = threading.Thread(
                target=self._render, args=args, name=f"ffmpeg-{render_id[:8]}", daemon=True
            )
            state.thread.start()
        else:
            self._render(*args)
        logger.info("Started ffmpeg render %s (%d steps)", render_id, total)
        return RenderHandle(
            render_id=render_id, backend=self.name, locator={"output": str(output)}
        )

    def progress(self, handle: RenderHandle) -> BackendProgress:
        """Report the fraction of finished ffmpeg steps for ``handle``.

        Once a render has finished and been reported its working state is
        released; later queries return the remembered final report.
        """
        render_id = handle.render_id
        with self._lock:
            finished = self._finished.get(render_id)
            if finished is not None:
                return finished
            state = self._renders.get(render_id)
            if state is None:
                raise FatalBackendError(f"Unknown ffmpeg render: {render_id}")
            if state.error is not None:
                report = BackendProgress(
                    progress_fraction=state.completed_steps / state.total_steps,
                    fatal_error=state.error,
                )
            elif state.done and state.output_path is not None:
                report = BackendProgress(
                    done=True,
                    progress_fraction=1.0,
                    output_url=state.output_path.resolve().as_uri(),
                    duration=state.duration,
                )
            else:
                return BackendProgress(progress_fraction=state.completed_steps / state.total_steps)
            del self._renders[render_id]
            self._finished[render_id] = report
            while len(self._finished) > _FINISHED_RETAINED:
                self._finished.popitem(last=False)
            return report

    def cancel(self, handle: RenderHandle) -> None:
        """Stop the render after its current ffmpeg step."""
        with self._lock:
            state = self._renders.get(handle.render_id)
        if state is not None:
            state.cancel_event.set()
            logger.info("Cancellation requested for ffmpeg render %s", handle.render_id)

    @staticmethod
    def _audio_tracks(request: RenderRequest, timeline: VisualTimeline) -> list[tuple[str, float]]:
        if request.narration:
            return [(segment.audio_url, segment.offset) for segment in request.narration]
        return [
            (segment.audio_url, segment.start_frame / timeline.fps)
            for segment in timeline.segments
            if segment.audio_url
        ]

    def _run(self, cmd: list[str], work_dir: Path) -> None:
        logger.debug("Running: %s", " ".join(cmd))
        try:
            self._runner(cmd, capture_output=True, check=True, cwd=str(work_dir))
        except subprocess.CalledProcessError as exc:
            stderr = exc.stderr
            if isinstance(stderr, bytes):
                stderr = stderr.decode(errors="ignore")
            raise RuntimeError(f"FFmpeg failed: {stderr}") from exc

    def _step_done(self, state: _RenderState) -> None:
        with self._lock:
            state.completed_steps += 1

    def _render(
        self,
        render_id: str,
        request: RenderRequest,
        timeline: VisualTimeline,
        audio_tracks: list[tuple[str, float]],
        work_dir: Path,
        output: Path,
    ) -> None:
        state = self._renders[render_id]
        binary = self.ffmpeg_binary
        try:
            work_dir.mkdir(parents=True, exist_ok=True)
            clips: list[str] = []
            for position, segment in enumerate(timeline.segments):
                if state.cancel_event.is_set():
                    raise RuntimeError("Render cancelled")
                clip = f"scene_{position:03d}.mp4"
                self._run(
                    build_scene_command(
                        binary, segment, timeline.width, timeline.height, timeline.fps, clip
                    ),
                    work_dir,
                )
                clips.append(clip)
                self._step_done(state)

            narration = None
            if audio_tracks:
                narration = _NARRATION_FILE
                self._run(build_narration_command(binary, audio_tracks, narration), work_dir)
                self._step_done(state)

            (work_dir / _CONCAT_LIST).write_text(
                "".join(f"file '{clip}'\n" for clip in clips), encoding="utf-8"
            )
            concat_cmd = [binary, "-y", "-nostdin", "-f", "concat", "-safe", "0"]
            concat_cmd += ["-i", _CONCAT_LIST, "-c", "copy", _VIDEO_FILE]
            self._run(concat_cmd, work_dir)
            self._step_done(state)

            captions = None
            phrases = request.phrases()
            if phrases:
                captions = _CAPTIONS_FILE
                script = format_phrases(
                    phrases,
                    "ass",
                    style=request.captions.style,
                    width=timeline.width,
                    height=timeline.height,
                    fps=request.fps,
                    entry_frames=request.captions.entry_frames,
                )
                (work_dir / captions).write_text(script, encoding="utf-8")

            if state.cancel_event.is_set():
                raise RuntimeError("Render cancelled")
            music = request.music
            self._run(
                build_final_command(
                    binary,
                    _VIDEO_FILE,
                    narration,
                    music.url if music else None,
                    music.volume if music else 0.0,
                    captions,
                    timeline.duration,
                    str(output.resolve()),
                ),
                work_dir,
            )
            with self._lock:
                state.completed_steps += 1
                state.output_path = output
                state.duration = timeline.duration
                state.done = True
            logger.info("ffmpeg render %s finished: %s", render_id, output)
        except (RuntimeError, OSError) as exc:
            with self._lock:
                state.error = str(exc)
            logger.error("ffmpeg render %s failed: %s", render_id, exc)
