"""Frame-accurate layout of the visual track.

Visual cuts follow the allotted scene durations, not individual word
timings: scene ``i`` covers narration time from its own start (``0`` for
the first scene, so the lead-in is covered) to the next scene's start, and
the last scene runs to the end of the narration. Boundaries are made
non-decreasing and rounded to frames once, cumulatively, so scenes are laid
back to back with no gaps or overlaps even when the word timings jitter,
and the frame counts sum to the composition length.

Face scenes play their lip-synced clip under :data:`FACE_CLIP_POLICY`: a
clip shorter than its slot is looped, a longer one is trimmed.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from reelsync.composition.kenburns import KenBurnsEffect, effect_for_scene
from reelsync.config import VideoConfig
from reelsync.timestamps.models import Scene, SceneTiming

logger = logging.getLogger(__name__)

__all__ = [
    "FACE_CLIP_POLICY",
    "FaceClipPolicy",
    "SceneSegment",
    "VisualTimeline",
    "build_visual_timeline",
    "frames_to_seconds",
    "seconds_to_frames",
]


class FaceClipPolicy(str, enum.Enum):  # noqa: UP042
    """How a face clip fills a slot longer than the clip."""

    LOOP = "loop"
    HOLD_LAST_FRAME = "hold"


FACE_CLIP_POLICY = FaceClipPolicy.LOOP


def seconds_to_frames(seconds: float, fps: int) -> int:
    """Convert seconds to the nearest whole frame (half frames round up)."""
    return int(seconds * fps + 0.5)


def frames_to_seconds(frames: int, fps: int) -> float:
    """Convert a frame count to seconds."""
    return frames / fps


@dataclass(frozen=True)
class SceneSegment:
    """One scene placed on the visual track.

    Attributes:
        scene_index: Position of the scene in the input scene list.
        scene_type: ``"face"`` or ``"asset"``.
        media_url: Face clip or still image location.
        start_frame: First frame of the scene (inclusive).
        end_frame: Frame after the last frame of the scene (exclusive).
        effect: Ken Burns effect for asset scenes.
        clip_policy: Fill policy for face scenes.
        audio_url: Scene-specific narration audio, when synthesized per scene.
        text: Narration text of the scene.

    """

    scene_index: int
    scene_type: str
    media_url: str | None
    start_frame: int
    end_frame: int
    effect: KenBurnsEffect | None = None
    clip_policy: FaceClipPolicy | None = None
    audio_url: str | None = None
    text: str = ""

    @property
    def duration_frames(self) -> int:
        """Return the number of frames the scene occupies."""
        return self.end_frame - self.start_frame


@dataclass
class VisualTimeline:
    """The ordered, gap-free visual track of a composition."""

    fps: int
    width: int
    height: int
    segments: list[SceneSegment] = field(default_factory=list)

    @property
    def total_frames(self) -> int:
        """Return the composition length in frames."""
        return sum(segment.duration_frames for segment in self.segments)

    @property
    def duration(self) -> float:
        """Return the composition length in seconds."""
        return frames_to_seconds(self.total_frames, self.fps)

    def segment_at(self, frame: int) -> SceneSegment | None:
        """Return the segment displayed at ``frame``, if any."""
        for segment in self.segments:
            if segment.start_frame <= frame < segment.end_frame:
                return segment
        return None


def _scene_lookup(scenes: Sequence[Scene | Mapping]) -> list[Scene]:
    return [scene if isinstance(scene, Scene) else Scene.model_validate(scene) for scene in scenes]


def build_visual_timeline(
    scene_timings: Sequence[SceneTiming],
    scenes: Sequence[Scene | Mapping],
    video: VideoConfig | None = None,
    narration_duration: float | None = None,
) -> VisualTimeline:
    """Lay the allocated scenes back to back on the frame grid.

    Args:
        scene_timings: Allocator output, used verbatim and in order.
        scenes: The input scenes, indexed by ``SceneTiming.scene_index``.
        video: Frame rate and dimensions; defaults to ``VideoConfig()``.
        narration_duration: Audio length; the last scene is extended to it
            when longer than the last word end.

    Returns:
        The visual timeline. Every scene gets at least one frame.
    """
    video = video or VideoConfig()
    width, height = video.dimensions
    timeline = VisualTimeline(fps=video.fps, width=width, height=height)
    if not scene_timings:
        return timeline

    resolved = _scene_lookup(scenes)

    # Narration-time boundaries, forced non-decreasing.
    bounds = [0.0]
    for timing in scene_timings[1:]:
        bounds.append(max(bounds[-1], timing.start_time))
    tail = scene_timings[-1].end_time
    if narration_duration is not None:
        tail = max(tail, narration_duration)
    bounds.append(max(bounds[-1], tail))

    frames = [seconds_to_frames(value, video.fps) for value in bounds]
    for index in range(1, len(frames)):
        if frames[index] <= frames[index - 1]:
            frames[index] = frames[index - 1] + 1

    for position, timing in enumerate(scene_timings):
        scene = resolved[timing.scene_index]
        is_face = scene.type == "face"
        if is_face and not scene.asset_url:
            logger.warning("Face scene %d has no clip URL", timing.scene_index)
        timeline.segments.append(
            SceneSegment(
                scene_index=timing.scene_index,
                scene_type=scene.type,
                media_url=scene.asset_url,
                start_frame=frames[position],
                end_frame=frames[position + 1],
                effect=None if is_face else effect_for_scene(timing.scene_index),
                clip_policy=FACE_CLIP_POLICY if is_face else None,
                audio_url=scene.audio_url,
                text=timing.text,
            )
        )

    logger.debug(
        "Visual timeline: %d scenes, %d frames at %d fps",
        len(timeline.segments),
        timeline.total_frames,
        video.fps,
    )
    return timeline
