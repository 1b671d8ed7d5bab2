"""The structured timeline handed to a render backend.

A :class:`RenderRequest` carries everything a backend needs: the ordered
scenes with their resolved visuals, the narration audio track, the flat word
timings, caption and music settings, and output geometry. All derived views
(scene timings, visual timeline, caption phrases) are computed on demand
from those inputs and never mutate them.
"""

from __future__ import annotations

import hashlib
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from reelsync.captions.grouping import group_phrases
from reelsync.composition.timeline import VisualTimeline, build_visual_timeline
from reelsync.config import ASPECT_RATIO_DIMENSIONS, VideoConfig
from reelsync.speech import NarrationSegment
from reelsync.timestamps.allocator import allocate_scenes, allocate_scenes_aligned
from reelsync.timestamps.models import Phrase, Scene, SceneTiming, WordTiming
from reelsync.utils.constant import (
    BACKGROUND_MUSIC_VOLUME,
    CAPTION_ENTRY_FRAMES,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_CAPTION_STYLE,
    DEFAULT_FPS,
    DEFAULT_WORDS_PER_PHRASE,
)

__all__ = ["CaptionSettings", "MusicSettings", "RenderRequest"]


class CaptionSettings(BaseModel):
    """Caption configuration carried by a render request."""

    enabled: bool = True
    style: str = DEFAULT_CAPTION_STYLE
    words_per_phrase: int = Field(DEFAULT_WORDS_PER_PHRASE, ge=1, alias="wordsPerPhrase")
    entry_frames: int = Field(CAPTION_ENTRY_FRAMES, ge=0, alias="entryFrames")

    model_config = {"populate_by_name": True}


class MusicSettings(BaseModel):
    """Background music mixed under the narration."""

    url: str
    volume: float = Field(BACKGROUND_MUSIC_VOLUME, ge=0.0, le=1.0)


class RenderRequest(BaseModel):
    """Full render input for one composition.

    Attributes:
        scenes: Ordered scenes with resolved visuals.
        word_timings: Flat word timings across the whole narration.
        narration: Narration audio as ordered segments. Empty when every
            scene carries its own ``audio_url``.
        captions: Caption settings.
        music: Optional background music.
        aspect_ratio: Output aspect ratio key.
        fps: Output frame rate.
        alignment: ``"count"`` slices timings by scene word count,
            ``"aligned"`` matches scene text against the spoken words.

    """

    scenes: list[Scene] = Field(..., min_length=1)
    word_timings: list[WordTiming] = Field(default_factory=list, alias="wordTimings")
    narration: list[NarrationSegment] = Field(default_factory=list)
    captions: CaptionSettings = Field(default_factory=CaptionSettings)
    music: MusicSettings | None = None
    aspect_ratio: str = Field(DEFAULT_ASPECT_RATIO, alias="aspectRatio")
    fps: int = Field(DEFAULT_FPS, gt=0, le=120)
    alignment: Literal["count", "aligned"] = "count"

    model_config = {"populate_by_name": True}

    @field_validator("aspect_ratio")
    @classmethod
    def _check_aspect_ratio(cls, value: str) -> str:
        if value not in ASPECT_RATIO_DIMENSIONS:
            supported = sorted(ASPECT_RATIO_DIMENSIONS)
            raise ValueError(f"Unsupported aspect ratio '{value}'. Supported: {supported}")
        return value

    def request_key(self) -> str:
        """Return a stable SHA-256 digest of the request's canonical JSON.

        Two requests with the same content produce the same key, which is
        what makes job creation idempotent.
        """
        canonical = self.model_dump_json(by_alias=True)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def video_config(self) -> VideoConfig:
        """Return the output geometry as a :class:`VideoConfig`."""
        volume = self.music.volume if self.music else BACKGROUND_MUSIC_VOLUME
        return VideoConfig(aspect_ratio=self.aspect_ratio, fps=self.fps, music_volume=volume)

    @property
    def narration_duration(self) -> float | None:
        """Return the narration length in seconds, if a track is present."""
        if not self.narration:
            return None
        last = self.narration[-1]
        return last.offset + last.duration

    def scene_timings(self) -> list[SceneTiming]:
        """Allocate the word timings to scenes with the configured strategy."""
        if self.alignment == "aligned":
            return allocate_scenes_aligned(self.scenes, self.word_timings)
        return allocate_scenes(self.scenes, self.word_timings)

    def visual_timeline(self, scene_timings: list[SceneTiming] | None = None) -> VisualTimeline:
        """Lay the allocated scenes on the frame grid."""
        if scene_timings is None:
            scene_timings = self.scene_timings()
        return build_visual_timeline(
            scene_timings,
            self.scenes,
            video=self.video_config(),
            narration_duration=self.narration_duration,
        )

    def phrases(self) -> list[Phrase]:
        """Group the word timings into caption phrases (empty when disabled)."""
        if not self.captions.enabled:
            return []
        return group_phrases(self.word_timings, self.captions.words_per_phrase)
