"""Common data models for word timings, scenes and caption phrases.

This module defines pydantic models shared by the estimator, the scene
allocator, caption grouping, the compositor and the render request. Field
names are snake_case in Python; the camelCase aliases keep the JSON wire
shape used by clients and render backends.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "WordTiming",
    "Scene",
    "SceneTiming",
    "SceneBoundary",
    "Phrase",
    "ResolvedTimings",
]

SceneType = Literal["face", "asset"]


class WordTiming(BaseModel):
    """A single spoken word with timing information."""

    model_config = ConfigDict(frozen=True)

    word: str = Field(..., description="The spoken word.")
    start: float = Field(..., ge=0.0, description="Start time of the word in seconds.")
    end: float = Field(..., ge=0.0, description="End time of the word in seconds.")

    @property
    def duration(self) -> float:
        """Return the word span in seconds."""
        return self.end - self.start


class Scene(BaseModel):
    """A contiguous slice of the script and the visual that covers it."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., description="Narration text spoken during the scene.")
    type: SceneType = Field("asset", description="Face/avatar clip or still image.")
    asset_url: str | None = Field(
        None,
        alias="assetUrl",
        description="Lip-synced clip URL for face scenes, image URL for asset scenes.",
    )
    keywords: list[str] = Field(default_factory=list, description="Visual search keywords.")
    audio_url: str | None = Field(
        None,
        alias="audioUrl",
        description="Per-scene narration audio when synthesized scene by scene.",
    )


class SceneTiming(BaseModel):
    """A scene's slice of the flat word-timing sequence."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    scene_index: int = Field(..., alias="sceneIndex", ge=0)
    text: str
    keywords: list[str] = Field(default_factory=list)
    start_time: float = Field(..., alias="startTime", description="First word start (s).")
    end_time: float = Field(..., alias="endTime", description="Last word end (s).")
    word_timings: list[WordTiming] = Field(..., alias="wordTimings")

    @property
    def duration(self) -> float:
        """Return the spoken span of the scene in seconds."""
        return self.end_time - self.start_time


class SceneBoundary(BaseModel):
    """Explicit mapping of a scene onto a half-open range of word indices."""

    model_config = ConfigDict(frozen=True)

    scene_index: int = Field(..., ge=0)
    start_index: int = Field(..., ge=0, description="First word index (inclusive).")
    end_index: int = Field(..., ge=0, description="Last word index (exclusive).")

    @property
    def is_empty(self) -> bool:
        """Return True when no word was assigned to the scene."""
        return self.end_index <= self.start_index


class Phrase(BaseModel):
    """A caption phrase displayed as one on-screen unit."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Words of the phrase joined by spaces.")
    start: float = Field(..., description="First word start (s).")
    end: float = Field(..., description="Last word end (s).")
    words: list[WordTiming] = Field(..., description="Ordered words of the phrase.")


class ResolvedTimings(BaseModel):
    """Word timings for a narration together with where they came from."""

    words: list[WordTiming]
    duration: float = Field(..., ge=0.0, description="Narration duration in seconds.")
    source: Literal["transcription", "estimate"]
