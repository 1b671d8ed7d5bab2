"""Deterministic Ken Burns pan/zoom effects for still-image scenes.

Each effect interpolates a uniform ``scale`` and a horizontal
``translate_x`` (percent of frame width) linearly over the scene's frames.
Values are clamped at the ends, so frames past the scene duration keep the
final transform instead of overshooting. Scenes cycle through the effects by
index so consecutive stills visibly differ.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np

__all__ = [
    "EFFECT_ORDER",
    "KenBurnsEffect",
    "Transform",
    "effect_for_scene",
    "kenburns_keyframes",
    "kenburns_transform",
    "sample_kenburns",
]


class KenBurnsEffect(str, enum.Enum):  # noqa: UP042
    """Supported motion variants."""

    ZOOM_IN = "zoom-in"
    ZOOM_OUT = "zoom-out"
    PAN_LEFT = "pan-left"
    PAN_RIGHT = "pan-right"
    ZOOM_PAN = "zoom-pan"


@dataclass(frozen=True)
class Transform:
    """Image transform for a single frame.

    Attributes:
        scale: Uniform scale relative to the cover-fitted image.
        translate_x: Horizontal offset in percent of frame width.

    """

    scale: float
    translate_x: float


# (scale_start, scale_end, translate_start, translate_end) per effect.
_KEYFRAMES: dict[KenBurnsEffect, tuple[float, float, float, float]] = {
    KenBurnsEffect.ZOOM_IN: (1.0, 1.15, 0.0, 0.0),
    KenBurnsEffect.ZOOM_OUT: (1.15, 1.0, 0.0, 0.0),
    KenBurnsEffect.PAN_LEFT: (1.15, 1.15, 5.0, -5.0),
    KenBurnsEffect.PAN_RIGHT: (1.15, 1.15, -5.0, 5.0),
    KenBurnsEffect.ZOOM_PAN: (1.0, 1.15, -3.0, 3.0),
}

EFFECT_ORDER: tuple[KenBurnsEffect, ...] = (
    KenBurnsEffect.ZOOM_IN,
    KenBurnsEffect.PAN_RIGHT,
    KenBurnsEffect.ZOOM_OUT,
    KenBurnsEffect.PAN_LEFT,
    KenBurnsEffect.ZOOM_PAN,
)


def effect_for_scene(scene_index: int) -> KenBurnsEffect:
    """Return the effect for a scene, cycling through ``EFFECT_ORDER``."""
    return EFFECT_ORDER[scene_index % len(EFFECT_ORDER)]


def kenburns_keyframes(effect: KenBurnsEffect | str) -> tuple[float, float, float, float]:
    """Return ``(scale_start, scale_end, translate_start, translate_end)`` for ``effect``."""
    return _KEYFRAMES[KenBurnsEffect(effect)]


def _progress(frame: float, duration_frames: int) -> float:
    if duration_frames <= 0:
        return 1.0
    return min(1.0, max(0.0, frame / duration_frames))


def kenburns_transform(
    effect: KenBurnsEffect | str, frame: float, duration_frames: int
) -> Transform:
    """Compute the transform of ``effect`` at ``frame``.

    Args:
        effect: Effect or its name.
        frame: Frame index relative to the scene start.
        duration_frames: Scene length in frames.

    Returns:
        The interpolated transform, clamped to the keyframe range.

    Examples:
        >>> round(kenburns_transform("zoom-in", 15, 30).scale, 3)
        1.075
    """
    scale_a, scale_b, x_a, x_b = _KEYFRAMES[KenBurnsEffect(effect)]
    progress = _progress(frame, duration_frames)
    return Transform(
        scale=scale_a + (scale_b - scale_a) * progress,
        translate_x=x_a + (x_b - x_a) * progress,
    )


def sample_kenburns(effect: KenBurnsEffect | str, duration_frames: int) -> np.ndarray:
    """Sample ``effect`` for every frame of a scene.

    Args:
        effect: Effect or its name.
        duration_frames: Scene length in frames.

    Returns:
        Array of shape ``(duration_frames, 2)`` holding ``(scale, translate_x)``
        for frames ``0 .. duration_frames - 1``.
    """
    scale_a, scale_b, x_a, x_b = _KEYFRAMES[KenBurnsEffect(effect)]
    frames = np.arange(max(duration_frames, 0), dtype=np.float64)
    span = max(duration_frames, 1)
    scale = np.interp(frames, [0.0, span], [scale_a, scale_b])
    shift = np.interp(frames, [0.0, span], [x_a, x_b])
    return np.column_stack((scale, shift))
