"""End-to-end preparation of a render request from scenes.

This is the push-based counterpart of the cooperative scene stepper: the
whole narration is synthesized in one go, its word timings resolved, and
the result packaged as a :class:`RenderRequest` ready for submission.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Literal

from reelsync.render.request import CaptionSettings, MusicSettings, RenderRequest
from reelsync.speech import SpeechSynthesizer, Transcriber, synthesize_narration
from reelsync.text.language import detect_language, voice_profile_for
from reelsync.timestamps.allocator import join_scene_text
from reelsync.timestamps.models import Scene
from reelsync.timestamps.resolve import resolve_narration_timings
from reelsync.utils.constant import DEFAULT_ASPECT_RATIO, DEFAULT_FPS, TTS_MAX_CHARS

logger = logging.getLogger(__name__)

__all__ = ["prepare_render_request"]


def prepare_render_request(
    scenes: Sequence[Scene | Mapping[str, Any]],
    synthesizer: SpeechSynthesizer,
    voice: str,
    transcriber: Transcriber | None = None,
    captions: CaptionSettings | None = None,
    music: MusicSettings | None = None,
    aspect_ratio: str = DEFAULT_ASPECT_RATIO,
    fps: int = DEFAULT_FPS,
    alignment: Literal["count", "aligned"] = "count",
    max_chars: int = TTS_MAX_CHARS,
) -> RenderRequest:
    """Synthesize narration for ``scenes`` and build the render request.

    Args:
        scenes: Ordered scenes with resolved visuals.
        synthesizer: Speech synthesis collaborator.
        voice: Voice reference for the synthesizer.
        transcriber: Optional exact word-timing collaborator; the estimator
            is used when it is absent or fails.
        captions: Caption settings; defaults to enabled with the default style.
        music: Optional background music.
        aspect_ratio: Output aspect ratio.
        fps: Output frame rate.
        alignment: Scene allocation strategy.
        max_chars: Speech vendor character limit.

    Returns:
        The render request.

    Raises:
        ValueError: If the scenes contain no narration text.
    """
    resolved = [
        scene if isinstance(scene, Scene) else Scene.model_validate(scene) for scene in scenes
    ]
    script = join_scene_text(resolved)
    if not script:
        raise ValueError("Scenes contain no narration text")

    language = detect_language(script)
    profile = voice_profile_for(language)
    logger.info("Narration language: %s (locale %s)", language, profile.locale)

    narration = synthesize_narration(
        script, synthesizer, voice, profile=profile, max_chars=max_chars
    )
    narration, words = resolve_narration_timings(narration, transcriber)
    logger.info(
        "Prepared %d scenes, %d words, %.2fs of narration",
        len(resolved),
        len(words),
        narration.duration,
    )
    return RenderRequest(
        scenes=resolved,
        word_timings=words,
        narration=narration.segments,
        captions=captions or CaptionSettings(),
        music=music,
        aspect_ratio=aspect_ratio,
        fps=fps,
        alignment=alignment,
    )
