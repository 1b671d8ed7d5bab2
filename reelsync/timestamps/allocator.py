"""Partition a flat word-timing sequence into per-scene time ranges.

Two strategies are provided:

* ``allocate_scenes`` – the count-slicing baseline. Each scene consumes as
  many timings as its text has whitespace-separated words. It assumes the
  synthesis vendor preserved the word count, which real TTS systems do not
  always do; when the counts disagree the result is truncated, never
  raised, and a warning is logged.
* ``allocate_scenes_aligned`` – an explicit alignment step that matches the
  normalised scene tokens against the spoken tokens (``difflib``) and derives
  :class:`SceneBoundary` ranges from the match, so merged, split or
  rewritten words (``"42"`` spoken as ``"forty two"``) shift no scene cut.

Both return :class:`SceneTiming` objects whose word slices partition the
consumed timings in scene order, with no gaps and no duplicates. Scenes
that receive no words are omitted. Neighbouring scenes may still overlap in
time if the upstream timings jitter; consumers must tolerate that.
"""

from __future__ import annotations

import difflib
import logging
import string
from collections.abc import Mapping, Sequence
from typing import Any

from reelsync.timestamps.models import Scene, SceneBoundary, SceneTiming, WordTiming

logger = logging.getLogger(__name__)

__all__ = [
    "align_scene_boundaries",
    "allocate_scenes",
    "allocate_scenes_aligned",
    "join_scene_text",
]

_PUNCTUATION_TABLE = str.maketrans("", "", string.punctuation + "¿¡“”‘’…")


def _coerce_scene(scene: Scene | Mapping[str, Any]) -> Scene:
    if isinstance(scene, Scene):
        return scene
    if isinstance(scene, Mapping):
        return Scene.model_validate(scene)
    raise TypeError(f"scene must be Scene or mapping, got {type(scene).__name__}")


def _normalise(token: str) -> str:
    return token.lower().translate(_PUNCTUATION_TABLE)


def join_scene_text(scenes: Sequence[Scene | Mapping[str, Any]]) -> str:
    """Return the full narration as the space-joined scene texts.

    This is the text that must be sent to speech synthesis for the scene
    allocation to line up with the resulting timings.
    """
    return " ".join(_coerce_scene(scene).text.strip() for scene in scenes).strip()


def _build_timing(scene_index: int, scene: Scene, words: list[WordTiming]) -> SceneTiming:
    return SceneTiming(
        scene_index=scene_index,
        text=scene.text,
        keywords=list(scene.keywords),
        start_time=words[0].start,
        end_time=words[-1].end,
        word_timings=words,
    )


def allocate_scenes(
    scenes: Sequence[Scene | Mapping[str, Any]],
    flat_word_timings: Sequence[WordTiming],
) -> list[SceneTiming]:
    """Slice ``flat_word_timings`` into scenes by word count.

    Args:
        scenes: Ordered scenes whose texts were joined for synthesis.
        flat_word_timings: Timings for the whole narration.

    Returns:
        One :class:`SceneTiming` per scene that received at least one word,
        in scene order. ``scene_index`` keeps the position in ``scenes``.

    Examples:
        >>> words = [WordTiming(word=w, start=i, end=i + 1) for i, w in enumerate("a b c".split())]
        >>> [t.end_time for t in allocate_scenes([Scene(text="a b"), Scene(text="c")], words)]
        [2.0, 3.0]
    """
    resolved = [_coerce_scene(scene) for scene in scenes]
    expected = sum(len(scene.text.split()) for scene in resolved)
    if expected != len(flat_word_timings):
        logger.warning(
            "Scene text has %d words but narration has %d timings; "
            "scene allocation will be truncated or leave words unassigned",
            expected,
            len(flat_word_timings),
        )

    timings: list[SceneTiming] = []
    cursor = 0
    for index, scene in enumerate(resolved):
        count = len(scene.text.split())
        words = list(flat_word_timings[cursor : cursor + count])
        cursor += len(words)
        if not words:
            if count:
                logger.warning("Scene %d received no word timings and is skipped", index)
            continue
        timings.append(_build_timing(index, scene, words))

    return timings


def align_scene_boundaries(
    scenes: Sequence[Scene | Mapping[str, Any]],
    flat_word_timings: Sequence[WordTiming],
) -> list[SceneBoundary]:
    """Map every scene onto a contiguous range of word-timing indices.

    Scene tokens and spoken tokens are compared after lower-casing and
    removing punctuation. Matched and substituted runs carry the scene of
    the corresponding script token (substitutions are spread
    proportionally); spoken words absent from the script stick to the
    preceding scene. Scene assignment is then forced to be non-decreasing
    so the ranges partition ``flat_word_timings`` exactly.

    Args:
        scenes: Ordered scenes.
        flat_word_timings: Timings for the whole narration.

    Returns:
        One boundary per scene, possibly empty, covering all timings.
    """
    resolved = [_coerce_scene(scene) for scene in scenes]
    script_tokens: list[str] = []
    owner: list[int] = []
    for index, scene in enumerate(resolved):
        for token in scene.text.split():
            script_tokens.append(_normalise(token))
            owner.append(index)

    spoken_tokens = [_normalise(word.word) for word in flat_word_timings]
    assigned: list[int] = [0] * len(spoken_tokens)

    if owner:
        matcher = difflib.SequenceMatcher(None, script_tokens, spoken_tokens, autojunk=False)
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "delete":
                continue
            for j in range(j1, j2):
                if tag == "equal":
                    assigned[j] = owner[i1 + (j - j1)]
                elif tag == "replace":
                    offset = (j - j1) * (i2 - i1) // (j2 - j1)
                    assigned[j] = owner[i1 + offset]
                else:  # insert
                    assigned[j] = owner[i1 - 1] if i1 > 0 else owner[0]

    running = 0
    counts = [0] * len(resolved)
    for j, scene_index in enumerate(assigned):
        running = max(running, scene_index)
        assigned[j] = running
        if resolved:
            counts[running] += 1

    boundaries: list[SceneBoundary] = []
    cursor = 0
    for index, count in enumerate(counts):
        boundaries.append(
            SceneBoundary(scene_index=index, start_index=cursor, end_index=cursor + count)
        )
        cursor += count
    return boundaries


def allocate_scenes_aligned(
    scenes: Sequence[Scene | Mapping[str, Any]],
    flat_word_timings: Sequence[WordTiming],
) -> list[SceneTiming]:
    """Allocate scenes using :func:`align_scene_boundaries`.

    Args:
        scenes: Ordered scenes.
        flat_word_timings: Timings for the whole narration.

    Returns:
        Scene timings for every scene with a non-empty boundary.
    """
    resolved = [_coerce_scene(scene) for scene in scenes]
    timings: list[SceneTiming] = []
    for boundary in align_scene_boundaries(resolved, flat_word_timings):
        if boundary.is_empty:
            logger.warning("Scene %d matched no spoken words and is skipped", boundary.scene_index)
            continue
        words = list(flat_word_timings[boundary.start_index : boundary.end_index])
        timings.append(_build_timing(boundary.scene_index, resolved[boundary.scene_index], words))
    return timings
