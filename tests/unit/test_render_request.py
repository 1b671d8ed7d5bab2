"""Unit tests for the render request model and its derived views."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from reelsync.render.request import CaptionSettings, MusicSettings, RenderRequest
from reelsync.utils.constant import CAPTION_ENTRY_FRAMES


def test_request_accepts_wire_aliases() -> None:
    """camelCase client payloads validate into snake_case fields."""
    request = RenderRequest.model_validate(
        {
            "scenes": [{"text": "Hello world", "type": "asset", "assetUrl": "https://x/a.jpg"}],
            "wordTimings": [
                {"word": "Hello", "start": 0.0, "end": 0.4},
                {"word": "world", "start": 0.4, "end": 0.9},
            ],
            "aspectRatio": "16:9",
            "captions": {"style": "minimal", "wordsPerPhrase": 2},
        }
    )

    assert request.scenes[0].asset_url == "https://x/a.jpg"
    assert len(request.word_timings) == 2
    assert request.aspect_ratio == "16:9"
    assert request.captions.words_per_phrase == 2
    assert request.video_config().dimensions == (1920, 1080)


def test_request_rejects_unknown_aspect_ratio(three_scenes) -> None:
    """Only the supported aspect ratios validate."""
    with pytest.raises(ValidationError, match="Unsupported aspect ratio"):
        RenderRequest(scenes=three_scenes, aspect_ratio="4:3")


def test_request_requires_scenes() -> None:
    """A request without scenes is invalid."""
    with pytest.raises(ValidationError):
        RenderRequest(scenes=[])


def test_request_key_is_content_based(render_request: RenderRequest) -> None:
    """Equal content hashes equally and any change alters the key."""
    copy = RenderRequest.model_validate(render_request.model_dump(by_alias=True))
    changed = render_request.model_copy(update={"fps": 25})

    assert copy.request_key() == render_request.request_key()
    assert changed.request_key() != render_request.request_key()
    assert len(render_request.request_key()) == 64


def test_narration_duration(render_request: RenderRequest, three_scenes) -> None:
    """The narration length comes from the last segment."""
    assert render_request.narration_duration == pytest.approx(3.6)
    assert RenderRequest(scenes=three_scenes).narration_duration is None


def test_phrases_follow_caption_settings(render_request: RenderRequest) -> None:
    """Phrases are grouped by the configured size and empty when disabled."""
    phrases = render_request.phrases()
    disabled = render_request.model_copy(update={"captions": CaptionSettings(enabled=False)})

    assert [len(phrase.words) for phrase in phrases] == [4, 4, 4]
    assert phrases[0].text == "Every morning starts with"
    assert disabled.phrases() == []


def test_scene_timings_and_visual_timeline(render_request: RenderRequest) -> None:
    """Both allocation strategies agree on a verbatim script."""
    aligned = render_request.model_copy(update={"alignment": "aligned"})

    counted = render_request.scene_timings()

    assert [(t.start_time, t.end_time) for t in counted] == [(0.0, 1.5), (1.5, 2.4), (2.4, 3.6)]
    assert [t.word_timings for t in aligned.scene_timings()] == [t.word_timings for t in counted]
    timeline = render_request.visual_timeline()
    assert [(s.start_frame, s.end_frame) for s in timeline.segments] == [
        (0, 45),
        (45, 72),
        (72, 108),
    ]


def test_video_config_uses_music_volume(render_request: RenderRequest) -> None:
    """The music gain flows into the output configuration."""
    with_music = render_request.model_copy(
        update={"music": MusicSettings(url="https://cdn.example.com/m.mp3", volume=0.3)}
    )

    assert with_music.video_config().music_volume == 0.3
    assert render_request.video_config().fps == 30


def test_caption_entry_frames_setting() -> None:
    """Entry length defaults to the configured frames and rejects negatives."""
    assert CaptionSettings().entry_frames == CAPTION_ENTRY_FRAMES
    assert CaptionSettings.model_validate({"entryFrames": 0}).entry_frames == 0
    with pytest.raises(ValidationError):
        CaptionSettings.model_validate({"entryFrames": -1})
