"""Caption phrase grouping, per-frame animation state and style presets."""

from reelsync.captions.grouping import (
    CaptionFrame,
    active_phrase,
    caption_frame_at,
    group_phrases,
    phrase_animation,
)
from reelsync.captions.styles import CAPTION_STYLES, CaptionStyle, get_caption_style

__all__ = [
    "CAPTION_STYLES",
    "CaptionFrame",
    "CaptionStyle",
    "active_phrase",
    "caption_frame_at",
    "get_caption_style",
    "group_phrases",
    "phrase_animation",
]
