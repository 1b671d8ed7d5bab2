"""Caption style presets.

Presets differ only in presentation (font, colours, outline, shadow and the
entry animation used for burned-in subtitles). Lookups go through
:func:`get_caption_style`, which never fails: unknown names resolve to the
default preset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from reelsync.utils.constant import DEFAULT_CAPTION_STYLE

logger = logging.getLogger(__name__)

Animation = Literal["pop", "fade", "bounce", "glow", "slide", "none"]

FALLBACK_STYLE = "bold-classic"


@dataclass(frozen=True)
class CaptionStyle:
    """Presentation settings for one caption preset.

    Colours are ``#RRGGBB`` strings; alpha values use the ASS convention
    where ``0x00`` is opaque and ``0xFF`` fully transparent.

    Attributes:
        name: Preset identifier.
        label: Human-readable name.
        font: Font family.
        font_size: Font size at the 1080-pixel reference width.
        text_color: Fill colour of caption text.
        highlight_color: Fill colour of the word being spoken.
        outline_color: Outline colour.
        outline_alpha: Outline transparency.
        outline_width: Outline thickness in pixels.
        shadow_color: Shadow colour.
        shadow_alpha: Shadow transparency.
        shadow_depth: Shadow offset in pixels.
        bold: Render bold text.
        all_caps: Upper-case caption text.
        animation: Entry animation for burned-in subtitles.

    Examples:
        >>> get_caption_style("does-not-exist").name
        'bold-classic'
    """

    name: str
    label: str
    font: str
    font_size: int
    text_color: str
    highlight_color: str
    outline_color: str
    outline_width: int
    shadow_color: str
    shadow_depth: int
    bold: bool
    animation: Animation
    outline_alpha: int = 0x00
    shadow_alpha: int = 0x80
    all_caps: bool = False


CAPTION_STYLES: dict[str, CaptionStyle] = {
    "bold-classic": CaptionStyle(
        name="bold-classic",
        label="Bold Classic",
        font="Impact",
        font_size=72,
        text_color="#FFFFFF",
        highlight_color="#FFD700",
        outline_color="#000000",
        outline_width=4,
        shadow_color="#000000",
        shadow_depth=2,
        bold=True,
        animation="pop",
    ),
    "modern-pop": CaptionStyle(
        name="modern-pop",
        label="Modern Pop",
        font="Inter",
        font_size=64,
        text_color="#FFFFFF",
        highlight_color="#FFFF00",
        outline_color="#000000",
        outline_width=4,
        shadow_color="#000000",
        shadow_depth=2,
        bold=True,
        animation="bounce",
    ),
    "minimal": CaptionStyle(
        name="minimal",
        label="Minimal",
        font="Inter",
        font_size=56,
        text_color="#FFFFFF",
        highlight_color="#FFFFFF",
        outline_color="#000000",
        outline_alpha=0x40,
        outline_width=1,
        shadow_color="#000000",
        shadow_alpha=0x60,
        shadow_depth=3,
        bold=False,
        animation="fade",
    ),
    "vibrant": CaptionStyle(
        name="vibrant",
        label="Vibrant",
        font="Arial Black",
        font_size=60,
        text_color="#FFD700",
        highlight_color="#FFFFFF",
        outline_color="#FF4500",
        outline_width=3,
        shadow_color="#000000",
        shadow_depth=3,
        bold=True,
        animation="pop",
        all_caps=True,
    ),
    "neon-glow": CaptionStyle(
        name="neon-glow",
        label="Neon Glow",
        font="Arial Black",
        font_size=68,
        text_color="#00FFFF",
        highlight_color="#FFFFFF",
        outline_color="#0088FF",
        outline_width=2,
        shadow_color="#00FFFF",
        shadow_depth=8,
        bold=True,
        animation="glow",
    ),
    "handwritten": CaptionStyle(
        name="handwritten",
        label="Handwritten",
        font="Birds of Paradise",
        font_size=80,
        text_color="#FFFFFF",
        highlight_color="#FFD700",
        outline_color="#000000",
        outline_width=3,
        shadow_color="#000000",
        shadow_depth=2,
        bold=False,
        animation="bounce",
    ),
    "retro-vhs": CaptionStyle(
        name="retro-vhs",
        label="Retro VHS",
        font="VCR OSD Mono",
        font_size=60,
        text_color="#FFFF00",
        highlight_color="#FFFFFF",
        outline_color="#FF6600",
        outline_width=2,
        shadow_color="#880000",
        shadow_depth=3,
        bold=False,
        animation="none",
    ),
    "gradient-pop": CaptionStyle(
        name="gradient-pop",
        label="Gradient Pop",
        font="Poppins",
        font_size=64,
        text_color="#FF88FF",
        highlight_color="#FFFFFF",
        outline_color="#000000",
        outline_width=3,
        shadow_color="#000000",
        shadow_depth=2,
        bold=True,
        animation="pop",
    ),
}


def get_caption_style(name: str | None = None) -> CaptionStyle:
    """Return the preset called ``name``.

    Args:
        name: Preset identifier, case-insensitive. ``None`` selects the
            configured default.

    Returns:
        The matching preset, or the fallback preset for unknown names.
    """
    key = (name or DEFAULT_CAPTION_STYLE).strip().lower()
    style = CAPTION_STYLES.get(key)
    if style is None:
        logger.debug("Unknown caption style %r, using %s", name, FALLBACK_STYLE)
        style = CAPTION_STYLES.get(DEFAULT_CAPTION_STYLE, CAPTION_STYLES[FALLBACK_STYLE])
    return style
