"""Formatter for Advanced SubStation Alpha (.ass) burned-in captions.

The script's ``PlayResX``/``PlayResY`` match the output video so positions
and font sizes are in video pixels. Each phrase becomes one ``Dialogue``
line prefixed with override tags implementing the style's entry animation:
the shared pop-in (scale and opacity easing in over the entry frames) plus
any accent the preset adds.
"""

from __future__ import annotations

from collections.abc import Sequence

from reelsync.captions.grouping import ENTRY_OPACITY, ENTRY_SCALE
from reelsync.captions.styles import CaptionStyle, get_caption_style
from reelsync.timestamps.models import Phrase
from reelsync.utils.constant import CAPTION_ENTRY_FRAMES, CAPTION_TAIL_SEC, DEFAULT_FPS

# Bottom margin of the caption block, in video pixels.
MARGIN_V = 200
# Font sizes in presets are given for a 1080-pixel short side.
REFERENCE_SHORT_SIDE = 1080

_STYLE_FORMAT = (
    "Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, "
    "BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, "
    "BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding"
)
_EVENT_FORMAT = "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text"


def _format_timestamp(seconds: float) -> str:
    """Format non-negative seconds as an ASS timestamp ``H:MM:SS.CC``."""
    assert seconds >= 0, "non-negative timestamp required"
    total_cs = int(seconds * 100 + 1e-6)
    h, rem = divmod(total_cs, 360_000)
    m, rem = divmod(rem, 6_000)
    s, cs = divmod(rem, 100)
    return f"{h:d}:{m:02d}:{s:02d}.{cs:02d}"


def to_ass_color(hex_color: str, alpha: int = 0x00) -> str:
    """Convert ``#RRGGBB`` to the ASS ``&HAABBGGRR`` notation.

    Raises:
        ValueError: If ``hex_color`` is not a six-digit hex colour.
    """
    value = hex_color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #RRGGBB colour, got {hex_color!r}")
    red, green, blue = value[0:2], value[2:4], value[4:6]
    return f"&H{alpha:02X}{blue}{green}{red}".upper()


def _clean_text(text: str) -> str:
    """Remove characters that would open override blocks or escapes."""
    return text.replace("{", "").replace("}", "").replace("\\", "")


# Extra tags layered on the shared entry, by preset animation. ``{ms}`` is the
# entry length in milliseconds; ``{x}``/``{y}`` anchor the caption block.
# The flag says whether the phrase also scales in or only fades in.
_ANIMATION_TABLE: dict[str, tuple[bool, str]] = {
    "pop": (True, ""),
    "bounce": (True, r"\t({ms},{ms2},\fscx108\fscy108)\t({ms2},{ms3},\fscx100\fscy100)"),
    "glow": (True, r"\blur2\t(0,{ms3},\blur0)"),
    "slide": (True, r"\move({x_from},{y},{x},{y},0,{ms})"),
    "fade": (False, ""),
}
# ``\t`` acceleration of 2 is the quadratic ease-in used by ``phrase_animation``.
_EASE_IN_ACCEL = 2


def _alpha(opacity: float, base: int) -> str:
    """Return the ASS alpha for ``opacity`` layered over a style's ``base`` alpha."""
    value = round(base + (0xFF - base) * (1.0 - opacity))
    return f"&H{value:02X}&"


def _alpha_tags(style: CaptionStyle, opacity: float) -> str:
    return (
        rf"\1a{_alpha(opacity, 0x00)}\3a{_alpha(opacity, style.outline_alpha)}"
        rf"\4a{_alpha(opacity, style.shadow_alpha)}"
    )


def _animation_tags(
    style: CaptionStyle,
    width: int,
    height: int,
    fps: int = DEFAULT_FPS,
    entry_frames: int = CAPTION_ENTRY_FRAMES,
) -> str:
    entry = _ANIMATION_TABLE.get(style.animation)
    if entry is None or entry_frames <= 0:
        return ""
    scales, accent = entry
    ms = round(entry_frames * 1000 / fps)
    start_opacity, end_opacity = ENTRY_OPACITY
    start_tags = _alpha_tags(style, start_opacity)
    end_tags = _alpha_tags(style, end_opacity)
    if scales:
        start_scale, end_scale = (round(value * 100) for value in ENTRY_SCALE)
        start_tags += rf"\fscx{start_scale}\fscy{start_scale}"
        end_tags += rf"\fscx{end_scale}\fscy{end_scale}"
    x = width // 2
    extra = accent.format(
        ms=ms, ms2=2 * ms, ms3=3 * ms, x=x, x_from=x - 50, y=height - MARGIN_V
    )
    return f"{{{start_tags}\\t(0,{ms},{_EASE_IN_ACCEL},{end_tags}){extra}}}"


def _style_line(style: CaptionStyle, width: int, height: int) -> str:
    font_size = round(style.font_size * min(width, height) / REFERENCE_SHORT_SIDE)
    primary = to_ass_color(style.text_color)
    secondary = to_ass_color(style.highlight_color)
    outline = to_ass_color(style.outline_color, style.outline_alpha)
    shadow = to_ass_color(style.shadow_color, style.shadow_alpha)
    bold = -1 if style.bold else 0
    return (
        f"Style: Default,{style.font},{font_size},{primary},{secondary},{outline},{shadow},"
        f"{bold},0,0,0,100,100,2,0,1,{style.outline_width},{style.shadow_depth},"
        f"2,50,50,{MARGIN_V},1"
    )


def to_ass(
    phrases: Sequence[Phrase],
    style: CaptionStyle | str | None = None,
    width: int = 1080,
    height: int = 1920,
    hold_until_next: bool = False,
    tail_sec: float = CAPTION_TAIL_SEC,
    fps: int = DEFAULT_FPS,
    entry_frames: int = CAPTION_ENTRY_FRAMES,
    **_: object,
) -> str:
    """Convert caption phrases to an ASS script.

    Args:
        phrases: Ordered caption phrases.
        style: Preset or preset name; unknown names use the default preset.
        width: Video width in pixels.
        height: Video height in pixels.
        hold_until_next: Keep each phrase on screen until the next phrase
            starts and the last one for ``tail_sec`` after it ends. By
            default a phrase is shown only within its own window.
        tail_sec: Extra hold after the final phrase when ``hold_until_next``.
        fps: Video frame rate, used to time the entry animation.
        entry_frames: Length of the entry animation in frames; scale and
            opacity ease in exactly as :func:`~reelsync.captions.grouping.phrase_animation`
            computes them.

    Returns:
        The ASS script content.
    """
    preset = style if isinstance(style, CaptionStyle) else get_caption_style(style)

    lines = [
        "[Script Info]",
        f"Title: Captions - {preset.label}",
        "ScriptType: v4.00+",
        f"PlayResX: {width}",
        f"PlayResY: {height}",
        "WrapStyle: 0",
        "ScaledBorderAndShadow: yes",
        "Collisions: Normal",
        "",
        "[V4+ Styles]",
        _STYLE_FORMAT,
        _style_line(preset, width, height),
        "",
        "[Events]",
        _EVENT_FORMAT,
    ]

    tags = _animation_tags(preset, width, height, fps=fps, entry_frames=entry_frames)
    for index, phrase in enumerate(phrases):
        end = phrase.end
        if hold_until_next:
            end = phrases[index + 1].start if index + 1 < len(phrases) else phrase.end + tail_sec
        text = _clean_text(phrase.text)
        if preset.all_caps:
            text = text.upper()
        lines.append(
            f"Dialogue: 0,{_format_timestamp(phrase.start)},{_format_timestamp(end)},"
            f"Default,,0,0,0,,{tags}{text}"
        )

    return "\n".join(lines) + "\n"
