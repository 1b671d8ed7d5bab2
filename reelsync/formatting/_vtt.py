"""Formatter for Web Video Text Tracks format (.vtt)."""

from collections.abc import Sequence

from reelsync.timestamps.models import Phrase


def _format_timestamp(seconds: float) -> str:
    """Convert non-negative seconds to a WebVTT timestamp ``HH:MM:SS.mmm``."""
    assert seconds >= 0, "non-negative timestamp required"
    total_ms = int(seconds * 1000 + 1e-6)
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"


def to_vtt(phrases: Sequence[Phrase], highlight_words: bool = False, **_: object) -> str:
    """Convert caption phrases to a WebVTT formatted string.

    Args:
        phrases: Ordered caption phrases.
        highlight_words: If ``True``, emit per-word ``<c.highlight>`` spans
            with inline timestamps so players can highlight the spoken word.

    Returns:
        A string in VTT format.
    """
    vtt_lines = ["WEBVTT", ""]
    for phrase in phrases:
        vtt_lines.append(f"{_format_timestamp(phrase.start)} --> {_format_timestamp(phrase.end)}")
        if highlight_words:
            parts = []
            for index, word in enumerate(phrase.words):
                span = f"<c.highlight>{word.word}</c.highlight>"
                if index:
                    span = f"<{_format_timestamp(word.start)}>{span}"
                parts.append(span)
            vtt_lines.append(" ".join(parts))
        else:
            vtt_lines.append(phrase.text.strip())
        vtt_lines.append("")
    return "\n".join(vtt_lines)
