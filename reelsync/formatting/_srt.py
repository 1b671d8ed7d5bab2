"""Formatter for SubRip Subtitle format (.srt)."""

from collections.abc import Sequence

from reelsync.timestamps.models import Phrase


def _format_timestamp(seconds: float) -> str:
    """Format non-negative seconds as an SRT timestamp ``HH:MM:SS,mmm``.

    Milliseconds are truncated, not rounded.

    Raises:
        AssertionError: If ``seconds`` is negative.
    """
    assert seconds >= 0, "non-negative timestamp required"
    total_ms = int(seconds * 1000 + 1e-6)
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def to_srt(phrases: Sequence[Phrase], highlight_words: bool = False, **_: object) -> str:
    """Convert caption phrases to an SRT formatted string.

    Args:
        phrases: Ordered caption phrases.
        highlight_words: If ``True``, wrap each word in ``<b>`` tags.

    Returns:
        A string in SRT format.
    """
    srt_lines: list[str] = []
    for i, phrase in enumerate(phrases, start=1):
        srt_lines.append(str(i))
        srt_lines.append(f"{_format_timestamp(phrase.start)} --> {_format_timestamp(phrase.end)}")
        if highlight_words:
            srt_lines.append(" ".join(f"<b>{w.word}</b>" for w in phrase.words))
        else:
            srt_lines.append(phrase.text.strip())
        srt_lines.append("")
    return "\n".join(srt_lines)
